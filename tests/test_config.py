"""Tests for sync configuration profiles and validation."""

import pytest

from app.config import (
    DEVELOPMENT_SYNC_CONFIG,
    PRODUCTION_SYNC_CONFIG,
    Settings,
    SyncLimits,
    get_sync_config,
)
from app.core.errors import InvalidSyncConfigError


def test_page_size_larger_than_max_chats_is_rejected():
    with pytest.raises(InvalidSyncConfigError):
        SyncLimits(max_chats=5, page_size=10, max_messages_per_chat=5, message_batch_size=5)


def test_batch_larger_than_message_cap_is_rejected():
    with pytest.raises(InvalidSyncConfigError):
        SyncLimits(max_chats=5, page_size=5, max_messages_per_chat=5, message_batch_size=6)


def test_non_positive_limits_are_rejected():
    with pytest.raises(InvalidSyncConfigError):
        SyncLimits(max_chats=0, page_size=0, max_messages_per_chat=5, message_batch_size=5)


def test_development_profile_is_small_and_skips_enrichment():
    limits = DEVELOPMENT_SYNC_CONFIG.limits
    assert (limits.max_chats, limits.page_size) == (5, 5)
    assert limits.max_messages_per_chat == 5
    assert DEVELOPMENT_SYNC_CONFIG.flags.enable_profile_enrichment is False
    assert DEVELOPMENT_SYNC_CONFIG.flags.enable_detailed_logging is True


def test_production_profile_limits():
    limits = PRODUCTION_SYNC_CONFIG.limits
    assert limits.max_chats == 1000
    assert limits.page_size == 50
    assert limits.max_messages_per_chat == 100
    assert limits.message_batch_size == 50
    assert PRODUCTION_SYNC_CONFIG.flags.enable_profile_enrichment is True
    assert PRODUCTION_SYNC_CONFIG.flags.include_company_messages is False


def test_environment_selects_profile():
    assert get_sync_config(Settings(ENV="production")).limits == PRODUCTION_SYNC_CONFIG.limits
    assert get_sync_config(Settings(ENV="test")).limits == DEVELOPMENT_SYNC_CONFIG.limits


def test_flag_overrides_apply_on_top_of_profile():
    """Only the flags that are set replace the profile defaults."""
    config = get_sync_config(Settings(ENV="production", sync_include_company_messages=True))
    assert config.flags.include_company_messages is True
    assert config.flags.enable_profile_enrichment is True


def test_test_environment_uses_test_database():
    settings = Settings(ENV="test")
    assert settings.is_test
    assert settings.database_url.startswith("sqlite")
