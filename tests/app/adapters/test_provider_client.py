"""Tests for ProviderClient."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from app.adapters.base import ProviderPermanentError, ProviderTransientError
from app.adapters.provider_client import ProviderClient

BASE_URL = "https://api.example.test/api/v1"


def make_response(status_code=200, body=None, headers=None, content=None):
    resp = requests.Response()
    resp.status_code = status_code
    if content is not None:
        resp._content = content
    else:
        resp._content = json.dumps(body if body is not None else {}).encode()
    resp.headers.update(headers or {"Content-Type": "application/json"})
    return resp


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return ProviderClient(BASE_URL, "key-123", webhook_secret="hook-secret", session=session)


def test_list_chats_sends_key_and_drops_empty_params(client, session):
    session.request.return_value = make_response(
        body={"items": [{"id": "chat-1", "lastMessage": {"id": "m-9"}}], "cursor": "next"}
    )

    page = client.list_chats("acc-1", limit=10)

    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert (method, url) == ("GET", f"{BASE_URL}/chats")
    assert kwargs["params"] == {"account_id": "acc-1", "limit": 10}
    assert kwargs["headers"]["X-API-KEY"] == "key-123"
    assert page.cursor == "next"
    assert page.items[0].last_message.id == "m-9"


def test_rate_limit_is_transient_with_retry_after(client, session):
    session.request.return_value = make_response(429, headers={"Retry-After": "12"})

    with pytest.raises(ProviderTransientError) as exc_info:
        client.get_account("acc-1")
    assert exc_info.value.status_code == 429
    assert exc_info.value.retry_after == 12


def test_server_error_is_transient(client, session):
    session.request.return_value = make_response(503)

    with pytest.raises(ProviderTransientError):
        client.list_attendees("chat-1", "acc-1", limit=5)


def test_connection_error_is_transient(client, session):
    session.request.side_effect = requests.ConnectionError("reset")

    with pytest.raises(ProviderTransientError):
        client.list_messages("chat-1", "acc-1", limit=5)


def test_client_error_is_permanent(client, session):
    session.request.return_value = make_response(401, body={"detail": "revoked"})

    with pytest.raises(ProviderPermanentError) as exc_info:
        client.get_profile("ACoAAAda", "acc-1")
    assert exc_info.value.status_code == 401


def test_unexpected_payload_is_permanent(client, session):
    session.request.return_value = make_response(body={"items": [{"name": "no id"}]})

    with pytest.raises(ProviderPermanentError):
        client.list_chats("acc-1", limit=5)


def test_send_message_parses_failed_status(client, session):
    session.request.return_value = make_response(body={"status": "FAILED"})

    result = client.send_message("chat-1", "acc-1", "hello")

    assert result.failed is True
    assert session.request.call_args.kwargs["json"] == {"text": "hello"}


def test_patch_chat_sends_action_and_value(client, session):
    session.request.return_value = make_response(body={"success": True})

    result = client.patch_chat("chat-1", "acc-1", "setReadStatus", True)

    assert result.success is True
    assert session.request.call_args.kwargs["json"] == {"action": "setReadStatus", "value": True}


def test_download_attachment_strips_content_type_params(client, session):
    session.request.return_value = make_response(
        content=b"\x89PNG", headers={"Content-Type": "image/png; charset=binary"}
    )

    download = client.download_attachment("m-1", "att-1", "acc-1")

    assert download.content == b"\x89PNG"
    assert download.mime_type == "image/png"


def test_empty_attachment_is_permanent(client, session):
    session.request.return_value = make_response(content=b"")

    with pytest.raises(ProviderPermanentError):
        client.download_attachment("m-1", "att-1", "acc-1")


def test_verify_webhook_header_is_case_insensitive(client):
    assert client.verify_webhook(None, {"unipile-auth": "hook-secret"}) is True
    assert client.verify_webhook(None, {"Unipile-Auth": "wrong"}) is False
    assert client.verify_webhook(None, {}) is False


def test_verify_webhook_without_secret_accepts_all(session):
    open_client = ProviderClient(BASE_URL, "key-123", session=session)
    assert open_client.verify_webhook(None, {}) is True


def test_local_rate_limit_blocks_before_request(session):
    redis_client = MagicMock()
    redis_client.pipeline.return_value.execute.return_value = [6, 42]
    throttled = ProviderClient(
        BASE_URL, "key-123", session=session, redis_client=redis_client, rate_limit_per_minute=5
    )

    with pytest.raises(ProviderTransientError):
        throttled.list_chats("acc-1", limit=5)
    session.request.assert_not_called()
