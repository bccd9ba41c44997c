"""Subscription plans and the contact caps they grant."""

from enum import StrEnum


class SubscriptionPlan(StrEnum):
    FREE = "FREE"
    STARTER = "STARTER"
    PROFESSIONAL = "PROFESSIONAL"
    ENTERPRISE = "ENTERPRISE"
    GOLD = "GOLD"


PLAN_CONTACT_LIMITS: dict[SubscriptionPlan, int] = {
    SubscriptionPlan.FREE: 100,
    SubscriptionPlan.STARTER: 1000,
    SubscriptionPlan.PROFESSIONAL: 10000,
    SubscriptionPlan.ENTERPRISE: 10000,
    SubscriptionPlan.GOLD: 10000,
}

DEFAULT_PLAN = SubscriptionPlan.FREE

# Placeholders shown in place of contacts beyond the plan limit
OBFUSCATED_FIRST_NAME = "Premium"
OBFUSCATED_LAST_NAME = "Contact"
OBFUSCATED_NAME = f"{OBFUSCATED_FIRST_NAME} {OBFUSCATED_LAST_NAME}"
OBFUSCATED_HEADLINE = "Upgrade to view this contact"
OBFUSCATED_MESSAGE = "Upgrade to view messages from premium contacts"
