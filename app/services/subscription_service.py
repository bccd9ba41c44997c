from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from app.constants.contact_limits import DEFAULT_PLAN, SubscriptionPlan
from app.models.subscription import Subscription


class SubscriptionService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_plan(self, user_id: UUID) -> SubscriptionPlan:
        """The user's plan; no subscription row or an unknown plan means the lowest tier."""
        subscription = (
            self.db.query(Subscription).filter(Subscription.user_id == user_id).first()
        )
        if subscription is None or not subscription.plan:
            return DEFAULT_PLAN
        try:
            return SubscriptionPlan(subscription.plan.upper())
        except ValueError:
            return DEFAULT_PLAN
