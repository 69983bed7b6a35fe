"""Free-tier image limit check for the account page."""

from __future__ import annotations

from typing import Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi.concurrency import run_in_threadpool

from imagemeta.core.config import settings
from imagemeta.core.logging_config import get_logger
from imagemeta.schemas.usage import UsageLimitOut
from imagemeta.services.payments.stripe_client import StripeClient
from imagemeta.services.usage_ledger.ledger_service import UsageLedgerService

logger = get_logger(__name__)

FREE_PLAN = "free"
PRO_PLAN = "pro"


class UsageLimitService:
    def __init__(self, db: AsyncSession, stripe_client: Optional[StripeClient] = None):
        self.ledger = UsageLedgerService(db)
        self._stripe_client = stripe_client

    def _client(self) -> Optional[StripeClient]:
        if self._stripe_client is None and settings.STRIPE_SECRET_KEY:
            self._stripe_client = StripeClient()
        return self._stripe_client

    async def has_paid_plan(self, user_id: str) -> bool:
        """True when Stripe reports an active subscription; any doubt means free."""
        client = self._client()
        if client is None:
            return False
        try:
            subscription = await run_in_threadpool(client.find_active_subscription, user_id)
        except stripe.StripeError:
            logger.warning(f"Treating user {user_id} as free tier after Stripe error")
            return False
        if subscription is None:
            return False
        # Zero-amount subscriptions are the free plan
        try:
            items = subscription["items"]["data"]
            amounts = [item["price"]["unit_amount"] or 0 for item in items]
        except (KeyError, TypeError):
            logger.warning(f"Unreadable Stripe subscription for user {user_id}; treating as free tier")
            return False
        return not items or any(amount > 0 for amount in amounts)

    async def get_usage_limit(self, user_id: str) -> UsageLimitOut:
        current = await self.ledger.get_current_image_count(user_id)
        if await self.has_paid_plan(user_id):
            return UsageLimitOut(
                current_image_count=current,
                is_free_tier=False,
                limit_reached=False,
                plan=PRO_PLAN,
            )

        limit = settings.FREE_USER_LIMIT
        return UsageLimitOut(
            current_image_count=current,
            limit=limit,
            remaining=max(limit - current, 0),
            is_free_tier=True,
            limit_reached=current >= limit,
            plan=FREE_PLAN,
        )
