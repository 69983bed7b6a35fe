"""Stripe API client - read-only view of subscription state."""

from __future__ import annotations

from typing import Optional
import stripe

from imagemeta.core.config import settings
from imagemeta.core.logging_config import get_logger

logger = get_logger(__name__)


class StripeClient:
    """Thin wrapper for the Stripe calls the dashboard needs."""

    def __init__(self):
        """Initialize Stripe with API key."""
        if not settings.STRIPE_SECRET_KEY:
            raise RuntimeError("STRIPE_SECRET_KEY not configured")
        stripe.api_key = settings.STRIPE_SECRET_KEY
        logger.info("Stripe client initialized")

    def find_active_subscription(self, user_id: str) -> Optional[stripe.Subscription]:
        """Return the caller's active subscription, if any.

        Checkout stores the app's user id in subscription metadata under
        ``userId``; that is the only link between the two systems.

        Args:
            user_id: Identifier of the user as stored in the usage ledger

        Returns:
            The most recent active Stripe subscription, or None

        Raises:
            stripe.StripeError: If the Stripe API call fails
        """
        escaped = user_id.replace("\\", "\\\\").replace("'", "\\'")
        query = f"status:'active' AND metadata['userId']:'{escaped}'"
        try:
            result = stripe.Subscription.search(query=query, limit=1)
        except stripe.StripeError as e:
            logger.error(f"Stripe subscription search failed for user {user_id}: {e}")
            raise

        subscriptions = list(result.data)
        if not subscriptions:
            logger.debug(f"No active Stripe subscription for user {user_id}")
            return None
        subscription = subscriptions[0]
        logger.info(f"Found Stripe subscription {subscription.id} for user {user_id}")
        return subscription
