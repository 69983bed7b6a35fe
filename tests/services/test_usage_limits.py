from __future__ import annotations

import pytest
import stripe

from imagemeta.core.config import settings
from imagemeta.services.usage_ledger.usage_limits import UsageLimitService

from tests.factories import make_usage, seed

pytestmark = pytest.mark.asyncio


class FakeStripeClient:
    def __init__(self, subscription=None, error=None):
        self.subscription = subscription
        self.error = error
        self.calls = []

    def find_active_subscription(self, user_id):
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return self.subscription


def _subscription(unit_amount):
    return stripe.Subscription.construct_from(
        {
            "id": "sub_123",
            "object": "subscription",
            "status": "active",
            "items": {
                "object": "list",
                "data": [{"object": "subscription_item", "price": {"object": "price", "unit_amount": unit_amount}}],
            },
        },
        "sk_test_123",
    )


async def test_free_user_sees_limit_and_remaining(db_session, clock):
    await seed(db_session, make_usage("A", 40, "user_1"), make_usage("B", 25, "user_1"))

    summary = await UsageLimitService(db_session, FakeStripeClient()).get_usage_limit("user_1")

    assert summary.is_free_tier is True
    assert summary.plan == "free"
    assert summary.current_image_count == 65
    assert summary.limit == settings.FREE_USER_LIMIT
    assert summary.remaining == settings.FREE_USER_LIMIT - 65
    assert summary.limit_reached is False


async def test_free_user_at_limit(db_session, clock, monkeypatch):
    monkeypatch.setattr(settings, "FREE_USER_LIMIT", 10)
    await seed(db_session, make_usage("A", 12, "user_1"))

    summary = await UsageLimitService(db_session, FakeStripeClient()).get_usage_limit("user_1")

    assert summary.limit_reached is True
    assert summary.remaining == 0


async def test_paying_user_is_unlimited(db_session, clock):
    await seed(db_session, make_usage("A", 500, "user_1"))
    client = FakeStripeClient(subscription=_subscription(1900))

    summary = await UsageLimitService(db_session, client).get_usage_limit("user_1")

    assert client.calls == ["user_1"]
    assert summary.is_free_tier is False
    assert summary.plan == "pro"
    assert summary.current_image_count == 500
    assert summary.limit is None
    assert summary.remaining is None
    assert summary.limit_reached is False


async def test_zero_amount_subscription_counts_as_free(db_session, clock):
    summary = await UsageLimitService(
        db_session, FakeStripeClient(subscription=_subscription(0))
    ).get_usage_limit("user_1")

    assert summary.is_free_tier is True


async def test_has_paid_plan_reads_stripe_subscription_objects(db_session):
    service = UsageLimitService(db_session, FakeStripeClient(subscription=_subscription(900)))

    assert await service.has_paid_plan("user_1") is True


async def test_subscription_without_price_data_counts_as_free(db_session):
    subscription = stripe.Subscription.construct_from(
        {"id": "sub_456", "object": "subscription", "status": "active"}, "sk_test_123"
    )
    service = UsageLimitService(db_session, FakeStripeClient(subscription=subscription))

    assert await service.has_paid_plan("user_1") is False


async def test_stripe_failure_degrades_to_free_tier(db_session, clock):
    client = FakeStripeClient(error=stripe.StripeError("stripe is down"))

    summary = await UsageLimitService(db_session, client).get_usage_limit("user_1")

    assert summary.is_free_tier is True
    assert summary.current_image_count == 0


async def test_no_stripe_key_means_free_tier(db_session, clock, monkeypatch):
    monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", None)

    summary = await UsageLimitService(db_session).get_usage_limit("user_1")

    assert summary.is_free_tier is True
