from __future__ import annotations

import pytest

from imagemeta.core.config import settings
from imagemeta.core.security import create_access_token

from tests.factories import make_usage, seed

pytestmark = pytest.mark.asyncio


def _auth(subject: str, **claims) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject, **claims)}"}


async def test_record_usage_accepts_contract_arguments(client, clock):
    body = {"modelName": "caption-v2", "imageCount": 5, "userId": "user_1"}

    first = await client.post("/api/v1/usage/record-usage", json=body)
    second = await client.post("/api/v1/usage/record-usage", json={**body, "imageCount": 3})

    assert first.status_code == 200
    payload = first.json()
    assert payload["success"] is True
    assert isinstance(payload["data"], str)
    assert "error" not in payload
    assert second.json()["data"] == payload["data"]

    count = await client.get("/api/v1/usage/current-image-count", params={"userId": "user_1"})
    assert count.status_code == 200
    assert count.json() == 8


async def test_record_usage_attributes_to_bearer_subject(client, clock):
    response = await client.post(
        "/api/v1/usage/record-usage",
        json={"modelName": "caption-v2", "imageCount": 4},
        headers=_auth("user_from_token"),
    )
    assert response.json()["success"] is True

    count = await client.get("/api/v1/usage/current-image-count", params={"userId": "user_from_token"})
    assert count.json() == 4


async def test_record_usage_with_bad_token_uses_sentinel(client, clock):
    response = await client.post(
        "/api/v1/usage/record-usage",
        json={"modelName": "caption-v2", "imageCount": 2},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.json()["success"] is True

    count = await client.get(
        "/api/v1/usage/current-image-count", params={"userId": settings.DEFAULT_USER_ID}
    )
    assert count.json() == 2


async def test_record_usage_validation_failure_is_structured(client, clock):
    response = await client.post(
        "/api/v1/usage/record-usage",
        json={"modelName": "caption-v2", "imageCount": 0, "userId": "user_1"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "Invalid image count"}

    missing_model = await client.post("/api/v1/usage/record-usage", json={"imageCount": 3})
    assert missing_model.json() == {"success": False, "error": "Invalid model name"}


async def test_user_recent_usage_reports_fallback(client, db_session, clock):
    await seed(db_session, make_usage("caption-v2", 5, "abc123"))

    response = await client.get("/api/v1/usage/user-recent-usage", params={"userId": "user_abc123"})

    payload = response.json()
    assert payload["success"] is True
    assert [record["userId"] for record in payload["data"]] == ["abc123"]
    assert payload["message"]


async def test_recent_usage_route(client, db_session, clock):
    await seed(db_session, make_usage("caption-v2", 5, "u1"), make_usage("tagger", 1, "u2"))

    response = await client.get("/api/v1/usage/recent-usage")

    payload = response.json()
    assert payload["success"] is True
    assert sorted(record["modelName"] for record in payload["data"]) == ["caption-v2", "tagger"]


async def test_daily_user_usage_route(client, db_session, clock):
    await seed(
        db_session,
        make_usage("caption-v2", 5, "u1", usage_date="2026-10-17"),
        make_usage("tagger", 2, "u1", usage_date="2026-10-18"),
    )

    response = await client.get(
        "/api/v1/usage/daily-user-usage",
        params={"userId": "u1", "startDate": "2026-10-18", "endDate": "2026-10-18"},
    )

    assert response.json() == {"success": True, "data": {"2026-10-18": {"tagger": 2}}}


async def test_daily_user_usage_rejects_malformed_dates(client, clock):
    response = await client.get(
        "/api/v1/usage/daily-user-usage",
        params={"userId": "u1", "startDate": "18/10/2026"},
    )

    assert response.status_code == 422


async def test_model_usage_stats_route(client, db_session, clock):
    await seed(
        db_session,
        make_usage("A", 5, "u1"),
        make_usage("A", 3, "u2"),
        make_usage("B", 10, "u1"),
    )

    response = await client.get("/api/v1/usage/model-usage-stats")

    data = response.json()["data"]
    assert data["A"]["totalUsage"] == 8
    assert sorted(data["A"]["uniqueUsers"]) == ["u1", "u2"]
    assert data["B"] == {"totalUsage": 10, "uniqueUsers": ["u1"], "dailyUsage": {"2026-10-19": 10}}


async def test_clear_usage_requires_token(client, clock):
    response = await client.post("/api/v1/usage/clear-usage")

    assert response.status_code == 401


async def test_clear_usage_rejects_non_admin(client, clock):
    response = await client.post("/api/v1/usage/clear-usage", headers=_auth("user_1"))

    assert response.status_code == 403


async def test_clear_usage_as_admin(client, db_session, clock):
    await seed(db_session, make_usage("A", 5, "u1"))

    response = await client.post("/api/v1/usage/clear-usage", headers=_auth("ops", role="admin"))

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "All model usage data cleared"}

    recent = await client.get("/api/v1/usage/recent-usage")
    assert recent.json() == {"success": True, "data": []}
