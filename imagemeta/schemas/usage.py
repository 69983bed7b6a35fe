from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordUsageRequest(BaseModel):
    """Body of record-usage. Values are checked by the ledger, not here, so bad
    counts come back as a structured failure instead of a 422."""

    model_config = ConfigDict(protected_namespaces=())

    model_name: Optional[str] = Field(None, alias="modelName")
    image_count: Optional[int] = Field(None, alias="imageCount")
    user_id: Optional[str] = Field(None, alias="userId")


class UsageLimitOut(BaseModel):
    current_image_count: int
    limit: Optional[int] = None
    remaining: Optional[int] = None
    is_free_tier: bool
    limit_reached: bool
    plan: str
