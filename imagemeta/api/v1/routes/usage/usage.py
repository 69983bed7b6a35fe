# imagemeta/api/v1/routes/usage/usage.py
"""Usage ledger endpoints, one per ledger operation."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from imagemeta.api.dependencies.identity import get_optional_caller, require_admin
from imagemeta.core.response import LedgerResult, ledger_response
from imagemeta.core.security import CallerIdentity
from imagemeta.db.deps import get_db
from imagemeta.schemas.usage import RecordUsageRequest
from imagemeta.services.usage_ledger.ledger_service import UsageLedgerService

router = APIRouter(prefix="/usage", tags=["usage"])

USAGE_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@router.post("/record-usage", response_model=LedgerResult, response_model_exclude_none=True)
async def record_usage(
    body: RecordUsageRequest,
    caller: Optional[CallerIdentity] = Depends(get_optional_caller),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    """Add images processed by a model to today's usage for the resolved user."""
    result = await UsageLedgerService(db).record_usage(
        model_name=body.model_name,
        image_count=body.image_count,
        user_id=body.user_id,
        caller_subject=caller.subject if caller else None,
    )
    return ledger_response(result)


@router.get("/recent-usage", response_model=LedgerResult, response_model_exclude_none=True)
async def recent_usage(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """All usage records from the current window, across users."""
    return ledger_response(await UsageLedgerService(db).get_recent_usage())


@router.get("/user-recent-usage", response_model=LedgerResult, response_model_exclude_none=True)
async def user_recent_usage(
    user_id: str = Query(..., alias="userId", min_length=1),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    return ledger_response(await UsageLedgerService(db).get_user_recent_usage(user_id))


@router.get("/current-image-count", response_model=int)
async def current_image_count(
    user_id: str = Query(..., alias="userId", min_length=1),
    db: AsyncSession = Depends(get_db),
) -> int:
    """Bare integer; 0 whenever the count cannot be computed."""
    return await UsageLedgerService(db).get_current_image_count(user_id)


@router.get("/daily-user-usage", response_model=LedgerResult, response_model_exclude_none=True)
async def daily_user_usage(
    user_id: str = Query(..., alias="userId", min_length=1),
    start_date: Optional[str] = Query(None, alias="startDate", pattern=USAGE_DATE_PATTERN),
    end_date: Optional[str] = Query(None, alias="endDate", pattern=USAGE_DATE_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await UsageLedgerService(db).get_daily_user_usage(user_id, start_date, end_date)
    return ledger_response(result)


@router.get("/model-usage-stats", response_model=LedgerResult, response_model_exclude_none=True)
async def model_usage_stats(
    start_date: Optional[str] = Query(None, alias="startDate", pattern=USAGE_DATE_PATTERN),
    end_date: Optional[str] = Query(None, alias="endDate", pattern=USAGE_DATE_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> JSONResponse:
    result = await UsageLedgerService(db).get_model_usage_stats(start_date, end_date)
    return ledger_response(result)


@router.post(
    "/clear-usage",
    response_model=LedgerResult,
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def clear_usage(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Delete every usage record. Meant for test and development environments."""
    return ledger_response(await UsageLedgerService(db).clear_usage())
