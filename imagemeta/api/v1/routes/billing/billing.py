from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from imagemeta.api.dependencies.identity import get_current_caller
from imagemeta.core.response import ResponseModel, success_response
from imagemeta.core.security import CallerIdentity
from imagemeta.db.deps import get_db
from imagemeta.services.usage_ledger.usage_limits import UsageLimitService

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/usage-limit", response_model=ResponseModel)
async def get_usage_limit(
    caller: CallerIdentity = Depends(get_current_caller),
    db: AsyncSession = Depends(get_db),
):
    """
    Current-period image count against the caller's plan limit.
    Free users are capped at FREE_USER_LIMIT; paying users have no limit.
    """
    summary = await UsageLimitService(db).get_usage_limit(caller.subject)
    return success_response(msg="Usage limit retrieved", data=summary.model_dump())
