"""Usage ledger: per-user, per-model, per-day image counts.

Ingest merges into one row per (user_id, model_name, usage_date); the read
side derives recent-window, per-day and per-model views from those rows.
Every public method converts storage failures into a structured result and
never lets the exception escape.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import and_, delete, func, select, true
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from imagemeta.core.config import settings
from imagemeta.core.logging_config import get_logger
from imagemeta.core.response import LedgerResult
from imagemeta.models.model_usage import ModelUsage
from imagemeta.services.usage_ledger.identity import candidate_user_ids, resolve_user_id
from imagemeta.services.usage_ledger.sample_usage import (
    SAMPLE_USAGE_MESSAGE,
    build_sample_usage,
    sample_usage_enabled,
)
from imagemeta.utils.datetime_utils import (
    get_current_utc_datetime,
    to_epoch_ms,
    to_usage_date,
    window_cutoff_ms,
)

logger = get_logger(__name__)

NO_USAGE_MESSAGE = "No usage recorded for this user in the current period"

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class UsageLedgerService:
    def __init__(self, db: AsyncSession, window_days: Optional[int] = None):
        self.db = db
        self.window_days = window_days or settings.USAGE_WINDOW_DAYS

    # ------------------------------------------------------------------ ingest

    async def record_usage(
        self,
        model_name: Optional[str],
        image_count: Optional[int],
        user_id: Optional[str] = None,
        caller_subject: Optional[str] = None,
    ) -> LedgerResult:
        """
        Add ``image_count`` images for ``model_name`` to today's record.

        Args:
            model_name: Model that processed the images
            image_count: Number of images, must be positive
            user_id: Explicit owner of the usage, wins over the caller identity
            caller_subject: Subject of the authenticated caller, if any

        Returns:
            ``LedgerResult`` whose data is the id of the created or updated record
        """
        if not model_name or not model_name.strip():
            logger.info("Rejected usage ingest: invalid model name")
            return LedgerResult.fail("Invalid model name")
        if image_count is None or image_count <= 0:
            logger.info(f"Rejected usage ingest: invalid image count {image_count!r}")
            return LedgerResult.fail("Invalid image count")

        try:
            effective_user_id = resolve_user_id(user_id, caller_subject)
            if user_id:
                logger.debug(f"Using provided userId: {effective_user_id}")
            elif caller_subject:
                logger.debug(f"Using authenticated user ID: {effective_user_id}")
            else:
                logger.warning(
                    f"No userId and no authenticated caller; attributing usage to {effective_user_id}"
                )

            now = get_current_utc_datetime()
            usage_date = to_usage_date(now)
            timestamp = to_epoch_ms(now)

            record_id = await self._insert_or_merge(
                model_name=model_name,
                image_count=image_count,
                user_id=effective_user_id,
                usage_date=usage_date,
                timestamp=timestamp,
            )
            logger.info(f"Recorded {image_count} images on model usage entry {record_id}")
            await self.db.commit()
        except Exception:
            logger.exception("Error adding model usage data")
            await self._rollback()
            return LedgerResult.fail("Failed to add model usage data")

        return LedgerResult.ok(str(record_id))

    async def _insert_or_merge(
        self,
        *,
        model_name: str,
        image_count: int,
        user_id: str,
        usage_date: str,
        timestamp: int,
    ) -> uuid.UUID:
        """Create today's row or add to it in one statement, returning the row id."""
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Usage upsert is not supported on dialect '{dialect}'")

        stmt = insert(ModelUsage).values(
            id=uuid.uuid4(),
            model_name=model_name,
            image_count=image_count,
            user_id=user_id,
            usage_date=usage_date,
            timestamp=timestamp,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "model_name", "usage_date"],
            set_={
                "image_count": ModelUsage.image_count + stmt.excluded.image_count,
                "timestamp": stmt.excluded.timestamp,
            },
        ).returning(ModelUsage.id)

        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def clear_usage(self) -> LedgerResult:
        """Delete every ledger row. Callers gate access."""
        try:
            result = await self.db.execute(delete(ModelUsage))
            await self.db.commit()
        except Exception:
            logger.exception("Error clearing model usage data")
            await self._rollback()
            return LedgerResult.fail("Failed to clear model usage data")

        logger.warning(f"Cleared {result.rowcount} model usage entries")
        return LedgerResult.ok(message="All model usage data cleared")

    # ------------------------------------------------------------------- reads

    async def get_recent_usage(self) -> LedgerResult:
        """All records updated inside the recent window, any user, storage order."""
        try:
            cutoff = self._cutoff(get_current_utc_datetime())
            rows = await self._recent_records(cutoff)
        except Exception:
            logger.exception("Error retrieving model usage data")
            return LedgerResult.fail("Failed to retrieve model usage data")
        return LedgerResult.ok([row.to_dict() for row in rows])

    async def get_user_recent_usage(self, user_id: str) -> LedgerResult:
        """
        A user's records in the recent window, tolerating prefixed/bare id variants.

        Candidates are tried in order and the first non-empty result wins. A
        ``message`` is attached whenever the answer did not come from the exact
        identifier.
        """
        try:
            now = get_current_utc_datetime()
            cutoff = self._cutoff(now)
            candidates = candidate_user_ids(user_id)
            logger.debug(f"Trying userId variants for {user_id}: {candidates}")

            for position, candidate in enumerate(candidates):
                rows = await self._recent_records(cutoff, user_id=candidate)
                logger.debug(f"Found {len(rows)} records with userId={candidate}")
                if not rows:
                    continue
                message = None
                if position > 0:
                    message = f"No usage under '{user_id}'; showing usage recorded as '{candidate}'"
                return LedgerResult.ok([row.to_dict() for row in rows], message=message)

            known_user_ids = await self._recent_user_ids(cutoff)
            logger.info(
                f"No usage for any variant of {user_id}; "
                f"{len(known_user_ids)} other users have recent usage"
            )
            if known_user_ids and sample_usage_enabled():
                model_names = await self._recent_model_names(cutoff)
                if model_names:
                    return LedgerResult.ok(
                        build_sample_usage(user_id, model_names, now),
                        message=SAMPLE_USAGE_MESSAGE,
                    )
        except Exception:
            logger.exception("Error retrieving user model usage data")
            return LedgerResult.fail("Failed to retrieve user model usage data")

        return LedgerResult.ok([], message=NO_USAGE_MESSAGE)

    async def get_current_image_count(self, user_id: str) -> int:
        """Images processed by ``user_id`` in the current billing window; 0 on any failure."""
        try:
            cutoff = self._cutoff(get_current_utc_datetime())
            total = await self.db.scalar(
                select(func.coalesce(func.sum(ModelUsage.image_count), 0)).where(
                    ModelUsage.user_id == user_id,
                    ModelUsage.timestamp > cutoff,
                )
            )
            return int(total or 0)
        except Exception:
            logger.exception(f"Error retrieving image count for user {user_id}")
            return 0

    async def get_daily_user_usage(
        self,
        user_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> LedgerResult:
        """Mapping of usage date -> model name -> images for one user."""
        filters = [ModelUsage.user_id == user_id, *_date_range_filters(start_date, end_date)]
        stmt = (
            select(
                ModelUsage.usage_date,
                ModelUsage.model_name,
                func.sum(ModelUsage.image_count),
            )
            .where(and_(true(), *filters))
            .group_by(ModelUsage.usage_date, ModelUsage.model_name)
            .order_by(ModelUsage.usage_date, ModelUsage.model_name)
        )
        try:
            rows = (await self.db.execute(stmt)).all()
        except Exception:
            logger.exception("Error getting daily user usage")
            return LedgerResult.fail("Failed to get daily user usage")

        daily: Dict[str, Dict[str, int]] = {}
        for usage_date, model_name, total in rows:
            daily.setdefault(usage_date, {})[model_name] = int(total or 0)
        return LedgerResult.ok(daily)

    async def get_model_usage_stats(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> LedgerResult:
        """Per model: total images, distinct users and per-day totals."""
        filters = _date_range_filters(start_date, end_date)
        stmt = (
            select(
                ModelUsage.model_name,
                ModelUsage.usage_date,
                ModelUsage.user_id,
                func.sum(ModelUsage.image_count),
            )
            .where(and_(true(), *filters))
            .group_by(ModelUsage.model_name, ModelUsage.usage_date, ModelUsage.user_id)
        )
        try:
            rows = (await self.db.execute(stmt)).all()
        except Exception:
            logger.exception("Error getting model usage stats")
            return LedgerResult.fail("Failed to get model usage stats")

        totals: Dict[str, int] = {}
        users: Dict[str, Set[str]] = {}
        per_day: Dict[str, Dict[str, int]] = {}
        for model_name, usage_date, row_user_id, total in rows:
            count = int(total or 0)
            totals[model_name] = totals.get(model_name, 0) + count
            users.setdefault(model_name, set()).add(row_user_id)
            daily = per_day.setdefault(model_name, {})
            daily[usage_date] = daily.get(usage_date, 0) + count

        stats: Dict[str, Dict[str, Any]] = {
            model_name: {
                "totalUsage": totals[model_name],
                "uniqueUsers": sorted(users[model_name]),
                "dailyUsage": dict(sorted(per_day[model_name].items())),
            }
            for model_name in totals
        }
        return LedgerResult.ok(stats)

    # ----------------------------------------------------------------- helpers

    def _cutoff(self, now: datetime) -> int:
        return window_cutoff_ms(now, self.window_days)

    async def _recent_records(
        self, cutoff: int, user_id: Optional[str] = None
    ) -> List[ModelUsage]:
        stmt = select(ModelUsage).where(ModelUsage.timestamp > cutoff)
        if user_id is not None:
            stmt = stmt.where(ModelUsage.user_id == user_id)
        return list((await self.db.execute(stmt)).scalars().all())

    async def _recent_user_ids(self, cutoff: int) -> List[str]:
        stmt = select(ModelUsage.user_id).where(ModelUsage.timestamp > cutoff).distinct()
        return [value for value in (await self.db.execute(stmt)).scalars().all() if value]

    async def _recent_model_names(self, cutoff: int) -> List[str]:
        stmt = select(ModelUsage.model_name).where(ModelUsage.timestamp > cutoff).distinct()
        return list((await self.db.execute(stmt)).scalars().all())

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except Exception:
            logger.exception("Rollback after failed ledger write also failed")


def _date_range_filters(start_date: Optional[str], end_date: Optional[str]) -> list:
    """Inclusive bounds on the fixed-width YYYY-MM-DD usage_date column."""
    filters = []
    if start_date:
        filters.append(ModelUsage.usage_date >= start_date)
    if end_date:
        filters.append(ModelUsage.usage_date <= end_date)
    return filters
