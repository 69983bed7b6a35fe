"""Placeholder usage for dashboards in development environments.

Only reachable when ENABLE_SAMPLE_USAGE is set outside production. Nothing
generated here is written to the ledger.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from imagemeta.core.config import settings
from imagemeta.utils.datetime_utils import to_epoch_ms, to_usage_date

SAMPLE_USAGE_MESSAGE = "Using generated sample data for this user"


def sample_usage_enabled() -> bool:
    return settings.ENABLE_SAMPLE_USAGE and settings.ENVIRONMENT != "production"


def build_sample_usage(
    user_id: str,
    model_names: Iterable[str],
    now: datetime,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """One record for today and one for yesterday per model, with random counts."""
    rng = rng or random.Random()
    yesterday = now - timedelta(days=1)
    records: List[Dict[str, Any]] = []
    for model_name in sorted(set(model_names)):
        records.append({
            "modelName": model_name,
            "imageCount": rng.randint(5, 24),
            "userId": user_id,
            "usageDate": to_usage_date(now),
            "timestamp": to_epoch_ms(now),
        })
        records.append({
            "modelName": model_name,
            "imageCount": rng.randint(3, 17),
            "userId": user_id,
            "usageDate": to_usage_date(yesterday),
            "timestamp": to_epoch_ms(yesterday),
        })
    return records
