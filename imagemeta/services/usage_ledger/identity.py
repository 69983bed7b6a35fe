"""Caller identifier resolution and variant reconciliation."""

from __future__ import annotations

from typing import List, Optional

from imagemeta.core.config import settings


def resolve_user_id(
    explicit_user_id: Optional[str],
    context_subject: Optional[str],
    default_user_id: Optional[str] = None,
) -> str:
    """
    Pick the identifier an ingest is attributed to.

    Precedence: explicit argument, then the authenticated caller's subject,
    then the sentinel ``DEFAULT_USER_ID``. Empty strings count as absent.
    """
    fallback_chain = (
        explicit_user_id,
        context_subject,
        default_user_id or settings.DEFAULT_USER_ID,
    )
    for candidate in fallback_chain:
        if candidate:
            return candidate
    raise ValueError("No user identifier available and no sentinel configured")


def candidate_user_ids(user_id: str, prefix: Optional[str] = None) -> List[str]:
    """
    Identifier variants to try, in order, when a user looks up their own usage.

    The supplied form comes first, then the bare form if it carries the prefix,
    otherwise the prefixed form. Duplicates are dropped.
    """
    prefix = settings.USER_ID_PREFIX if prefix is None else prefix
    candidates = [user_id]
    if prefix:
        if user_id.startswith(prefix):
            candidates.append(user_id[len(prefix):])
        else:
            candidates.append(f"{prefix}{user_id}")

    ordered: List[str] = []
    for candidate in candidates:
        if candidate and candidate not in ordered:
            ordered.append(candidate)
    return ordered
