"""
Caller identity dependencies for FastAPI routes.

The identity provider issues bearer JWTs; these dependencies only verify the
token and expose its subject. Nothing here creates or looks up accounts.
"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from imagemeta.core.logging_config import get_logger
from imagemeta.core.security import CallerIdentity, verify_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_optional_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[CallerIdentity]:
    """
    Resolve the caller if a valid bearer token was sent.

    A missing or unusable token yields None so that callers such as usage
    ingest can fall back to another identity source.
    """
    if credentials is None:
        return None
    try:
        return verify_token(credentials.credentials)
    except JWTError as e:
        logger.warning(f"Ignoring invalid bearer token: {e}")
        return None


async def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CallerIdentity:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        return verify_token(credentials.credentials)
    except JWTError:
        raise credentials_exception


async def require_admin(
    caller: CallerIdentity = Depends(get_current_caller),
) -> CallerIdentity:
    """Ensures the caller is an administrator."""
    if not caller.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions"
        )
    return caller
