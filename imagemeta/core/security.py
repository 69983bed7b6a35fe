# imagemeta/core/security.py
from dataclasses import dataclass, field
from typing import Any, Dict

from jose import JWTError, jwt

from imagemeta.core.config import settings


@dataclass(frozen=True)
class CallerIdentity:
    """Identity resolved from the auth provider's bearer token."""
    subject: str
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        if self.subject in settings.ADMIN_USER_IDS:
            return True
        return self.claims.get(settings.ADMIN_ROLE_CLAIM) == settings.ADMIN_ROLE


def decode_identity_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a bearer JWT issued by the identity provider.
    Raises JWTError on any failure.
    """
    options = {"verify_aud": settings.JWT_AUDIENCE is not None}
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
        audience=settings.JWT_AUDIENCE,
        options=options,
    )


def verify_token(token: str) -> CallerIdentity:
    """
    Decode a JWT and return the caller identity (subject + raw claims).
    Raises JWTError on any failure, including a missing subject.
    """
    payload = decode_identity_token(token)
    subject = payload.get("sub")
    if not subject:
        raise JWTError("Token has no subject")
    return CallerIdentity(subject=str(subject), claims=payload)


def create_access_token(subject: str, **claims: Any) -> str:
    """Sign a token the same way the identity provider does; used by scripts and tests."""
    to_encode: Dict[str, Any] = {"sub": str(subject), **claims}
    if settings.JWT_AUDIENCE is not None:
        to_encode.setdefault("aud", settings.JWT_AUDIENCE)
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
