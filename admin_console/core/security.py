"""
Admin authentication helpers

Session issuance lives in the main platform; this service only verifies the
bearer token it hands out and checks the admin claim.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from admin_console.core.config import settings


security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AdminPrincipal:
    """Authenticated caller extracted from the access token."""
    subject: str
    is_admin: bool
    email: Optional[str] = None


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Issue an access token (used by tooling and tests)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """Decode and check the token type; None when invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        if payload.get("type") != token_type:
            return None
        return payload
    except JWTError:
        return None


def _payload_is_admin(payload: dict) -> bool:
    if payload.get("is_admin") is True:
        return True
    role = str(payload.get("role") or "").strip().lower()
    return role in ("admin", "super_admin")


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AdminPrincipal:
    """Current caller from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials.",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None or not credentials.credentials:
        raise credentials_exception

    payload = verify_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    subject = str(payload.get("sub") or "").strip()
    if not subject:
        raise credentials_exception

    return AdminPrincipal(
        subject=subject,
        is_admin=_payload_is_admin(payload),
        email=payload.get("email"),
    )


async def require_admin(principal: AdminPrincipal = Depends(get_current_principal)) -> AdminPrincipal:
    """Admin-only routes."""
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Administrator access required.")
    return principal
