"""
Admin authentication — password login issuing a JWT.

Endpoints:
    POST /api/admin/login   → verify ADMIN_PASSWORD, return token + set cookie
    POST /api/admin/logout  → clear the JWT cookie

The token is accepted from the ``Authorization: Bearer`` header or the
httponly cookie; ``require_admin`` guards every admin route.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse
from jose import JWTError, jwt

from app.config import settings
from app.schemas.admin import AdminLogin, Token

router = APIRouter(prefix="/api/admin", tags=["auth"])

COOKIE_KEY = "admin_token"
ADMIN_SUBJECT = "admin"


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════

def create_access_token(data: dict) -> str:
    """Create a signed JWT with an expiry claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _ensure_admin_enabled() -> None:
    reason = settings.admin_unavailable_reason()
    if reason:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=reason)


def _token_from_request(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return request.cookies.get(COOKIE_KEY)


async def require_admin(request: Request) -> str:
    """
    Reject the request with 401 unless it carries a valid admin JWT.

    Answers 503 while admin access is switched off (no ADMIN_PASSWORD, or
    the built-in SECRET_KEY outside DEBUG), so tokens signed with a known
    key are never honoured.
    """
    _ensure_admin_enabled()
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    if payload.get("sub") != ADMIN_SUBJECT:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return ADMIN_SUBJECT


# ═══════════════════════════════════════════════════════════════
#  Login / logout
# ═══════════════════════════════════════════════════════════════

@router.post("/login", response_model=Token)
async def login(body: AdminLogin):
    """Exchange the admin password for a JWT."""
    _ensure_admin_enabled()
    if not secrets.compare_digest(body.password.encode(), settings.ADMIN_PASSWORD.encode()):
        raise HTTPException(status_code=401, detail="Wrong password")

    token = create_access_token({"sub": ADMIN_SUBJECT})
    response = JSONResponse(Token(access_token=token).model_dump())
    response.set_cookie(
        key=COOKIE_KEY,
        value=token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=not settings.DEBUG,
    )
    return response


@router.post("/logout")
async def logout():
    """Clear the admin cookie."""
    response = JSONResponse({"message": "Logged out"})
    response.delete_cookie(key=COOKIE_KEY)
    return response
