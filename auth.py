"""
Owner authentication routes and dependencies
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Header, Cookie
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import logging

from auth_utils import verify_password, create_jwt, decode_jwt
from config import settings

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/auth", tags=["auth"])

# JWT expiration is 7 days = 604800 seconds
COOKIE_MAX_AGE = 604800


class LoginRequest(BaseModel):
    email: str
    password: str


def _set_auth_cookie(response: JSONResponse, token: str, max_age: int) -> None:
    response.set_cookie(
        key="auth_token",
        value=token,
        httponly=True,
        secure=True,
        samesite="Lax",
        max_age=max_age
    )


def _owner_login_configured() -> bool:
    return bool(settings.owner_email and settings.owner_password_hash and settings.jwt_secret_key)


@auth_router.post("/login")
async def login(request: LoginRequest):
    """Log the catalog owner in and set the auth_token cookie"""
    if not _owner_login_configured():
        logger.warning("Owner login attempted but OWNER_EMAIL/OWNER_PASSWORD_HASH/JWT_SECRET_KEY are not set")
        raise HTTPException(status_code=503, detail="Owner login is not configured")

    if request.email.strip().lower() != settings.owner_email.strip().lower():
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(request.password, settings.owner_password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = create_jwt(settings.owner_user_id)

    response = JSONResponse(
        content={
            "ok": True,
            "user_id": settings.owner_user_id
        }
    )
    _set_auth_cookie(response, token, COOKIE_MAX_AGE)
    logger.info("Owner logged in")
    return response


@auth_router.post("/logout")
async def logout():
    """Logout and clear auth token cookie"""
    response = JSONResponse(
        content={
            "ok": True,
            "message": "Logged out successfully"
        }
    )
    # Clear the auth_token cookie by setting max_age=0
    _set_auth_cookie(response, "", 0)
    return response


# Dependency for owner-only routes
async def get_current_owner(
    auth_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    """
    Dependency function to get the authenticated owner.

    Authentication priority:
    1. Check auth_token cookie first (httpOnly cookie set by login)
    2. Fallback to Authorization header (Bearer token) for API consumers
    3. Raise 401 if neither is found
    """
    token = None
    if auth_token:
        token = auth_token
    elif authorization and authorization.startswith("Bearer "):
        token = authorization.replace("Bearer ", "").strip()

    if not token:
        raise HTTPException(status_code=401, detail="Missing authentication token")

    if not settings.jwt_secret_key:
        raise HTTPException(status_code=401, detail="Authentication is not configured")

    payload = decode_jwt(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    # Single-owner catalog: only the configured owner id is accepted
    if user_id != settings.owner_user_id:
        raise HTTPException(status_code=403, detail="Not the catalog owner")

    return {
        "user_id": user_id,
        "email": settings.owner_email,
    }


@auth_router.get("/me")
async def get_current_owner_info(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    auth_token: Optional[str] = Cookie(None),
):
    """Get the logged-in owner from the JWT token"""
    owner = await get_current_owner(auth_token=auth_token, authorization=authorization)
    return {"ok": True, **owner}
