"""
Auth API routes.

Sign-in, sign-up and sign-out, plus the dependencies other routers
use to resolve the calling user.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from typing import Optional
import structlog

from models.auth import AuthSession, Credentials
from services.auth_service import get_auth_service
from services.workspace_service import Workspace, close_workspace, get_workspace
from exceptions import AppError, AuthenticationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

bearer = HTTPBearer(auto_error=False)


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# DEPENDENCIES
# ===================

def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)
) -> str:
    """Resolve the bearer token to a user id."""
    if credentials is None:
        raise AuthenticationError("Missing access token")
    return get_auth_service().get_user_id(credentials.credentials)


def get_current_workspace(user_id: str = Depends(get_current_user_id)) -> Workspace:
    """Workspace of the calling user."""
    return get_workspace(user_id)


# ===================
# ROUTES
# ===================

@router.post("/sign-in", response_model=AuthSession)
async def sign_in(data: Credentials):
    """
    Sign in with email and password.

    Raises:
        401: Wrong credentials
    """
    try:
        return get_auth_service().sign_in(data)
    except Exception as e:
        return handle_error(e)


@router.post("/sign-up", response_model=AuthSession, status_code=201)
async def sign_up(data: Credentials):
    """
    Create an account.

    Raises:
        401: Account could not be created
    """
    try:
        return get_auth_service().sign_up(data)
    except Exception as e:
        return handle_error(e)


@router.post("/sign-out", status_code=204)
async def sign_out(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)):
    """
    Revoke the caller's session and drop the cached workspace.

    Raises:
        401: Missing or invalid token
        503: Auth service failed to revoke the session
    """
    user_id = get_current_user_id(credentials)
    close_workspace(user_id)
    try:
        get_auth_service().sign_out(credentials.credentials)
    except Exception as e:
        return handle_error(e)
