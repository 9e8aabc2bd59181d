"""Sign-up, sign-in and role navigation endpoints.

Sign-in and sign-up run under a fixed wall-clock ceiling; exceeding it
answers 504.
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials

from eduportal.config.app_config import load_app_config
from eduportal.core import auth
from eduportal.core.auth import (
    AlreadyRegisteredError,
    AuthError,
    InvalidCredentialsError,
    WeakPasswordError,
)
from eduportal.core.navigation import menu_for
from eduportal.db.profiles_repository import ProfileRecord
from eduportal.web.dependencies import bearer_scheme, get_current_user
from eduportal.web.schemas import (
    NavigationResponse,
    NavItemResponse,
    ProfileResponse,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])

TIMEOUT_MESSAGE = "O servidor demorou para responder. Tente novamente."


async def _with_ceiling(fn, *args):
    """Run a blocking auth call in a thread, bounded by auth.timeout_seconds."""
    timeout = load_app_config().auth.timeout_seconds
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, *args), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning("auth.timeout", timeout=timeout)
        raise HTTPException(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=TIMEOUT_MESSAGE
        ) from e


def _status_for(error: AuthError) -> int:
    if isinstance(error, InvalidCredentialsError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(error, AlreadyRegisteredError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, WeakPasswordError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_403_FORBIDDEN


@router.post(
    "/auth/signup", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED
)
async def sign_up(body: SignUpRequest) -> ProfileResponse:
    """Register a student account."""
    try:
        profile = await _with_ceiling(auth.sign_up, body.email, body.password, body.name)
    except AuthError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e
    return ProfileResponse.model_validate(profile)


@router.post("/auth/signin", response_model=SessionResponse)
async def sign_in(body: SignInRequest) -> SessionResponse:
    """Exchange email and password for a bearer token."""
    try:
        session = await _with_ceiling(auth.sign_in, body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e
    return SessionResponse.model_validate(session)


@router.post("/auth/signout", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> None:
    if credentials is not None:
        auth.sign_out(credentials.credentials)


@router.get("/me", response_model=ProfileResponse)
async def me(user: ProfileRecord = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse.model_validate(user)


@router.get("/me/navigation", response_model=NavigationResponse)
async def navigation(user: ProfileRecord = Depends(get_current_user)) -> NavigationResponse:
    """Menu entries for the caller's role."""
    return NavigationResponse(
        role=user.role,
        items=[NavItemResponse.model_validate(item) for item in menu_for(user.role)],
    )
