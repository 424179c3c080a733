"""Authentication routes.

Endpoints:
- POST /api/v1/auth/login: Password login, returns access token + refresh cookie
- POST /api/v1/auth/signup: Register a local account
- POST /api/v1/auth/refresh: Exchange the refresh cookie for a new token pair
- POST /api/v1/auth/forgot-password: Request a password reset email
- POST /api/v1/auth/reset-password: Redeem a reset token
- GET /api/v1/auth/me: Current user from the bearer access token
- GET /api/v1/auth/{provider}: Redirect to an OAuth provider
- GET /api/v1/auth/{provider}/callback: Complete OAuth sign-in
"""

import logging
import os
import secrets
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status
from fastapi.responses import RedirectResponse

from api.dependencies import (
    get_cache,
    get_identity_provider,
    get_notifier,
    get_optional_user_repo,
    get_user_repo,
)
from api.models import (
    AccessTokenResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    UserEnvelope,
    UserResponse,
)
from api.security import get_current_user_required
from domain.model.errors import (
    AuthenticationError,
    DomainError,
    DuplicateError,
    RateLimitError,
    ValidationError,
)
from domain.model.user import User
from port.cache import CachePort
from port.identity_provider import IdentityProviderPort
from port.notifier import NotifierPort
from port.user_repository import UserRepository
from services import auth_service, password_reset_service, token_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_PATH = "/api/v1/auth/refresh"
OAUTH_STATE_COOKIE_NAME = "oauth_state"
OAUTH_STATE_MAX_AGE_SECONDS = 600

_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (RateLimitError, status.HTTP_429_TOO_MANY_REQUESTS),
]


def _to_http(error: DomainError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def _secure_cookies() -> bool:
    return os.getenv("ENVIRONMENT", "development") == "production"


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Attach the refresh token as an HttpOnly cookie scoped to the refresh endpoint."""
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=int(token_service.REFRESH_TOKEN_TTL.total_seconds()),
        path=REFRESH_COOKIE_PATH,
        httponly=True,
        secure=_secure_cookies(),
        samesite="strict",
    )


async def _issue_session(response: Response, user: User) -> LoginResponse:
    try:
        tokens = await token_service.generate_tokens({"sub": user.id})
    except DomainError as e:
        raise _to_http(e)

    set_refresh_cookie(response, tokens.refresh_token)
    return LoginResponse(user=UserResponse.from_domain(user), access_token=tokens.access_token)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    response: Response,
    repo: UserRepository = Depends(get_user_repo),
):
    """Login with email and password."""
    try:
        user = await auth_service.login(repo, request.email, request.password)
    except DomainError as e:
        raise _to_http(e)

    return await _issue_session(response, user)


@router.post("/signup", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    repo: UserRepository = Depends(get_user_repo),
    cache: CachePort = Depends(get_cache),
):
    """Register a local account."""
    try:
        user = await auth_service.signup(repo, cache, request.email, request.password)
    except DomainError as e:
        raise _to_http(e)

    return UserEnvelope(user=UserResponse.from_domain(user))


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh(
    response: Response,
    refresh_token: Optional[str] = Cookie(default=None),
    repo: UserRepository = Depends(get_user_repo),
):
    """Exchange the refresh cookie for a new access token and a rotated refresh cookie."""
    if not refresh_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing refresh token")

    try:
        tokens = await auth_service.refresh_tokens(repo, refresh_token)
    except DomainError as e:
        raise _to_http(e)

    set_refresh_cookie(response, tokens.refresh_token)
    return AccessTokenResponse(access_token=tokens.access_token)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    repo: Optional[UserRepository] = Depends(get_optional_user_repo),
    notifier: NotifierPort = Depends(get_notifier),
):
    """Request a password reset email. The answer never reveals whether the account exists."""
    if repo is None:
        logger.error("Forgot password skipped: database unavailable")
        return MessageResponse(message=password_reset_service.FORGOT_PASSWORD_MESSAGE)

    try:
        result = await password_reset_service.forgot_password(repo, notifier, request.email)
    except DomainError as e:
        raise _to_http(e)
    return MessageResponse(**result)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    repo: UserRepository = Depends(get_user_repo),
    notifier: NotifierPort = Depends(get_notifier),
):
    """Set a new password using the token from the reset email."""
    try:
        result = await password_reset_service.reset_password(
            repo, notifier, request.token, request.new_password,
        )
    except DomainError as e:
        raise _to_http(e)
    return MessageResponse(**result)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user_required)):
    """Get current authenticated user info."""
    return UserResponse.from_domain(current_user)


@router.get("/{provider}")
async def oauth_start(identity_provider: IdentityProviderPort = Depends(get_identity_provider)):
    """Redirect the browser to the provider's consent screen."""
    state = secrets.token_urlsafe(24)
    redirect = RedirectResponse(identity_provider.authorization_url(state))
    # Lax: the provider's redirect back is a cross-site top-level navigation
    redirect.set_cookie(
        key=OAUTH_STATE_COOKIE_NAME,
        value=state,
        max_age=OAUTH_STATE_MAX_AGE_SECONDS,
        httponly=True,
        secure=_secure_cookies(),
        samesite="lax",
    )
    return redirect


@router.get("/{provider}/callback", response_model=LoginResponse)
async def oauth_callback(
    response: Response,
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1),
    oauth_state: Optional[str] = Cookie(default=None),
    identity_provider: IdentityProviderPort = Depends(get_identity_provider),
    repo: UserRepository = Depends(get_user_repo),
):
    """Complete OAuth sign-in: verify the identity, resolve the account, issue tokens."""
    if not oauth_state or not secrets.compare_digest(oauth_state, state):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid OAuth state")

    try:
        profile = await identity_provider.fetch_profile(code)
        user = await auth_service.find_or_create_oauth_user(repo, profile)
    except DomainError as e:
        raise _to_http(e)

    response.delete_cookie(OAUTH_STATE_COOKIE_NAME)
    return await _issue_session(response, user)
