"""Authentication API endpoints."""
import logging

from fastapi import APIRouter, Depends, Request, Response

from kithu.api.deps import get_current_user, get_session_service, get_settings
from kithu.api.errors import error_response
from kithu.config import Settings
from kithu.errors import InvalidOrExpiredToken, StoreUnavailable
from kithu.schemas.auth import AuthResponse, CurrentUserResponse, MessageResponse, UserLogin, UserRegister
from kithu.services.sessions import AuthResult, SessionService
from kithu.services.tokens import AccessTokenClaims

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def set_refresh_cookie(response: Response, settings: Settings, refresh_token: str) -> None:
    """Issue secure HttpOnly refresh-token cookie."""
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        httponly=True,
        secure=settings.refresh_cookie_secure,
        samesite=settings.refresh_cookie_samesite,
        path=settings.refresh_cookie_path,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
    )


def clear_refresh_cookie(response: Response, settings: Settings) -> None:
    """Clear refresh-token cookie."""
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path=settings.refresh_cookie_path,
        secure=settings.refresh_cookie_secure,
        httponly=True,
        samesite=settings.refresh_cookie_samesite,
    )


def _session_response(response: Response, settings: Settings, result: AuthResult) -> AuthResponse:
    set_refresh_cookie(response, settings, result.refresh_token)
    return AuthResponse(access_token=result.access_token, email=result.email)


@router.post("/signup", response_model=AuthResponse)
def signup(
    credentials: UserRegister,
    response: Response,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    """Register a new user and start a session."""
    result = sessions.register(credentials.email, credentials.password)
    return _session_response(response, settings, result)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    response: Response,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    """Login and get tokens."""
    result = sessions.login(credentials.email, credentials.password)
    return _session_response(response, settings, result)


@router.post("/refresh", response_model=AuthResponse)
def refresh_tokens(
    request: Request,
    response: Response,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    """Rotate the refresh-token cookie and issue a new access token."""
    refresh_cookie = request.cookies.get(settings.refresh_cookie_name)
    try:
        result = sessions.refresh(refresh_cookie or "")
    except InvalidOrExpiredToken as exc:
        failure = error_response(exc)
        clear_refresh_cookie(failure, settings)
        return failure

    return _session_response(response, settings, result)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    """Revoke the refresh token in the cookie. Always succeeds."""
    try:
        sessions.logout(request.cookies.get(settings.refresh_cookie_name))
    except StoreUnavailable:
        logger.warning("Logout could not revoke refresh token; clearing cookie anyway")

    clear_refresh_cookie(response, settings)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=CurrentUserResponse)
def read_current_user(current_user: AccessTokenClaims = Depends(get_current_user)):
    """Identity of the caller's access token."""
    return CurrentUserResponse(id=current_user.user_id, email=current_user.email)
