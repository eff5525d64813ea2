"""Shared FastAPI dependencies."""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from kithu.config import Settings
from kithu.database import get_db
from kithu.errors import InvalidOrExpiredToken
from kithu.services.sessions import SessionService
from kithu.services.stores import SqlRefreshTokenStore, SqlUserStore
from kithu.services.tokens import AccessTokenClaims, TokenIssuer

__all__ = [
    "get_current_user",
    "get_db",
    "get_session_service",
    "get_settings",
    "get_token_issuer",
]

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_session_service(
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> SessionService:
    """Session service bound to this request's database session."""
    return SessionService(SqlUserStore(db), SqlRefreshTokenStore(db), issuer)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AccessTokenClaims:
    """Identity from the Bearer access token, verified without a database lookup."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidOrExpiredToken("Not authenticated")
    return issuer.verify_access_token(credentials.credentials)
