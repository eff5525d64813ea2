"""Access and refresh token issuing.

Access tokens are HS256 JWTs verified without touching the database.
Refresh tokens are opaque random strings; only their SHA-256 digest is
persisted, by the session service.
"""
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import hashlib
import secrets
import uuid

from jose import JWTError, jwt

from kithu.config import Settings
from kithu.database import utcnow
from kithu.errors import ConfigurationError, InvalidOrExpiredToken
from kithu.models.user import User

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_BYTES = 64  # 512 bits


@dataclass(frozen=True)
class AccessTokenClaims:
    """Identity asserted by a verified access token."""

    user_id: str
    email: str
    token_id: str
    expires_at: datetime


def hash_refresh_token(token: str) -> str:
    """Hash refresh token value before persisting or looking it up."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _timestamp(value: datetime) -> int:
    return int(value.replace(tzinfo=timezone.utc).timestamp())


class TokenIssuer:
    """Mints signed access tokens and opaque refresh tokens."""

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = utcnow):
        if not settings.secret_key:
            raise ConfigurationError("SECRET_KEY must be set.")
        if not settings.jwt_issuer or not settings.jwt_audience:
            raise ConfigurationError("JWT issuer and audience must be set.")
        if settings.access_token_expire_minutes <= 0 or settings.refresh_token_expire_days <= 0:
            raise ConfigurationError("Token lifetimes must be positive.")

        self._secret_key = settings.secret_key
        self._algorithm = settings.algorithm
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._access_ttl = timedelta(minutes=settings.access_token_expire_minutes)
        self._refresh_ttl = timedelta(days=settings.refresh_token_expire_days)
        self.clock = clock

    def issue_access_token(self, user: User) -> str:
        """Create a JWT access token for ``user``."""
        now = self.clock()
        claims = {
            "sub": user.email,
            "id": user.id,
            "jti": str(uuid.uuid4()),
            "iat": _timestamp(now),
            "exp": _timestamp(now + self._access_ttl),
            "iss": self._issuer,
            "aud": self._audience,
            "type": ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def issue_refresh_token(self) -> str:
        """Create an opaque, unguessable refresh token value."""
        return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)

    def refresh_token_expiry(self, issued_at: datetime) -> datetime:
        return issued_at + self._refresh_ttl

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """Validate signature, issuer, audience and expiry of an access token.

        Expiry is checked against this issuer's clock rather than inside
        python-jose so that a token is valid strictly before ``exp``.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_exp": False, "require_exp": True, "require_sub": True, "require_jti": True},
            )
        except JWTError as exc:
            raise InvalidOrExpiredToken() from exc

        if payload.get("type") != ACCESS_TOKEN_TYPE or not payload.get("id"):
            raise InvalidOrExpiredToken()

        try:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc).replace(tzinfo=None)
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidOrExpiredToken() from exc

        if self.clock() >= expires_at:
            raise InvalidOrExpiredToken()

        return AccessTokenClaims(
            user_id=payload["id"],
            email=payload["sub"],
            token_id=payload["jti"],
            expires_at=expires_at,
        )
