"""Session lifecycle: signup, login, refresh-token rotation and logout.

Each refresh token moves ACTIVE -> ROTATED (used by ``refresh``) or
ACTIVE -> REVOKED (``logout``) and never becomes active again.
"""
from dataclasses import dataclass
import logging

from kithu.errors import DuplicateUser, InvalidCredentials, InvalidOrExpiredToken
from kithu.models.user import User
from kithu.services.passwords import get_password_hash, verify_password
from kithu.services.stores import RefreshTokenStore, UserStore
from kithu.services.tokens import AccessTokenClaims, TokenIssuer, hash_refresh_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    access_token: str
    refresh_token: str
    email: str


def normalize_email(email: str) -> str:
    """Emails are matched case-insensitively and stored lowercase."""
    return email.strip().lower()


class SessionService:
    """Orchestrates the credential store, refresh-token store and token issuer.

    Holds no mutable state of its own, so one instance may serve any number
    of concurrent requests as long as each gets its own stores.
    """

    def __init__(self, users: UserStore, refresh_tokens: RefreshTokenStore, issuer: TokenIssuer):
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.issuer = issuer

    def register(self, email: str, password: str) -> AuthResult:
        email = normalize_email(email)
        if self.users.find_by_email(email) is not None:
            raise DuplicateUser()

        user = self.users.create(email, get_password_hash(password))
        logger.info(f"Registered user {user.id}")
        return self._start_session(user)

    def login(self, email: str, password: str) -> AuthResult:
        user = self.users.find_by_email(normalize_email(email))
        if not verify_password(password, user.password_hash if user else None):
            logger.info("Rejected login with invalid credentials")
            raise InvalidCredentials()

        logger.info(f"User {user.id} logged in")
        return self._start_session(user)

    def refresh(self, presented_token: str) -> AuthResult:
        """Exchange an active refresh token for a new token pair.

        The presented token is single-use: a second exchange of the same
        value fails even if it races the first.
        """
        if not presented_token:
            raise InvalidOrExpiredToken()

        now = self.issuer.clock()
        stored = self.refresh_tokens.find(hash_refresh_token(presented_token))
        if stored is None:
            raise InvalidOrExpiredToken()
        if not stored.is_active(now):
            if stored.revoked_at is not None:
                logger.warning(f"Replay of inactive refresh token {stored.id} for user {stored.user_id}")
            raise InvalidOrExpiredToken()

        user = self.users.find_by_id(stored.user_id)
        if user is None:
            raise InvalidOrExpiredToken()

        new_refresh_token = self.issuer.issue_refresh_token()
        successor = self.refresh_tokens.rotate(
            stored.id,
            user.id,
            hash_refresh_token(new_refresh_token),
            self.issuer.refresh_token_expiry(now),
            now,
        )
        logger.debug(f"Rotated refresh token {stored.id} -> {successor.id}")

        return AuthResult(
            access_token=self.issuer.issue_access_token(user),
            refresh_token=new_refresh_token,
            email=user.email,
        )

    def logout(self, presented_token: str | None) -> None:
        """Revoke the presented refresh token; never fails for bad input."""
        if not presented_token:
            return

        stored = self.refresh_tokens.find(hash_refresh_token(presented_token))
        if stored is None:
            return

        if self.refresh_tokens.revoke(stored.id, self.issuer.clock()):
            logger.info(f"User {stored.user_id} logged out")

    def authenticate(self, access_token: str) -> AccessTokenClaims:
        return self.issuer.verify_access_token(access_token)

    def _start_session(self, user: User) -> AuthResult:
        now = self.issuer.clock()
        refresh_token = self.issuer.issue_refresh_token()
        self.refresh_tokens.create(
            user.id,
            hash_refresh_token(refresh_token),
            self.issuer.refresh_token_expiry(now),
            now,
        )
        return AuthResult(
            access_token=self.issuer.issue_access_token(user),
            refresh_token=refresh_token,
            email=user.email,
        )
