"""Credential and refresh-token stores.

The session service only talks to the ``UserStore`` and
``RefreshTokenStore`` protocols; the SQLAlchemy classes below are the
production implementations.
"""
from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from kithu.errors import DuplicateUser, InvalidOrExpiredToken, StoreUnavailable
from kithu.models.auth import RefreshToken
from kithu.models.user import User

logger = logging.getLogger(__name__)


class UserStore(Protocol):
    def find_by_email(self, email: str) -> User | None: ...

    def find_by_id(self, user_id: str) -> User | None: ...

    def create(self, email: str, password_hash: str) -> User: ...


class RefreshTokenStore(Protocol):
    def find(self, token_hash: str) -> RefreshToken | None: ...

    def create(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
        rotated_from_id: str | None = None,
    ) -> RefreshToken: ...

    def revoke(self, token_id: str, at: datetime) -> bool: ...

    def rotate(
        self,
        token_id: str,
        user_id: str,
        new_token_hash: str,
        expires_at: datetime,
        at: datetime,
    ) -> RefreshToken: ...


@contextmanager
def store_errors(db: Session, operation: str) -> Generator[None, None, None]:
    """Roll back and surface database failures as ``StoreUnavailable``."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(f"Store operation failed: {operation}")
        raise StoreUnavailable() from exc


class SqlUserStore:
    """``UserStore`` backed by the ``users`` table."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> User | None:
        with store_errors(self.db, "find user by email"):
            return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: str) -> User | None:
        with store_errors(self.db, "find user by id"):
            return self.db.get(User, user_id)

    def create(self, email: str, password_hash: str) -> User:
        user = User(email=email, password_hash=password_hash)
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateUser() from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Store operation failed: create user")
            raise StoreUnavailable() from exc
        return user


class SqlRefreshTokenStore:
    """``RefreshTokenStore`` backed by the ``refresh_tokens`` table."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, token_hash: str) -> RefreshToken | None:
        with store_errors(self.db, "find refresh token"):
            return self.db.query(RefreshToken).filter(RefreshToken.token_hash == token_hash).first()

    def create(
        self,
        user_id: str,
        token_hash: str,
        expires_at: datetime,
        created_at: datetime,
        rotated_from_id: str | None = None,
    ) -> RefreshToken:
        token = RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            created_at=created_at,
            expires_at=expires_at,
            rotated_from_id=rotated_from_id,
        )
        with store_errors(self.db, "create refresh token"):
            self.db.add(token)
            self.db.commit()
        return token

    def _mark_revoked(self, token_id: str, at: datetime) -> bool:
        """Compare-and-set ``revoked_at`` on a still-active token."""
        result = self.db.execute(
            update(RefreshToken)
            .where(
                RefreshToken.id == token_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > at,
            )
            .values(revoked_at=at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def revoke(self, token_id: str, at: datetime) -> bool:
        with store_errors(self.db, "revoke refresh token"):
            revoked = self._mark_revoked(token_id, at)
            self.db.commit()
        return revoked

    def rotate(
        self,
        token_id: str,
        user_id: str,
        new_token_hash: str,
        expires_at: datetime,
        at: datetime,
    ) -> RefreshToken:
        """Revoke ``token_id`` and insert its successor in one transaction.

        Only one caller can win the conditional update; the loser sees zero
        affected rows and nothing is written.
        """
        with store_errors(self.db, "rotate refresh token"):
            if not self._mark_revoked(token_id, at):
                self.db.rollback()
                raise InvalidOrExpiredToken()

            successor = RefreshToken(
                user_id=user_id,
                token_hash=new_token_hash,
                created_at=at,
                expires_at=expires_at,
                rotated_from_id=token_id,
            )
            self.db.add(successor)
            self.db.commit()
        return successor
