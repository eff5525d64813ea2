"""Authentication/session models."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from kithu.database import Base


class RefreshToken(Base):
    """Tracks issued refresh tokens for rotation and revocation.

    Only a SHA-256 digest of the opaque token value is stored. Rows are
    append-only: the single permitted mutation is setting ``revoked_at``.
    """

    __tablename__ = "refresh_tokens"
    __table_args__ = (
        Index("ix_refresh_tokens_user_active", "user_id", "revoked_at"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime)
    rotated_from_id = Column(String(36), ForeignKey("refresh_tokens.id", ondelete="SET NULL"))

    user = relationship("User", back_populates="refresh_tokens")

    def is_active(self, now: datetime) -> bool:
        return self.revoked_at is None and now < self.expires_at
