"""User model."""
import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from kithu.database import Base, utcnow


class User(Base):
    """User account. Email is stored normalized (trimmed, lowercase)."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")
