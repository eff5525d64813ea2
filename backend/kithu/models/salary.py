"""Salary submission and vote models."""
import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint

from kithu.database import Base, utcnow


class SalarySubmission(Base):
    """A salary shared by a user; only APPROVED rows count towards stats."""

    __tablename__ = "salary_submissions"
    __table_args__ = (
        Index("ix_salary_submissions_filters", "status", "country", "role", "level"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    country = Column(String(100), nullable=False)
    company = Column(String(255), nullable=False)
    role = Column(String(255), nullable=False)
    level = Column(String(50), nullable=False, default="")  # Junior, Senior, Staff...
    experience_years = Column(Integer, nullable=False, default=0)
    salary_amount = Column(Numeric(14, 2, asdecimal=False), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    period = Column(String(10), nullable=False, default="Yearly")  # Monthly, Yearly
    is_anonymous = Column(Boolean, nullable=False, default=True)
    status = Column(String(10), nullable=False, default="PENDING")
    user_email = Column(String(255))
    submitted_at = Column(DateTime, nullable=False, default=utcnow, index=True)


class SalaryVote(Base):
    """One user's up/down vote on a submission."""

    __tablename__ = "salary_votes"
    __table_args__ = (
        UniqueConstraint("salary_submission_id", "user_email", name="uq_salary_votes_submission_user"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salary_submission_id = Column(
        String(36),
        ForeignKey("salary_submissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_email = Column(String(255), nullable=False)
    is_upvote = Column(Boolean, nullable=False)
    voted_at = Column(DateTime, nullable=False, default=utcnow)
