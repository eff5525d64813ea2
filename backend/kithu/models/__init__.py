"""SQLAlchemy models package."""
from kithu.models.user import User
from kithu.models.auth import RefreshToken
from kithu.models.salary import SalarySubmission, SalaryVote

__all__ = [
    "User",
    "RefreshToken",
    "SalarySubmission",
    "SalaryVote",
]
