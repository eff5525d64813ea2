"""Salary API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kithu.api.deps import get_current_user, get_db
from kithu.schemas.auth import MessageResponse
from kithu.schemas.salary import (
    SalaryStatsResponse,
    SalarySubmissionCreate,
    SalarySubmissionDetail,
    SalarySubmissionResponse,
    StatusUpdateRequest,
    VoteRequest,
)
from kithu.services import salaries
from kithu.services.tokens import AccessTokenClaims

router = APIRouter(prefix="/salaries", tags=["salaries"])


@router.get("", response_model=list[SalarySubmissionResponse])
def list_salaries(
    db: Session = Depends(get_db),
    current_user: AccessTokenClaims = Depends(get_current_user),
):
    """List all submissions, newest first."""
    return salaries.list_submissions(db)


@router.post("", response_model=MessageResponse)
def submit_salary(
    submission: SalarySubmissionCreate,
    db: Session = Depends(get_db),
    current_user: AccessTokenClaims = Depends(get_current_user),
):
    """Share a salary. It stays PENDING until moderated."""
    salaries.create_submission(db, submission, current_user.email)
    return MessageResponse(message="Submitted (PENDING)")


@router.get("/stats", response_model=SalaryStatsResponse, response_model_exclude_none=True)
def get_salary_stats(
    country: str | None = None,
    role: str | None = None,
    level: str | None = None,
    db: Session = Depends(get_db),
):
    """Statistics over approved salaries (no auth required)."""
    return salaries.get_statistics(db, country=country, role=role, level=level)


@router.get("/{submission_id}", response_model=SalarySubmissionDetail)
def get_salary(submission_id: str, db: Session = Depends(get_db)):
    """Get one submission with its votes (no auth required)."""
    return salaries.get_submission_detail(db, submission_id)


@router.post("/{submission_id}/vote", response_model=MessageResponse)
def vote_on_salary(
    submission_id: str,
    vote: VoteRequest,
    db: Session = Depends(get_db),
    current_user: AccessTokenClaims = Depends(get_current_user),
):
    """Up- or down-vote a submission; voting again changes your vote."""
    salaries.cast_vote(db, submission_id, current_user.email, vote.is_upvote)
    return MessageResponse(message="Vote recorded")


@router.patch("/{submission_id}/status", response_model=MessageResponse)
def update_salary_status(
    submission_id: str,
    update: StatusUpdateRequest,
    db: Session = Depends(get_db),
    current_user: AccessTokenClaims = Depends(get_current_user),
):
    """Moderate a submission."""
    salaries.update_status(db, submission_id, update.status)
    return MessageResponse(message=f"Status updated to {update.status}")
