"""Salary submission, voting and moderation service."""
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from kithu.database import utcnow
from kithu.errors import NotFound
from kithu.models.salary import SalarySubmission, SalaryVote
from kithu.schemas.salary import SalarySubmissionCreate
from kithu.services.statistics import summarize
from kithu.services.stores import store_errors

logger = logging.getLogger(__name__)

ANONYMOUS_COMPANY = "Anonymous"


def _get_submission(db: Session, submission_id: str) -> SalarySubmission:
    with store_errors(db, "load salary submission"):
        submission = db.get(SalarySubmission, submission_id)
    if submission is None:
        raise NotFound("Salary submission not found")
    return submission


def create_submission(db: Session, data: SalarySubmissionCreate, user_email: str) -> SalarySubmission:
    """Store a new submission; every submission starts out PENDING."""
    submission = SalarySubmission(
        country=data.country,
        company=data.company,
        role=data.role,
        level=data.level,
        experience_years=data.experience_years,
        salary_amount=data.salary_amount,
        currency=data.currency,
        period=data.period,
        is_anonymous=data.is_anonymous,
        status="PENDING",
        user_email=user_email,
        submitted_at=utcnow(),
    )
    with store_errors(db, "create salary submission"):
        db.add(submission)
        db.commit()
    logger.info(f"Salary submission {submission.id} created (PENDING)")
    return submission


def public_view(submission: SalarySubmission) -> dict:
    """Submission fields safe to publish; company is masked for anonymous posts."""
    return {
        "id": submission.id,
        "country": submission.country,
        "company": ANONYMOUS_COMPANY if submission.is_anonymous else submission.company,
        "role": submission.role,
        "level": submission.level,
        "experience_years": submission.experience_years,
        "salary_amount": submission.salary_amount,
        "currency": submission.currency,
        "period": submission.period,
        "is_anonymous": submission.is_anonymous,
        "status": submission.status,
        "submitted_at": submission.submitted_at,
    }


def list_submissions(db: Session) -> list[dict]:
    """All submissions, newest first."""
    with store_errors(db, "list salary submissions"):
        submissions = db.query(SalarySubmission).order_by(SalarySubmission.submitted_at.desc()).all()
    return [public_view(s) for s in submissions]


def get_submission_detail(db: Session, submission_id: str) -> dict:
    """Public view of a submission plus its vote tallies."""
    submission = _get_submission(db, submission_id)

    with store_errors(db, "count salary votes"):
        tallies = dict(
            db.query(SalaryVote.is_upvote, func.count(SalaryVote.id))
            .filter(SalaryVote.salary_submission_id == submission_id)
            .group_by(SalaryVote.is_upvote)
            .all()
        )
    upvotes = tallies.get(True, 0)
    downvotes = tallies.get(False, 0)

    return {
        **public_view(submission),
        "upvotes": upvotes,
        "downvotes": downvotes,
        "trust_score": upvotes - downvotes,
    }


def cast_vote(db: Session, submission_id: str, user_email: str, is_upvote: bool) -> SalaryVote:
    """Record a vote; voting again replaces the user's previous vote."""
    _get_submission(db, submission_id)

    with store_errors(db, "cast salary vote"):
        vote = db.query(SalaryVote).filter(
            SalaryVote.salary_submission_id == submission_id,
            SalaryVote.user_email == user_email,
        ).first()

        if vote:
            vote.is_upvote = is_upvote
            vote.voted_at = utcnow()
        else:
            vote = SalaryVote(
                salary_submission_id=submission_id,
                user_email=user_email,
                is_upvote=is_upvote,
                voted_at=utcnow(),
            )
            db.add(vote)
        db.commit()
    return vote


def update_status(db: Session, submission_id: str, status: str) -> SalarySubmission:
    """Move a submission between PENDING, APPROVED and REJECTED."""
    submission = _get_submission(db, submission_id)
    previous = submission.status

    with store_errors(db, "update salary status"):
        submission.status = status
        db.commit()
    logger.info(f"Salary submission {submission_id} status {previous} -> {status}")
    return submission


def get_statistics(
    db: Session,
    country: str | None = None,
    role: str | None = None,
    level: str | None = None,
) -> dict:
    """Statistics over APPROVED submissions matching the given filters."""
    query = db.query(SalarySubmission.salary_amount).filter(SalarySubmission.status == "APPROVED")
    if country:
        query = query.filter(SalarySubmission.country == country)
    if role:
        query = query.filter(SalarySubmission.role == role)
    if level:
        query = query.filter(SalarySubmission.level == level)

    with store_errors(db, "load salary statistics"):
        amounts = [float(amount) for (amount,) in query.all()]
    return summarize(amounts)
