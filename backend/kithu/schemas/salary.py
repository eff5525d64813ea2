"""Salary schemas. JSON field names are camelCase for the web client."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

SalaryStatus = Literal["PENDING", "APPROVED", "REJECTED"]
SalaryPeriod = Literal["Monthly", "Yearly"]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class SalarySubmissionCreate(CamelModel):
    """Request to share a salary. Any status sent by the client is ignored."""

    country: str = Field(..., min_length=1, max_length=100)
    company: str = Field(..., min_length=1, max_length=255)
    role: str = Field(..., min_length=1, max_length=255)
    level: str = Field("", max_length=50)
    experience_years: int = Field(0, ge=0, le=80)
    salary_amount: float = Field(..., gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    period: SalaryPeriod = "Yearly"
    is_anonymous: bool = True

    @field_validator("currency")
    @classmethod
    def uppercase_currency(cls, v: str) -> str:
        return v.upper()


class SalarySubmissionResponse(CamelModel):
    """Submission as listed."""

    id: str
    country: str
    company: str
    role: str
    level: str
    experience_years: int
    salary_amount: float
    currency: str
    period: str
    is_anonymous: bool
    status: str
    submitted_at: datetime


class SalarySubmissionDetail(SalarySubmissionResponse):
    """Submission with community votes."""

    upvotes: int
    downvotes: int
    trust_score: int


class VoteRequest(CamelModel):
    is_upvote: bool


class StatusUpdateRequest(CamelModel):
    status: SalaryStatus = "APPROVED"


class SalaryStatsResponse(CamelModel):
    """Aggregates over approved salaries; only ``count`` is set when empty."""

    count: int
    average: float | None = None
    median: float | None = None
    p25: float | None = None
    p75: float | None = None
