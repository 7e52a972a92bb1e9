from enum import Enum
from typing import Optional, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SubmissionRequest(BaseModel):
    """Lead form payload. Forwarded to the webhook unchanged."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    companyName: str = Field(..., min_length=1)
    companyUrl: str = Field(..., min_length=1)

    @field_validator("name", "email", "companyName", "companyUrl")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class SubmissionAck(BaseModel):
    status: str = "submitted"


class ErrorResponse(BaseModel):
    error: str


# Company Models
class CompanyRecord(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: Optional[str] = None
    foundedYear: Optional[Any] = None
    industry: Optional[Any] = None
    location: Optional[Any] = None
    size: Optional[Any] = None
    email: Optional[Any] = None
    phone: Optional[Any] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    rating: Optional[Any] = None
    reviewSource: Optional[Any] = None
    pros: Optional[Any] = None
    cons: Optional[Any] = None
    services: Optional[Any] = None
    references: Optional[Any] = None
    timestamp: Optional[Any] = None
    embedding: Optional[Any] = None
    summary: Optional[Any] = None


COMPANY_FIELDS = list(CompanyRecord.model_fields)


class MatchStrategy(str, Enum):
    EXACT = "exact"
    QUERY_CONTAINS_NAME = "query_contains_name"
    NAME_CONTAINS_QUERY = "name_contains_query"


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"
    FATAL_ERROR = "fatal_error"


class LookupOutcome(BaseModel):
    status: LookupStatus
    record: Optional[CompanyRecord] = None
    message: Optional[str] = None

    @classmethod
    def found(cls, record: CompanyRecord) -> "LookupOutcome":
        return cls(status=LookupStatus.FOUND, record=record)

    @classmethod
    def not_found(cls) -> "LookupOutcome":
        return cls(status=LookupStatus.NOT_FOUND, message="Company not found")

    @classmethod
    def transient(cls, message: str) -> "LookupOutcome":
        return cls(status=LookupStatus.TRANSIENT_ERROR, message=message)

    @classmethod
    def fatal(cls, message: str) -> "LookupOutcome":
        return cls(status=LookupStatus.FATAL_ERROR, message=message)
