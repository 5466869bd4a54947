"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.ports import (
    BulkResult,
    EmailEntry,
    RegistrationRecord,
    RegistrationStatus,
)


class EntryRequest(BaseModel):
    """One registrant. Accepts firstName/lastName as well as snake_case."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")

    def to_entry(self) -> EmailEntry:
        return EmailEntry(email=self.email, first_name=self.first_name, last_name=self.last_name)


class ProcessRequest(BaseModel):
    """Request model for a single registration."""

    entry: EntryRequest
    event_id: str | None = Field(None, description="Event id (defaults to DEFAULT_EVENT_ID)")


class BulkRequest(BaseModel):
    """Request model for a bulk registration run."""

    entries: list[EntryRequest]
    event_id: str | None = Field(None, description="Event id (defaults to DEFAULT_EVENT_ID)")


class RecordResponse(BaseModel):
    """Registration record as stored."""

    id: str
    email: str
    first_name: str
    last_name: str
    event_id: str
    status: RegistrationStatus
    verification_code: str | None
    provider_response: dict[str, Any]
    error_message: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_record(cls, record: RegistrationRecord) -> "RecordResponse":
        return cls(
            id=record.id,
            email=record.email,
            first_name=record.first_name,
            last_name=record.last_name,
            event_id=record.event_id,
            status=record.status,
            verification_code=record.verification_code,
            provider_response=record.provider_response,
            error_message=record.error_message,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class FailureResponse(BaseModel):
    """One failed entry of a bulk run."""

    email: str
    error: str


class BulkResponse(BaseModel):
    """Response model for a bulk run."""

    successful: list[RecordResponse]
    failed: list[FailureResponse]

    @classmethod
    def from_result(cls, result: BulkResult) -> "BulkResponse":
        return cls(
            successful=[RecordResponse.from_record(r) for r in result.successful],
            failed=[FailureResponse(email=f.email, error=f.error) for f in result.failed],
        )


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
