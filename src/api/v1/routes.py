"""
API v1 routes.

Defines REST endpoints for the registration engine. Handlers are plain
``def`` functions: a run blocks on provider calls and mailbox polling, so
FastAPI executes them in its threadpool.
"""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from src.adapters.progress.console import ConsoleProgressReporter
from src.api.dependencies import (
    get_app_settings,
    get_progress_reporter,
    get_registration_service,
)
from src.api.models import (
    BulkRequest,
    BulkResponse,
    ErrorResponse,
    ProcessRequest,
    RecordResponse,
)
from src.config.settings import Settings
from src.domain.exceptions import (
    CodeNotFound,
    NotFound,
    ProviderError,
    RegistrationError,
    StoreUnavailable,
)
from src.domain.registration import RegistrationService

router = APIRouter(tags=["v1"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Registration not found"}}


def _http_error(exc: RegistrationError) -> HTTPException:
    """Map a domain error raised by a run to an HTTP error."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StoreUnavailable):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, CodeNotFound):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(exc, ProviderError):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=str(exc) or type(exc).__name__)


@router.post(
    "/registrations",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        502: {"model": ErrorResponse, "description": "Provider rejected a phase"},
        503: {"model": ErrorResponse, "description": "Record store unavailable"},
        504: {"model": ErrorResponse, "description": "Verification code never arrived"},
        422: {"description": "Validation error"},
    },
    summary="Register one entry",
    description="Register the entry for the event, retrieve the emailed "
    "verification code and sign in. The record is marked failed on any error.",
)
def process_one(
    request_data: ProcessRequest,
    service: RegistrationService = Depends(get_registration_service),
    reporter: ConsoleProgressReporter = Depends(get_progress_reporter),
    settings: Settings = Depends(get_app_settings),
) -> RecordResponse:
    """
    Run the full registration flow for a single entry.

    - **entry**: email, firstName, lastName
    - **event_id**: provider event id (optional)
    """
    entry = request_data.entry.to_entry()
    event_id = request_data.event_id or settings.default_event_id
    try:
        record = service.process_one(entry, event_id, reporter.for_entry(entry.email))
    except RegistrationError as exc:
        raise _http_error(exc) from None
    return RecordResponse.from_record(record)


@router.post(
    "/registrations/bulk",
    response_model=BulkResponse,
    summary="Register a batch of entries",
    description="Process entries one at a time, in order. Failures are "
    "reported per entry and never abort the batch.",
)
def process_many(
    request_data: BulkRequest,
    service: RegistrationService = Depends(get_registration_service),
    reporter: ConsoleProgressReporter = Depends(get_progress_reporter),
    settings: Settings = Depends(get_app_settings),
) -> BulkResponse:
    """Run the registration flow for every entry and return both lists."""
    entries = [item.to_entry() for item in request_data.entries]
    event_id = request_data.event_id or settings.default_event_id
    result = service.process_many(entries, event_id, reporter)
    return BulkResponse.from_result(result)


@router.get(
    "/registrations",
    response_model=list[RecordResponse],
    summary="List registrations",
    description="All registration records, most recent first.",
)
def list_records(
    service: RegistrationService = Depends(get_registration_service),
) -> list[RecordResponse]:
    try:
        records = service.list_records()
    except RegistrationError as exc:
        raise _http_error(exc) from None
    return [RecordResponse.from_record(r) for r in records]


@router.get(
    "/registrations/{record_id}",
    response_model=RecordResponse,
    responses=_NOT_FOUND,
    summary="Get one registration",
)
def get_record(
    record_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> RecordResponse:
    try:
        record = service.get_record(record_id)
    except RegistrationError as exc:
        raise _http_error(exc) from None
    return RecordResponse.from_record(record)


@router.delete(
    "/registrations/{record_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Delete one registration",
)
def delete_record(
    record_id: str,
    service: RegistrationService = Depends(get_registration_service),
) -> Response:
    try:
        service.delete_record(record_id)
    except RegistrationError as exc:
        raise _http_error(exc) from None
    return Response(status_code=status.HTTP_204_NO_CONTENT)
