"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the value types the registration engine works with and
the interfaces (ports) it requires from infrastructure. Adapters implement
these protocols through structural subtyping.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

# on_progress(label) for one entry, on_progress(email, label) for a bulk run
ProgressCallback = Callable[[str], None]
BulkProgressCallback = Callable[[str, str], None]


class RegistrationStatus(str, Enum):
    """
    Registration record lifecycle states.

    Happy path (forward-only):
        PENDING -> CODE_SENT -> COMPLETED

    FAILED is reachable from any non-terminal state.

    Terminal States:
    - COMPLETED: signed in with the retrieved code
    - FAILED: a phase failed, error_message explains why

    Note: SIGNED_IN is part of the vocabulary but the engine never persists
    it; sign-in success moves the record straight from CODE_SENT to COMPLETED.
    """

    PENDING = "pending"
    CODE_SENT = "code_sent"
    SIGNED_IN = "signed_in"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RegistrationStatus.COMPLETED, RegistrationStatus.FAILED)


@dataclass(frozen=True)
class EmailEntry:
    """One registrant awaiting processing. The email is used verbatim."""

    email: str
    first_name: str = ""
    last_name: str = ""


@dataclass
class RegistrationRecord:
    """Persisted state of one entry's registration attempt."""

    id: str
    email: str
    first_name: str
    last_name: str
    event_id: str
    status: RegistrationStatus
    verification_code: str | None = None
    provider_response: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class EntryFailure:
    """Failed entry of a bulk run."""

    email: str
    error: str


@dataclass
class BulkResult:
    """Outcome of one bulk run, in input order."""

    successful: list[RegistrationRecord] = field(default_factory=list)
    failed: list[EntryFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)


@dataclass(frozen=True)
class MessageQuery:
    """Mailbox search filter for the verification message."""

    sender: str
    recipient: str
    subject_contains: str
    window_minutes: int


@dataclass(frozen=True)
class MessagePart:
    """
    One body part of a mail message.

    ``data`` is still encoded exactly as the provider returned it
    (URL-safe base64); decoding is the poller's job.
    """

    mime_type: str
    data: str


@dataclass(frozen=True)
class MailMessage:
    """Fetched mail message reduced to its body parts."""

    id: str
    parts: tuple[MessagePart, ...] = ()


class RecordStore(Protocol):
    """Port interface for registration record persistence."""

    def create(self, entry: EmailEntry, event_id: str) -> RegistrationRecord:
        """
        Insert a new record in PENDING state.

        Args:
            entry: Registrant data
            event_id: Event the entry is registered for

        Returns:
            The stored record, with id and timestamps assigned by the store
        """
        ...

    def update(self, record_id: str, **fields: Any) -> None:
        """
        Merge the given fields into the record and bump updated_at.

        Raises:
            NotFound: If no record has this id
            ValueError: If a field name is not updatable
        """
        ...

    def fetch(self, record_id: str) -> RegistrationRecord:
        """
        Load one record.

        Raises:
            NotFound: If no record has this id
        """
        ...

    def list(self) -> list[RegistrationRecord]:
        """Return all records, most recently created first."""
        ...

    def delete(self, record_id: str) -> None:
        """
        Remove one record.

        Raises:
            NotFound: If no record has this id
        """
        ...


class RegistrationProvider(Protocol):
    """Port interface for the event registration and sign-in API."""

    def register(
        self, first_name: str, last_name: str, email: str, event_id: str
    ) -> dict[str, Any]:
        """Register an attendee. Raises RegistrationRejected on refusal."""
        ...

    def send_verification_code(self, email: str) -> None:
        """Ask the provider to email a sign-in code. Raises CodeDispatchFailed."""
        ...

    def sign_in(self, email: str, code: str) -> dict[str, Any]:
        """Sign in with an emailed code. Raises SignInRejected on refusal."""
        ...


class MailboxProvider(Protocol):
    """Port interface for the mailbox holding verification emails."""

    def search_messages(self, query: MessageQuery) -> list[str]:
        """
        Return ids of messages matching the query, newest first.

        Raises:
            MailboxError: If the search call fails
        """
        ...

    def get_message(self, message_id: str) -> MailMessage:
        """
        Fetch one message with its body parts.

        Raises:
            MailboxError: If the fetch call fails
        """
        ...


class CodeRetriever(Protocol):
    """Port interface for obtaining the emailed verification code."""

    def retrieve_code(self, address: str) -> str:
        """
        Wait for the verification code sent to address.

        Raises:
            CodeNotFound: If no code arrives within the polling budget
        """
        ...
