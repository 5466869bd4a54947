"""
Entry state machine - Drives one entry through the registration phases.

Phases (each gated on the previous one)
=======================================

1. create     record stored as PENDING
2. register   provider registration, response saved as provider_response
3. send code  provider emails a sign-in code, record -> CODE_SENT
4. retrieve   code read from the mailbox, saved as verification_code
5. sign in    provider sign-in, record -> COMPLETED, sign-in response merged
6. re-fetch   the store's canonical view is returned

Failure Semantics:
- Phase 1 failing aborts the run; there is no record to mark.
- Phases 2-5 failing write exactly one FAILED update carrying the error
  message, then re-raise the original error.
- Nothing is retried here. Only the mailbox poller retries.

SIGNED_IN is reported as a progress label but never persisted.
"""

import logging
from dataclasses import dataclass
from typing import Any

from .ports import (
    CodeRetriever,
    EmailEntry,
    ProgressCallback,
    RecordStore,
    RegistrationProvider,
    RegistrationRecord,
    RegistrationStatus,
)

logger = logging.getLogger(__name__)

LABEL_CREATING = "Creating registration record..."
LABEL_REGISTERING = "Registering for event..."
LABEL_SENDING_CODE = "Sending verification code..."
LABEL_WAITING_FOR_CODE = "Waiting for verification code..."
LABEL_SIGNING_IN = "Signing in with verification code..."
LABEL_SIGNED_IN = "Signed in"
LABEL_COMPLETED = "Registration completed successfully!"

# Key under which the sign-in response is merged into provider_response
SIGN_IN_RESPONSE_KEY = "sign_in"


def error_text(exc: BaseException) -> str:
    """Message stored on a failed record and reported to bulk callers."""
    return str(exc) or "Unknown error"


@dataclass
class EntryStateMachine:
    """
    Runs the registration phases for a single entry.

    Owns record mutation for the duration of a run. Collaborators are
    injected as ports so the machine stays free of HTTP and SQL.
    """

    store: RecordStore
    provider: RegistrationProvider
    code_retriever: CodeRetriever

    def run(
        self,
        entry: EmailEntry,
        event_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> RegistrationRecord:
        """
        Register entry for event_id and sign in with the emailed code.

        Args:
            entry: Registrant to process
            event_id: Event identifier at the provider
            on_progress: Called with a phase label at each transition.
                Exceptions it raises are logged and ignored.

        Returns:
            The final persisted record (status COMPLETED)

        Raises:
            Whatever the failing phase raised. For phases after record
            creation the record is marked FAILED first.
        """
        self._notify(on_progress, LABEL_CREATING)
        record = self.store.create(entry, event_id)
        logger.info("Created registration record %s for %s", record.id, entry.email)

        try:
            self._advance(record.id, entry, event_id, on_progress)
        except Exception as exc:
            self._mark_failed(record.id, exc)
            raise

        self._notify(on_progress, LABEL_COMPLETED)
        return self.store.fetch(record.id)

    def _advance(
        self,
        record_id: str,
        entry: EmailEntry,
        event_id: str,
        on_progress: ProgressCallback | None,
    ) -> None:
        self._notify(on_progress, LABEL_REGISTERING)
        registration: dict[str, Any] = self.provider.register(
            entry.first_name, entry.last_name, entry.email, event_id
        )
        self.store.update(record_id, provider_response=registration)

        self._notify(on_progress, LABEL_SENDING_CODE)
        self.provider.send_verification_code(entry.email)
        self.store.update(record_id, status=RegistrationStatus.CODE_SENT)

        self._notify(on_progress, LABEL_WAITING_FOR_CODE)
        code = self.code_retriever.retrieve_code(entry.email)
        self.store.update(record_id, verification_code=code)

        self._notify(on_progress, LABEL_SIGNING_IN)
        sign_in = self.provider.sign_in(entry.email, code)
        self._notify(on_progress, LABEL_SIGNED_IN)
        self.store.update(
            record_id,
            status=RegistrationStatus.COMPLETED,
            provider_response={**registration, SIGN_IN_RESPONSE_KEY: sign_in},
        )
        logger.info("Registration %s completed for %s", record_id, entry.email)

    def _mark_failed(self, record_id: str, exc: Exception) -> None:
        message = error_text(exc)
        logger.warning("Registration %s failed: %s", record_id, message)
        try:
            self.store.update(
                record_id,
                status=RegistrationStatus.FAILED,
                error_message=message,
            )
        except Exception:
            # The phase error is re-raised by the caller; keep the store error in the log
            logger.exception("Could not mark registration %s as failed", record_id)

    @staticmethod
    def _notify(on_progress: ProgressCallback | None, label: str) -> None:
        if on_progress is None:
            return
        try:
            on_progress(label)
        except Exception:
            logger.warning("Progress callback raised for %r", label, exc_info=True)
