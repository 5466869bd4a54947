"""
Registration domain service - Caller-facing API of the orchestration engine.

This module wires the entry state machine and the bulk driver behind the
operations callers use:

- process_one:   register a single entry, raising on failure
- process_many:  register a batch, collecting per-entry outcomes
- list_records:  all records, most recent first
- get_record:    one record by id
- delete_record: remove one record

Record Lifecycle (forward-only)
===============================

    pending -> code_sent -> completed
        \\          \\
         +----------+-----> failed

COMPLETED and FAILED are terminal. A record is never left in an
intermediate status once its run stops advancing.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from .bulk import BulkDriver
from .ports import (
    BulkProgressCallback,
    BulkResult,
    CodeRetriever,
    EmailEntry,
    ProgressCallback,
    RecordStore,
    RegistrationProvider,
    RegistrationRecord,
)
from .state_machine import EntryStateMachine


@dataclass
class RegistrationService:
    """
    Domain service for automated event registration.

    Orchestrates provider registration, code dispatch, mailbox polling and
    sign-in, with the record store as the audit trail.
    """

    store: RecordStore
    provider: RegistrationProvider
    code_retriever: CodeRetriever
    machine: EntryStateMachine = field(init=False)
    driver: BulkDriver = field(init=False)

    def __post_init__(self) -> None:
        self.machine = EntryStateMachine(
            store=self.store,
            provider=self.provider,
            code_retriever=self.code_retriever,
        )
        self.driver = BulkDriver(machine=self.machine)

    def process_one(
        self,
        entry: EmailEntry,
        event_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> RegistrationRecord:
        """
        Run the full registration flow for one entry.

        Returns:
            The completed record

        Raises:
            The error of the failing phase (the record is marked FAILED
            before the error propagates)
        """
        return self.machine.run(entry, event_id, on_progress)

    def process_many(
        self,
        entries: Iterable[EmailEntry],
        event_id: str,
        on_progress: BulkProgressCallback | None = None,
    ) -> BulkResult:
        """
        Run the registration flow for each entry, in order.

        Never raises for entry failures; they are returned in BulkResult.failed.
        """
        return self.driver.run_all(entries, event_id, on_progress)

    def list_records(self) -> list[RegistrationRecord]:
        """Return every registration record, most recent first."""
        return self.store.list()

    def get_record(self, record_id: str) -> RegistrationRecord:
        """
        Return one record.

        Raises:
            NotFound: If no record has this id
        """
        return self.store.fetch(record_id)

    def delete_record(self, record_id: str) -> None:
        """
        Delete one record.

        Raises:
            NotFound: If no record has this id
        """
        self.store.delete(record_id)
