"""
Bulk driver - Runs the entry state machine over an ordered batch.

Entries are processed strictly in input order, one at a time. Each entry's
run is captured as an explicit outcome (record or EntryFailure) so that one
entry's failure never aborts the batch.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .ports import (
    BulkProgressCallback,
    BulkResult,
    EmailEntry,
    EntryFailure,
    ProgressCallback,
    RegistrationRecord,
)
from .state_machine import EntryStateMachine, error_text

logger = logging.getLogger(__name__)

LABEL_STARTING = "Starting..."

EntryOutcome = RegistrationRecord | EntryFailure


@dataclass
class BulkDriver:
    """Sequential batch runner with per-entry failure isolation."""

    machine: EntryStateMachine

    def run_all(
        self,
        entries: Iterable[EmailEntry],
        event_id: str,
        on_progress: BulkProgressCallback | None = None,
    ) -> BulkResult:
        """
        Process every entry and collect the outcomes.

        Args:
            entries: Entries in the order they must be processed
            event_id: Event every entry is registered for
            on_progress: Called as on_progress(email, label); gets
                "Starting..." before each entry, the entry's phase labels,
                and "Failed: <message>" when the entry fails

        Returns:
            BulkResult with successes and failures in input order
        """
        result = BulkResult()
        for entry in entries:
            outcome = self.run_entry(entry, event_id, on_progress)
            if isinstance(outcome, EntryFailure):
                result.failed.append(outcome)
            else:
                result.successful.append(outcome)

        logger.info(
            "Bulk run for event %s finished: %d succeeded, %d failed",
            event_id,
            len(result.successful),
            len(result.failed),
        )
        return result

    def run_entry(
        self,
        entry: EmailEntry,
        event_id: str,
        on_progress: BulkProgressCallback | None = None,
    ) -> EntryOutcome:
        """Run one entry and turn any error into an EntryFailure."""
        report = _bind(on_progress, entry.email)
        _emit(report, LABEL_STARTING)
        try:
            return self.machine.run(entry, event_id, report)
        except Exception as exc:
            message = error_text(exc)
            logger.warning("Entry %s failed: %s", entry.email, message)
            _emit(report, f"Failed: {message}")
            return EntryFailure(email=entry.email, error=message)


def _bind(on_progress: BulkProgressCallback | None, email: str) -> ProgressCallback | None:
    if on_progress is None:
        return None

    def report(label: str) -> None:
        on_progress(email, label)

    return report


def _emit(report: ProgressCallback | None, label: str) -> None:
    if report is None:
        return
    try:
        report(label)
    except Exception:
        logger.warning("Progress callback raised for %r", label, exc_info=True)
