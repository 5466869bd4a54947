"""
Console progress reporter - Receives bulk progress callbacks.

This module provides a logging-based sink for the engine's progress labels,
so HTTP-triggered runs leave a per-entry trail in the server logs.
"""

import logging

from src.domain.ports import ProgressCallback

logger = logging.getLogger(__name__)


class ConsoleProgressReporter:
    """
    Logs every progress label at INFO level.

    Callable as on_progress(email, label) for bulk runs; use for_entry()
    to get the single-argument callback a one-entry run expects.
    """

    def __call__(self, email: str, label: str) -> None:
        """
        Log one progress label.

        The label is logged at INFO level to be visible in container logs.

        Args:
            email: Entry the label belongs to
            label: Phase label, e.g. "Sending verification code..."
        """
        logger.info("[PROGRESS] Email: %s Status: %s", email, label)

    def for_entry(self, email: str) -> ProgressCallback:
        """Bind email and return an on_progress(label) callback."""

        def report(label: str) -> None:
            self(email, label)

        return report
