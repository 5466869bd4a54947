"""
In-memory repository adapter - Implements RecordStore protocol.

Keeps records in a dict guarded by a lock. Used for local runs without a
database (RECORD_STORE=memory) and as the store in tests. Records are
copied on the way in and out so callers never share state with the store.
"""

import copy
import itertools
import threading
import uuid
from datetime import UTC, datetime
from typing import Any

from src.domain.exceptions import NotFound
from src.domain.ports import EmailEntry, RegistrationRecord, RegistrationStatus

_UPDATABLE_FIELDS = frozenset(
    {"status", "verification_code", "provider_response", "error_message"}
)


class InMemoryRecordStore:
    """
    Implements RecordStore protocol with a process-local dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._records: dict[str, RegistrationRecord] = {}
        # creation sequence breaks created_at ties in list()
        self._sequence: dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.Lock()

    def create(self, entry: EmailEntry, event_id: str) -> RegistrationRecord:
        now = datetime.now(UTC)
        record = RegistrationRecord(
            id=str(uuid.uuid4()),
            email=entry.email,
            first_name=entry.first_name,
            last_name=entry.last_name,
            event_id=event_id,
            status=RegistrationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._records[record.id] = record
            self._sequence[record.id] = next(self._counter)
            return copy.deepcopy(record)

    def update(self, record_id: str, **fields: Any) -> None:
        if not fields:
            raise ValueError("update() needs at least one field")
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        # coerce everything first so a bad value leaves the record untouched
        values = dict(fields)
        if "status" in values:
            values["status"] = RegistrationStatus(values["status"])
        if "provider_response" in values:
            payload = values["provider_response"]
            values["provider_response"] = copy.deepcopy(payload) if payload is not None else {}

        with self._lock:
            record = self._get(record_id)
            for name, value in values.items():
                setattr(record, name, value)
            record.updated_at = datetime.now(UTC)

    def fetch(self, record_id: str) -> RegistrationRecord:
        with self._lock:
            return copy.deepcopy(self._get(record_id))

    def delete(self, record_id: str) -> None:
        with self._lock:
            self._get(record_id)
            del self._records[record_id]
            del self._sequence[record_id]

    def list(self) -> list[RegistrationRecord]:
        with self._lock:
            ordered = sorted(
                self._records.values(),
                key=lambda r: (r.created_at, self._sequence[r.id]),
                reverse=True,
            )
            return [copy.deepcopy(record) for record in ordered]

    def ping(self) -> None:
        """Always reachable."""

    def _get(self, record_id: str) -> RegistrationRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise NotFound(record_id) from None
