"""
Domain layer - Pure business logic with zero framework imports.

This package contains the registration orchestration engine: the per-entry
state machine, the bulk driver and the mailbox poller. It defines its own
port interfaces for infrastructure abstraction, so HTTP and SQL live only in
the adapters.
"""

from .bulk import BulkDriver
from .entries import parse_entries
from .exceptions import (
    CodeDispatchFailed,
    CodeNotFound,
    MailboxError,
    MalformedInput,
    NotFound,
    ProviderError,
    ProviderRejected,
    ProviderUnavailable,
    RegistrationError,
    RegistrationRejected,
    SignInRejected,
    StoreError,
    StoreUnavailable,
)
from .mailbox import MailboxPoller
from .ports import (
    BulkResult,
    EmailEntry,
    EntryFailure,
    MailboxProvider,
    RecordStore,
    RegistrationProvider,
    RegistrationRecord,
    RegistrationStatus,
)
from .registration import RegistrationService
from .state_machine import EntryStateMachine

__all__ = [
    "BulkDriver",
    "BulkResult",
    "CodeDispatchFailed",
    "CodeNotFound",
    "EmailEntry",
    "EntryFailure",
    "EntryStateMachine",
    "MailboxError",
    "MailboxPoller",
    "MailboxProvider",
    "MalformedInput",
    "NotFound",
    "ProviderError",
    "ProviderRejected",
    "ProviderUnavailable",
    "RecordStore",
    "RegistrationError",
    "RegistrationProvider",
    "RegistrationRecord",
    "RegistrationRejected",
    "RegistrationService",
    "RegistrationStatus",
    "SignInRejected",
    "StoreError",
    "StoreUnavailable",
    "parse_entries",
]
