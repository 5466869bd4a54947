"""
Domain exceptions - Semantic error types for event registration.

This module defines domain-specific exceptions that communicate
provider, mailbox and store failures without leaking infrastructure details.
"""


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    pass


class ProviderError(RegistrationError):
    """Registration/sign-in provider call did not succeed."""

    pass


class ProviderRejected(ProviderError):
    """
    Provider answered with a non-success status.

    The remote body is surfaced verbatim as the error message so it can be
    stored on the record and shown to the operator.
    """

    operation = "request"

    def __init__(self, body: str = "", status_code: int | None = None) -> None:
        self.body = body
        self.status_code = status_code
        message = body or f"{self.operation} failed with HTTP {status_code}"
        super().__init__(message)


class RegistrationRejected(ProviderRejected):
    """Event registration was refused (duplicate, closed event, ...)."""

    operation = "register"


class CodeDispatchFailed(ProviderRejected):
    """Provider refused to send the sign-in code."""

    operation = "send_verification_code"


class SignInRejected(ProviderRejected):
    """Sign-in with the retrieved code was refused (wrong or expired code)."""

    operation = "sign_in"


class ProviderUnavailable(ProviderError):
    """Provider could not be reached (connect error, timeout)."""

    pass


class MailboxError(RegistrationError):
    """Mailbox search, fetch or token refresh failed."""

    pass


class CodeNotFound(RegistrationError):
    """No verification code arrived before polling attempts ran out."""

    pass


class StoreError(RegistrationError):
    """Base class for record store failures."""

    pass


class NotFound(StoreError):
    """No record exists for the given identifier."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Registration {record_id} not found")


class StoreUnavailable(StoreError):
    """Record store could not be reached."""

    pass


class MalformedInput(RegistrationError):
    """Entry list could not be parsed."""

    pass
