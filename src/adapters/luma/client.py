"""
Luma API adapter - Implements RegistrationProvider protocol.

Thin request/response wrappers over the three Luma endpoints the engine
needs. Each call is a single POST with a JSON body; there is no retry logic
here, failures go straight back to the caller.

Failure mapping:
- non-2xx status          -> RegistrationRejected / CodeDispatchFailed /
                             SignInRejected, remote body kept verbatim
- connect error, timeout  -> ProviderUnavailable
- 2xx with non-JSON body -> ProviderError
"""

import logging
from typing import Any

import httpx

from src.domain.exceptions import (
    CodeDispatchFailed,
    ProviderError,
    ProviderRejected,
    ProviderUnavailable,
    RegistrationRejected,
    SignInRejected,
)

logger = logging.getLogger(__name__)

REGISTER_PATH = "/event/register"
SEND_CODE_PATH = "/auth/email/send-sign-in-code"
SIGN_IN_PATH = "/auth/email/sign-in-with-code"


class LumaClient:
    """
    Implements RegistrationProvider protocol via httpx.

    The httpx.Client is owned by the caller (see src.bootstrap) and must
    have base_url set to the Luma API root.
    """

    def __init__(self, http_client: httpx.Client) -> None:
        self._http = http_client

    def register(
        self, first_name: str, last_name: str, email: str, event_id: str
    ) -> dict[str, Any]:
        """
        Register an attendee for an event.

        Returns:
            The provider's registration payload

        Raises:
            RegistrationRejected: On non-2xx response
            ProviderUnavailable: If the API cannot be reached
        """
        body = {
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "event_api_id": event_id,
        }
        response = self._post(REGISTER_PATH, body, RegistrationRejected)
        return _json_object(response, RegistrationRejected.operation)

    def send_verification_code(self, email: str) -> None:
        """
        Ask Luma to email a sign-in code to email.

        Raises:
            CodeDispatchFailed: On non-2xx response
            ProviderUnavailable: If the API cannot be reached
        """
        self._post(SEND_CODE_PATH, {"email": email}, CodeDispatchFailed)

    def sign_in(self, email: str, code: str) -> dict[str, Any]:
        """
        Sign in with the emailed code.

        Raises:
            SignInRejected: On non-2xx response (wrong or expired code included)
            ProviderUnavailable: If the API cannot be reached
        """
        response = self._post(SIGN_IN_PATH, {"email": email, "code": code}, SignInRejected)
        return _json_object(response, SignInRejected.operation)

    def _post(
        self,
        path: str,
        body: dict[str, Any],
        rejected: type[ProviderRejected],
    ) -> httpx.Response:
        try:
            response = self._http.post(path, json=body)
        except httpx.TransportError as exc:
            raise ProviderUnavailable(f"{rejected.operation}: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Luma %s returned HTTP %d for %s",
                rejected.operation,
                response.status_code,
                body.get("email"),
            )
            raise rejected(response.text, status_code=response.status_code)
        return response


def _json_object(response: httpx.Response, operation: str) -> dict[str, Any]:
    # Luma answers with a JSON object; an empty body is treated as {}
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderError(
            f"{operation} returned a non-JSON response (HTTP {response.status_code})"
        ) from exc
    return payload if isinstance(payload, dict) else {"data": payload}
