"""
Gmail API adapter - Implements MailboxProvider protocol.

Architecture:
    - Credentials: OAuthCredentials built from GMAIL_CLIENT_ID,
      GMAIL_CLIENT_SECRET, GMAIL_REFRESH_TOKEN
    - Access tokens come from an AccessTokenCache keyed by those
      credentials; a 401 from Gmail drops the cached token so the next
      call refreshes it
    - Failure semantics: every HTTP, network or token failure raises
      MailboxError, which the poller treats as a non-fatal attempt

Message bodies are returned still encoded; the domain poller decodes them.
"""

import logging
from typing import Any

import httpx

from src.domain.exceptions import MailboxError
from src.domain.ports import MailMessage, MessagePart, MessageQuery

from .oauth import refresh_access_token
from .token_cache import AccessTokenCache, OAuthCredentials

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"

# Verification mail is a single message; no need to page
_SEARCH_PAGE_SIZE = 10


def build_search_query(query: MessageQuery) -> str:
    """Translate a MessageQuery into Gmail search syntax."""
    return (
        f"from:{query.sender} to:{query.recipient} "
        f"subject:{query.subject_contains} newer_than:{query.window_minutes}m"
    )


class GmailMailbox:
    """
    Implements MailboxProvider protocol via the Gmail REST API.

    Uses structural subtyping - no explicit inheritance from Protocol.

    Args:
        http_client: httpx.Client used for both token and API calls
        credentials: OAuth2 credential set for the mailbox
        token_cache: Shared cache; one is created when omitted
    """

    def __init__(
        self,
        http_client: httpx.Client,
        credentials: OAuthCredentials,
        token_cache: AccessTokenCache | None = None,
    ) -> None:
        self._http = http_client
        self._credentials = credentials
        self._tokens = token_cache or AccessTokenCache(
            refresh=lambda creds: refresh_access_token(http_client, creds)
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} credentials={self._credentials!r}>"

    def search_messages(self, query: MessageQuery) -> list[str]:
        """
        Return ids of messages matching query, newest first.

        Raises:
            MailboxError: On any API, network or token failure
        """
        q = build_search_query(query)
        result = self._get(
            f"{GMAIL_API_BASE}/messages",
            params={"q": q, "maxResults": _SEARCH_PAGE_SIZE},
        )
        messages = result.get("messages")
        if not isinstance(messages, list):
            return []
        return [str(m["id"]) for m in messages if isinstance(m, dict) and m.get("id")]

    def get_message(self, message_id: str) -> MailMessage:
        """
        Fetch one message in full format and collect its body parts.

        Raises:
            MailboxError: On any API, network or token failure
        """
        result = self._get(
            f"{GMAIL_API_BASE}/messages/{message_id}",
            params={"format": "full"},
        )
        payload = result.get("payload")
        if not isinstance(payload, dict):
            payload = {}
        return MailMessage(id=message_id, parts=tuple(collect_parts(payload)))

    def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        token = self._tokens.get(self._credentials)
        try:
            response = self._http.get(
                url, params=params, headers={"Authorization": f"Bearer {token}"}
            )
        except httpx.HTTPError as exc:
            raise MailboxError(f"Gmail API GET {url} failed: {exc}") from exc

        if response.status_code == 401:
            self._tokens.invalidate(self._credentials)
        if response.status_code != 200:
            raise MailboxError(f"Gmail API GET {url} returned HTTP {response.status_code}")
        try:
            body = response.json()
        except ValueError as exc:
            raise MailboxError(f"Gmail API GET {url} returned invalid JSON") from exc
        return body if isinstance(body, dict) else {}


def collect_parts(payload: dict[str, Any]) -> list[MessagePart]:
    """
    Flatten a Gmail message payload into body parts.

    A payload either carries its body directly (body.data) or is a
    multipart container whose parts may themselves be containers.
    Values of the wrong JSON type are skipped; such a message simply yields
    no usable parts.
    """
    body = payload.get("body")
    data = body.get("data") if isinstance(body, dict) else None
    if isinstance(data, str) and data:
        mime_type = payload.get("mimeType")
        if not isinstance(mime_type, str) or not mime_type:
            mime_type = "text/plain"
        return [MessagePart(mime_type=mime_type, data=data)]

    children = payload.get("parts")
    if not isinstance(children, list):
        return []
    parts: list[MessagePart] = []
    for child in children:
        if isinstance(child, dict):
            parts.extend(collect_parts(child))
    return parts
