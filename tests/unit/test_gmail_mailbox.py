"""
Unit tests for the Gmail adapter.

Tests verify:
- Search query syntax and request parameters
- Payload flattening (single part, multipart, nested)
- Failure semantics: every failure surfaces as MailboxError
- 401 handling drops the cached access token
- OAuth helpers (consent URL, token exchanges) never leak secrets
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from src.adapters.gmail import (
    AccessTokenCache,
    GmailMailbox,
    OAuthCredentials,
    build_authorization_url,
    exchange_code_for_tokens,
)
from src.adapters.gmail.mailbox import build_search_query, collect_parts
from src.adapters.gmail.oauth import GMAIL_READONLY_SCOPE, refresh_access_token
from src.adapters.gmail.token_cache import TokenGrant
from src.domain.exceptions import CodeNotFound, MailboxError
from src.domain.mailbox import MailboxPoller, extract_verification_code
from src.domain.ports import MessagePart, MessageQuery
from tests.fakes import b64url

CREDS = OAuthCredentials("client-id", "client-secret", "refresh-token")
QUERY = MessageQuery(
    sender="noreply@luma.co",
    recipient="a@x.com",
    subject_contains="verification",
    window_minutes=5,
)


def fixed_cache(tokens: list[str] | None = None) -> AccessTokenCache:
    issued = iter(tokens or ["tok-1", "tok-2", "tok-3"])
    return AccessTokenCache(lambda creds: TokenGrant(next(issued), 3600))


def make_mailbox(handler, cache: AccessTokenCache | None = None):
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http = httpx.Client(transport=httpx.MockTransport(record))
    return GmailMailbox(http, CREDS, token_cache=cache or fixed_cache()), requests


class TestSearchQuery:
    def test_query_syntax(self) -> None:
        assert build_search_query(QUERY) == (
            "from:noreply@luma.co to:a@x.com subject:verification newer_than:5m"
        )

    def test_search_request(self) -> None:
        mailbox, requests = make_mailbox(
            lambda r: httpx.Response(200, json={"messages": [{"id": "m2"}, {"id": "m1"}]})
        )

        assert mailbox.search_messages(QUERY) == ["m2", "m1"]

        [request] = requests
        assert request.url.path.endswith("/messages")
        assert request.url.params["q"] == build_search_query(QUERY)
        assert request.headers["Authorization"] == "Bearer tok-1"

    def test_no_matches(self) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200, json={"resultSizeEstimate": 0}))
        assert mailbox.search_messages(QUERY) == []


class TestGetMessage:
    def test_single_part_message(self) -> None:
        payload = {"mimeType": "text/plain", "body": {"data": b64url("Code 123456")}}
        mailbox, requests = make_mailbox(lambda r: httpx.Response(200, json={"payload": payload}))

        message = mailbox.get_message("m1")

        assert message.id == "m1"
        assert message.parts == (MessagePart("text/plain", b64url("Code 123456")),)
        assert requests[0].url.params["format"] == "full"
        assert extract_verification_code(message) == "123456"

    def test_multipart_message(self) -> None:
        payload = {
            "mimeType": "multipart/alternative",
            "body": {"size": 0},
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64url("plain")}},
                {"mimeType": "text/html", "body": {"data": b64url("<b>654321</b>")}},
            ],
        }
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200, json={"payload": payload}))

        message = mailbox.get_message("m1")

        assert [p.mime_type for p in message.parts] == ["text/plain", "text/html"]
        assert extract_verification_code(message) == "654321"

    def test_missing_payload(self) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200, json={"id": "m1"}))
        assert mailbox.get_message("m1").parts == ()


class TestCollectParts:
    def test_nested_containers(self) -> None:
        payload = {
            "mimeType": "multipart/mixed",
            "parts": [
                {
                    "mimeType": "multipart/alternative",
                    "parts": [{"mimeType": "text/plain", "body": {"data": "AAA"}}],
                },
                {"mimeType": "application/pdf", "body": {"attachmentId": "att-1"}},
            ],
        }
        assert collect_parts(payload) == [MessagePart("text/plain", "AAA")]

    def test_missing_mime_type_defaults_to_plain(self) -> None:
        assert collect_parts({"body": {"data": "AAA"}}) == [MessagePart("text/plain", "AAA")]

    def test_empty_payload(self) -> None:
        assert collect_parts({}) == []


class TestFailures:
    @pytest.mark.parametrize("status", [403, 404, 500])
    def test_http_error_status(self, status: int) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(status))
        with pytest.raises(MailboxError):
            mailbox.search_messages(QUERY)

    def test_network_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        mailbox, _ = make_mailbox(refuse)
        with pytest.raises(MailboxError):
            mailbox.get_message("m1")

    def test_invalid_json(self) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200, text="not json"))
        with pytest.raises(MailboxError):
            mailbox.search_messages(QUERY)

    def test_unauthorized_drops_cached_token(self) -> None:
        responses = iter([httpx.Response(401), httpx.Response(200, json={"messages": []})])
        mailbox, requests = make_mailbox(lambda r: next(responses))

        with pytest.raises(MailboxError):
            mailbox.search_messages(QUERY)
        mailbox.search_messages(QUERY)

        assert requests[0].headers["Authorization"] == "Bearer tok-1"
        assert requests[1].headers["Authorization"] == "Bearer tok-2"

    def test_incomplete_credentials(self) -> None:
        http = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        mailbox = GmailMailbox(http, OAuthCredentials("", "", ""))

        with pytest.raises(MailboxError, match="not configured"):
            mailbox.search_messages(QUERY)

    def test_repr_hides_secrets(self) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200))
        assert "client-secret" not in repr(mailbox)
        assert "refresh-token" not in repr(mailbox)


class TestMalformedPayloads:
    """Wrongly typed JSON in a message yields no parts instead of an error."""

    @pytest.mark.parametrize(
        "payload",
        [
            {"parts": [{"mimeType": "text/plain", "body": {"data": 123}}]},
            {"mimeType": "text/plain", "body": "not-an-object"},
            {"mimeType": 7, "body": {"data": ["x"]}},
            {"parts": "not-a-list"},
            {"parts": [None, 5, "x"]},
        ],
    )
    def test_collect_parts_skips_bad_values(self, payload: dict) -> None:
        assert collect_parts(payload) == []

    def test_non_string_mime_type_defaults_to_plain(self) -> None:
        assert collect_parts({"mimeType": 7, "body": {"data": "AAA"}}) == [
            MessagePart("text/plain", "AAA")
        ]

    @pytest.mark.parametrize("payload", ["text", 42, ["x"]])
    def test_non_object_payload(self, payload) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200, json={"payload": payload}))
        assert mailbox.get_message("m1").parts == ()

    def test_non_list_search_result(self) -> None:
        mailbox, _ = make_mailbox(lambda r: httpx.Response(200, json={"messages": 3}))
        assert mailbox.search_messages(QUERY) == []

    def test_poller_keeps_polling_past_malformed_message(self) -> None:
        """A malformed match uses up one attempt; polling goes on until the budget is spent."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/messages"):
                return httpx.Response(200, json={"messages": [{"id": "m1"}]})
            return httpx.Response(
                200,
                json={"payload": {"parts": [{"mimeType": "text/plain", "body": {"data": 123}}]}},
            )

        mailbox, requests = make_mailbox(handler)
        poller = MailboxPoller(mailbox=mailbox, max_attempts=3, interval=0, sleep=lambda _: None)

        with pytest.raises(CodeNotFound):
            poller.retrieve_code("a@x.com")

        searches = [r for r in requests if r.url.path.endswith("/messages")]
        assert len(searches) == 3


class TestOAuth:
    def test_authorization_url(self) -> None:
        url = build_authorization_url("client-id", "http://localhost:8000/oauth/callback")
        params = parse_qs(urlparse(url).query)

        assert url.startswith("https://accounts.google.com/")
        assert params["client_id"] == ["client-id"]
        assert params["scope"] == [GMAIL_READONLY_SCOPE]
        assert params["access_type"] == ["offline"]
        assert params["prompt"] == ["consent"]
        assert params["response_type"] == ["code"]

    def test_refresh_access_token(self) -> None:
        forms: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            forms.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"access_token": "fresh", "expires_in": 1800})

        http = httpx.Client(transport=httpx.MockTransport(handler))

        grant = refresh_access_token(http, CREDS)

        assert grant == TokenGrant("fresh", 1800.0)
        assert forms[0]["grant_type"] == ["refresh_token"]
        assert forms[0]["refresh_token"] == ["refresh-token"]

    def test_refresh_defaults_expiry(self) -> None:
        http = httpx.Client(
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, json={"access_token": "fresh"})
            )
        )
        assert refresh_access_token(http, CREDS).expires_in == 3600

    def test_refresh_empty_token(self) -> None:
        http = httpx.Client(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))
        )
        with pytest.raises(MailboxError):
            refresh_access_token(http, CREDS)

    def test_refresh_error_is_sanitized(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("client-secret leaked?", request=request)

        http = httpx.Client(transport=httpx.MockTransport(refuse))

        with pytest.raises(MailboxError) as exc_info:
            refresh_access_token(http, CREDS)

        assert "client-secret" not in str(exc_info.value)
        assert exc_info.value.__cause__ is None

    def test_exchange_code(self) -> None:
        forms: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            forms.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"access_token": "a", "refresh_token": "r"})

        http = httpx.Client(transport=httpx.MockTransport(handler))

        pair = exchange_code_for_tokens(http, "auth-code", "id", "secret", "http://cb")

        assert (pair.access_token, pair.refresh_token) == ("a", "r")
        assert forms[0]["grant_type"] == ["authorization_code"]
        assert forms[0]["code"] == ["auth-code"]
        assert forms[0]["redirect_uri"] == ["http://cb"]

    def test_exchange_rejected(self) -> None:
        http = httpx.Client(
            transport=httpx.MockTransport(
                lambda r: httpx.Response(400, json={"error": "invalid_grant"})
            )
        )
        with pytest.raises(MailboxError, match="HTTP 400"):
            exchange_code_for_tokens(http, "bad", "id", "secret", "http://cb")
