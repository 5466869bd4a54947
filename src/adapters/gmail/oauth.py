"""
Gmail OAuth2 helpers.

Covers the two token endpoint exchanges the application needs:

- refresh_access_token: refresh token -> short-lived access token
  (used by AccessTokenCache on every refresh)
- exchange_code_for_tokens: one-time consent code -> refresh token
  (used once, from the CLI, to obtain GMAIL_REFRESH_TOKEN)

build_authorization_url produces the consent screen URL for the latter.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from src.domain.exceptions import MailboxError

from .token_cache import OAuthCredentials, TokenGrant

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_READONLY_SCOPE = "https://www.googleapis.com/auth/gmail.readonly"

# Google guarantees 3600s when expires_in is missing
_DEFAULT_EXPIRES_IN = 3600


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def build_authorization_url(client_id: str, redirect_uri: str) -> str:
    """Consent screen URL granting offline read-only Gmail access."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": GMAIL_READONLY_SCOPE,
        "access_type": "offline",
        "prompt": "consent",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def refresh_access_token(http_client: httpx.Client, credentials: OAuthCredentials) -> TokenGrant:
    """
    Obtain a fresh access token with the refresh-token grant.

    Raises:
        MailboxError: If credentials are missing or the exchange fails.
            The message never contains secrets.
    """
    if not credentials.complete:
        raise MailboxError(
            "Gmail OAuth2 credentials not configured. "
            "Set GMAIL_CLIENT_ID, GMAIL_CLIENT_SECRET, GMAIL_REFRESH_TOKEN."
        )

    body = _post_token_form(
        http_client,
        {
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "refresh_token": credentials.refresh_token,
            "grant_type": "refresh_token",
        },
    )
    access_token = str(body.get("access_token", ""))
    if not access_token:
        raise MailboxError("Gmail token refresh returned empty access_token")

    try:
        expires_in = float(body.get("expires_in", _DEFAULT_EXPIRES_IN))
    except (TypeError, ValueError):
        expires_in = _DEFAULT_EXPIRES_IN
    logger.debug("Gmail access token refreshed, expires in %ss", expires_in)
    return TokenGrant(access_token=access_token, expires_in=expires_in)


def exchange_code_for_tokens(
    http_client: httpx.Client,
    code: str,
    client_id: str,
    client_secret: str,
    redirect_uri: str,
) -> TokenPair:
    """
    Trade a consent-screen authorization code for access and refresh tokens.

    Raises:
        MailboxError: If the exchange fails
    """
    body = _post_token_form(
        http_client,
        {
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        },
    )
    return TokenPair(
        access_token=str(body.get("access_token", "")),
        refresh_token=str(body.get("refresh_token", "")),
    )


def _post_token_form(http_client: httpx.Client, form: dict[str, str]) -> dict:
    try:
        response = http_client.post(GOOGLE_TOKEN_URL, data=form)
    except httpx.HTTPError as exc:
        # Sanitize: the form carries secrets
        raise MailboxError(f"Gmail token request failed: {type(exc).__name__}") from None

    if response.status_code != 200:
        raise MailboxError(f"Gmail token request failed with HTTP {response.status_code}")
    try:
        payload = response.json()
    except ValueError:
        raise MailboxError("Gmail token endpoint returned invalid JSON") from None
    if not isinstance(payload, dict):
        raise MailboxError("Gmail token endpoint returned invalid JSON")
    return payload
