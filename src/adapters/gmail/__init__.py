"""Gmail adapter - Mailbox access for verification codes."""

from .mailbox import GmailMailbox
from .oauth import build_authorization_url, exchange_code_for_tokens
from .token_cache import AccessTokenCache, OAuthCredentials

__all__ = [
    "AccessTokenCache",
    "GmailMailbox",
    "OAuthCredentials",
    "build_authorization_url",
    "exchange_code_for_tokens",
]
