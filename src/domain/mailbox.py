"""
Mailbox poller - Retrieves the emailed verification code.

The mailbox is eventually consistent: the provider's email may land seconds
after the send-code call returns. The poller searches a bounded number of
times, sleeping between attempts, and returns as soon as a message with a
6-digit code shows up.

Attempt semantics
=================

- A match whose body has no code (or cannot be decoded) is "no code yet".
- A MailboxError from search or fetch is tolerated: it is logged and the
  attempt counts as used.
- The sleep only happens between attempts, never after the last one.
"""

import base64
import binascii
import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .exceptions import CodeNotFound, MailboxError
from .ports import MailboxProvider, MailMessage, MessageQuery

logger = logging.getLogger(__name__)

# 6 digits not glued to other digits
_CODE_PATTERN = re.compile(r"(?<!\d)(\d{6})(?!\d)")


@dataclass
class MailboxPoller:
    """
    Implements CodeRetriever by polling a MailboxProvider.

    Attributes:
        mailbox: Provider used to search and fetch messages
        sender: Address the verification email comes from
        subject_contains: Substring the subject must contain
        window_minutes: Only messages received this recently are considered
        max_attempts: Default number of searches per retrieve_code call
        interval: Default seconds to wait between searches
        sleep: Blocking sleep function (injected in tests)
    """

    mailbox: MailboxProvider
    sender: str = "noreply@luma.co"
    subject_contains: str = "verification"
    window_minutes: int = 5
    max_attempts: int = 10
    interval: float = 5.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def retrieve_code(
        self,
        address: str,
        max_attempts: int | None = None,
        interval: float | None = None,
    ) -> str:
        """
        Poll the mailbox until a verification code for address shows up.

        Args:
            address: Recipient the code was sent to
            max_attempts: Number of searches (defaults to self.max_attempts)
            interval: Seconds between searches (defaults to self.interval)

        Returns:
            The 6-digit code as a string

        Raises:
            ValueError: If max_attempts < 1 or interval < 0
            CodeNotFound: If every attempt came back without a code
        """
        attempts = self.max_attempts if max_attempts is None else max_attempts
        delay = self.interval if interval is None else interval
        if attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {attempts}")
        if delay < 0:
            raise ValueError(f"interval must be >= 0, got {delay}")

        query = MessageQuery(
            sender=self.sender,
            recipient=address,
            subject_contains=self.subject_contains,
            window_minutes=self.window_minutes,
        )

        for attempt in range(attempts):
            try:
                code = self._attempt(query)
            except MailboxError as exc:
                logger.warning(
                    "Mailbox attempt %d/%d for %s failed: %s",
                    attempt + 1,
                    attempts,
                    address,
                    exc,
                )
                code = None

            if code is not None:
                logger.info("Verification code found for %s on attempt %d", address, attempt + 1)
                return code

            if attempt < attempts - 1:
                self.sleep(delay)

        raise CodeNotFound(f"Verification code not found after {attempts} attempts")

    def _attempt(self, query: MessageQuery) -> str | None:
        message_ids = self.mailbox.search_messages(query)
        if not message_ids:
            return None
        # newest first
        message = self.mailbox.get_message(message_ids[0])
        return extract_verification_code(message)


def extract_verification_code(message: MailMessage) -> str | None:
    """
    Find the first 6-digit code in the text parts of a message.

    Every text/* part is decoded and concatenated before scanning.
    Undecodable parts are skipped.
    """
    chunks = []
    for part in message.parts:
        if not isinstance(part.mime_type, str) or not part.mime_type.startswith("text/"):
            continue
        decoded = decode_part_data(part.data)
        if decoded is not None:
            chunks.append(decoded)

    match = _CODE_PATTERN.search("".join(chunks))
    return match.group(1) if match else None


def decode_part_data(data: str) -> str | None:
    """
    Decode URL-safe base64 body data, tolerating missing padding.

    Returns None when the data is not a valid base64 string.
    """
    if not isinstance(data, str) or not data:
        return None
    padded = data + "=" * (-len(data) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError):
        logger.debug("Skipping undecodable message part")
        return None
    return raw.decode("utf-8", errors="replace")
