"""
Composition root - Builds the registration service from settings.

Owns the lifetime of every infrastructure resource (connection pool, HTTP
clients). Both the FastAPI lifespan and the CLI go through open_container().
"""

import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass

import httpx
from psycopg_pool import ConnectionPool

from src.adapters.gmail import GmailMailbox, OAuthCredentials
from src.adapters.luma import LumaClient
from src.adapters.repository import InMemoryRecordStore, PostgresRecordStore, run_migrations
from src.config.settings import Settings
from src.domain.mailbox import MailboxPoller
from src.domain.registration import RegistrationService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Wired application objects."""

    settings: Settings
    store: PostgresRecordStore | InMemoryRecordStore
    service: RegistrationService


def build_store(settings: Settings, stack: ExitStack) -> PostgresRecordStore | InMemoryRecordStore:
    """Create the configured record store, running migrations for Postgres."""
    if settings.record_store == "memory":
        logger.info("Using in-memory record store")
        return InMemoryRecordStore()

    logger.info("Connecting to database...")
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=True,
    )
    stack.callback(pool.close)

    logger.info("Running database migrations...")
    run_migrations(pool)
    return PostgresRecordStore(pool)


def build_service(
    settings: Settings,
    store: PostgresRecordStore | InMemoryRecordStore,
    luma_http: httpx.Client,
    gmail_http: httpx.Client,
) -> RegistrationService:
    """Wire adapters into the domain service."""
    credentials = OAuthCredentials(
        client_id=settings.gmail_client_id,
        client_secret=settings.gmail_client_secret,
        refresh_token=settings.gmail_refresh_token,
    )
    poller = MailboxPoller(
        mailbox=GmailMailbox(gmail_http, credentials),
        sender=settings.verification_sender,
        subject_contains=settings.verification_subject,
        window_minutes=settings.mailbox_window_minutes,
        max_attempts=settings.mailbox_max_attempts,
        interval=settings.mailbox_interval_seconds,
    )
    return RegistrationService(
        store=store,
        provider=LumaClient(luma_http),
        code_retriever=poller,
    )


@contextmanager
def open_container(settings: Settings) -> Iterator[Container]:
    """
    Open all resources, yield the wired container, close everything on exit.
    """
    with ExitStack() as stack:
        timeout = httpx.Timeout(settings.http_timeout_seconds)
        luma_http = stack.enter_context(
            httpx.Client(base_url=settings.luma_api_base, timeout=timeout)
        )
        gmail_http = stack.enter_context(httpx.Client(timeout=timeout))
        store = build_store(settings, stack)
        service = build_service(settings, store, luma_http, gmail_http)
        yield Container(settings=settings, store=store, service=service)
        logger.info("Closing resources")
