"""
Command line interface.

    autoreg run entries.json [--event-id EVT]   bulk run with live progress
    autoreg list                                show stored registrations
    autoreg delete RECORD_ID                    remove one registration
    autoreg gmail-auth-url                      print the Gmail consent URL
    autoreg gmail-exchange CODE                 trade consent code for tokens
"""

import logging
from pathlib import Path

import click
import httpx

from src.adapters.gmail import build_authorization_url, exchange_code_for_tokens
from src.bootstrap import open_container
from src.config.settings import get_settings
from src.domain.entries import parse_entries
from src.domain.exceptions import MailboxError, MalformedInput, NotFound, StoreUnavailable


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: LOG_LEVEL)")
def cli(log_level: str | None) -> None:
    """Automated event registration with email-code sign-in."""
    settings = get_settings()
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command("run")
@click.argument("entries_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--event-id", default=None, help="Event id (default: DEFAULT_EVENT_ID)")
def run_cmd(entries_file: Path, event_id: str | None) -> None:
    """Register every entry of ENTRIES_FILE, one at a time."""
    try:
        entries = parse_entries(entries_file.read_bytes())
    except MalformedInput as exc:
        raise click.BadParameter(str(exc), param_hint="ENTRIES_FILE") from None

    settings = get_settings()
    event = event_id or settings.default_event_id
    click.echo(f"Processing {len(entries)} entr{'y' if len(entries) == 1 else 'ies'} for {event}")

    def on_progress(email: str, label: str) -> None:
        click.echo(f"  {email}: {label}")

    try:
        with open_container(settings) as container:
            result = container.service.process_many(entries, event, on_progress)
    except StoreUnavailable as exc:
        raise click.ClickException(str(exc)) from None

    click.echo(f"\n{len(result.successful)} succeeded, {len(result.failed)} failed")
    for failure in result.failed:
        click.echo(f"  FAILED {failure.email}: {failure.error}", err=True)
    if result.failed:
        raise SystemExit(1)


@cli.command("list")
def list_cmd() -> None:
    """Show stored registrations, most recent first."""
    try:
        with open_container(get_settings()) as container:
            records = container.service.list_records()
    except StoreUnavailable as exc:
        raise click.ClickException(str(exc)) from None

    if not records:
        click.echo("No registrations")
        return
    for record in records:
        created = record.created_at.isoformat() if record.created_at else "-"
        line = f"{record.id}  {record.status.value:<10} {record.email}  {created}"
        if record.error_message:
            line += f"  ({record.error_message})"
        click.echo(line)


@cli.command("delete")
@click.argument("record_id")
def delete_cmd(record_id: str) -> None:
    """Delete the registration RECORD_ID."""
    try:
        with open_container(get_settings()) as container:
            container.service.delete_record(record_id)
    except (NotFound, StoreUnavailable) as exc:
        raise click.ClickException(str(exc)) from None
    click.echo(f"Deleted {record_id}")


@cli.command("gmail-auth-url")
def gmail_auth_url_cmd() -> None:
    """Print the Gmail consent URL for GMAIL_CLIENT_ID."""
    settings = get_settings()
    if not settings.gmail_client_id:
        raise click.ClickException("GMAIL_CLIENT_ID is not set")
    click.echo(build_authorization_url(settings.gmail_client_id, settings.gmail_redirect_uri))


@cli.command("gmail-exchange")
@click.argument("code")
def gmail_exchange_cmd(code: str) -> None:
    """Exchange a consent CODE for a refresh token."""
    settings = get_settings()
    try:
        with httpx.Client(timeout=settings.http_timeout_seconds) as http_client:
            tokens = exchange_code_for_tokens(
                http_client,
                code,
                settings.gmail_client_id,
                settings.gmail_client_secret,
                settings.gmail_redirect_uri,
            )
    except MailboxError as exc:
        raise click.ClickException(str(exc)) from None

    if not tokens.refresh_token:
        raise click.ClickException("No refresh token returned; revoke access and retry")
    click.echo(f"GMAIL_REFRESH_TOKEN={tokens.refresh_token}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
