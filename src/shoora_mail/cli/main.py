"""Shoora Mail CLI interface."""

import sys

import click
import uvicorn

from shoora_mail.auth.session import Credentials
from shoora_mail.exceptions import AuthenticationError, MailConnectionError, MailError
from shoora_mail.lib.config import imap_config, mailbox_config, server_config, smtp_config
from shoora_mail.lib.logger import get_logger
from shoora_mail.models.message import Message
from shoora_mail.services.mail_service import MailService

logger = get_logger(__name__)


def _service() -> MailService:
    return MailService()


def _credentials(email: str, password: str) -> Credentials:
    try:
        return Credentials(address=email.strip(), secret=password)
    except ValueError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)


def _echo_messages(messages: list[Message]) -> None:
    if not messages:
        click.echo("No messages.")
        return

    for message in messages:
        marker = "*" if message.unread else " "
        star = "★" if message.flagged else " "
        date = message.date.strftime("%Y-%m-%d %H:%M") if message.date else "-"
        click.echo(f"{marker}{star} {message.uid:>6}  {date}  {message.sender[:24]:<24}  {message.display_subject}")


def _fail(e: MailError) -> None:
    if isinstance(e, AuthenticationError):
        click.echo("✗ Authentication failed: check your email and password", err=True)
    elif isinstance(e, MailConnectionError):
        click.echo("✗ Could not connect to the mail server", err=True)
    else:
        click.echo(f"✗ Error: {e}", err=True)
    logger.debug(f"CLI command failed: {type(e).__name__}")
    sys.exit(1)


@click.group()
@click.version_option(version="1.0.0", prog_name="shoora-mail")
def cli():
    """Shoora Mail - stateless webmail backend over IMAP and SMTP."""
    pass


@cli.command()
@click.option("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
@click.option("--port", type=int, default=None, help="Port (default: PORT or 5000)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host, port, reload):
    """Run the HTTP API."""
    host = host or server_config.host
    port = port or server_config.port
    click.echo(f"Serving Shoora Mail API on http://{host}:{port}{server_config.api_prefix}")
    uvicorn.run("shoora_mail.api.app:app", host=host, port=port, reload=reload)


@cli.command()
@click.option("--email", prompt="Email address", help="Mailbox address")
@click.option("--password", prompt=True, hide_input=True, help="Mailbox password")
def inbox(email, password):
    """List the newest inbox messages."""
    credentials = _credentials(email, password)

    try:
        result = _service().fetch_inbox(credentials)
    except MailError as e:
        _fail(e)
        return

    click.echo(f"Inbox for {result.user_name}")
    click.echo("=" * (10 + len(result.user_name)))
    _echo_messages(result.messages)


@cli.command()
@click.argument("name")
@click.option("--email", prompt="Email address", help="Mailbox address")
@click.option("--password", prompt=True, hide_input=True, help="Mailbox password")
def folder(name, email, password):
    """List the newest messages of folder NAME."""
    credentials = _credentials(email, password)

    try:
        result = _service().fetch_folder(credentials, name)
    except MailError as e:
        _fail(e)
        return

    click.echo(f"Folder: {result.folder}")
    click.echo("=" * (8 + len(result.folder)))
    _echo_messages(result.messages)


@cli.command()
def config():
    """Show effective configuration (secrets omitted)."""
    click.echo("Shoora Mail Configuration")
    click.echo("=========================")

    click.echo("\nIMAP:")
    click.echo(f"  Server: {imap_config.host}:{imap_config.port}")
    click.echo(f"  SSL: {imap_config.use_ssl}")
    click.echo(f"  Verify certificates: {imap_config.verify_certificates}")

    click.echo("\nSMTP:")
    click.echo(f"  Server: {smtp_config.host}:{smtp_config.port}")
    click.echo(f"  SSL: {smtp_config.use_ssl}")
    click.echo(f"  Site account: {'configured' if smtp_config.has_site_account else 'not configured'}")

    click.echo("\nMailbox:")
    click.echo(f"  Inbox folder: {mailbox_config.inbox_folder}")
    click.echo(f"  Inbox fetch limit: {mailbox_config.inbox_fetch_limit}")
    click.echo(f"  Folder fetch limit: {mailbox_config.folder_fetch_limit}")
    click.echo(f"  Sent folders: {', '.join(mailbox_config.sent_folders)}")
    click.echo(f"  Drafts folders: {', '.join(mailbox_config.drafts_folders)}")

    click.echo("\nServer:")
    click.echo(f"  Bind: {server_config.host}:{server_config.port}")
    click.echo(f"  API prefix: {server_config.api_prefix}")


if __name__ == "__main__":
    cli()
