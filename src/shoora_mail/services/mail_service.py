"""Mailbox use cases behind the HTTP API and CLI."""

import html

from imapclient import DRAFT, FLAGGED, SEEN

from shoora_mail.auth.protocols import SendTransportProtocol
from shoora_mail.auth.session import Credentials
from shoora_mail.email.mailbox import MailboxExecutor
from shoora_mail.exceptions import ArchivalWarning, MailError
from shoora_mail.lib.config import AppConfig, SmtpConfig, app_config, smtp_config
from shoora_mail.lib.logger import get_logger, hash_address
from shoora_mail.models.draft import OutboundAttachment, OutboundDraft, SendResult
from shoora_mail.models.message import FolderResult, InboxResult
from shoora_mail.services.composer import compose
from shoora_mail.services.transport import SmtpTransport
from shoora_mail.services.welcome import build_welcome_draft

logger = get_logger(__name__)


def user_name_from_address(address: str) -> str:
    """
    Derive a display name from the local part of an address.

    Example:
        >>> user_name_from_address("john.doe@example.com")
        'John Doe'
    """
    local_part = address.split("@")[0]
    return " ".join(part[:1].upper() + part[1:] for part in local_part.split("."))


def _prefixed(subject: str, prefix: str) -> str:
    subject = subject or ""
    if subject.lower().startswith(prefix.lower()):
        return subject
    return f"{prefix} {subject}".rstrip()


class MailService:
    """
    Mailbox use cases.

    Each method opens and closes its own session(s) through the executor;
    the service itself holds no per-user state and is safe to share across
    concurrent requests.
    """

    def __init__(
        self,
        executor: MailboxExecutor | None = None,
        transport: SendTransportProtocol | None = None,
        smtp: SmtpConfig | None = None,
        app: AppConfig | None = None,
    ):
        """
        Initialize mail service.

        Args:
            executor: Mailbox executor (default: one backed by MailSessionFactory)
            transport: Send transport (default: SmtpTransport)
            smtp: SMTP configuration, used for system mail
            app: Application configuration
        """
        self._executor = executor or MailboxExecutor()
        self._smtp_config = smtp or smtp_config
        self._transport = transport or SmtpTransport(self._smtp_config)
        self._app_config = app or app_config

    @property
    def executor(self) -> MailboxExecutor:
        return self._executor

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    def fetch_inbox(self, credentials: Credentials) -> InboxResult:
        """Newest inbox messages plus the user's display name."""
        messages = self._executor.fetch_inbox(credentials)
        return InboxResult(
            user_name=user_name_from_address(credentials.address),
            messages=messages,
        )

    def fetch_folder(self, credentials: Credentials, folder: str) -> FolderResult:
        """Newest messages of ``folder``; unknown folders yield no messages."""
        if not folder:
            raise ValueError("Folder name cannot be empty")
        return FolderResult(folder=folder, messages=self._executor.fetch_folder(credentials, folder))

    # ------------------------------------------------------------------
    # Flags and mutations
    # ------------------------------------------------------------------

    def mark_read(self, credentials: Credentials, uid: int, read: bool) -> None:
        """Set or clear \\Seen on ``uid`` in the inbox."""
        self._executor.set_flag(credentials, uid, SEEN, read, operation="mark-read")

    def toggle_starred(self, credentials: Credentials, uid: int, starred: bool) -> None:
        """Set or clear \\Flagged on ``uid`` in the inbox."""
        self._executor.set_flag(credentials, uid, FLAGGED, starred, operation="toggle-star")

    def toggle_important(self, credentials: Credentials, uid: int, important: bool) -> None:
        """Set or clear the server's "Important" keyword on ``uid``."""
        self._executor.set_flag(
            credentials,
            uid,
            self._executor.config.important_flag,
            important,
            operation="toggle-important",
        )

    def delete_message(self, credentials: Credentials, uid: int) -> None:
        self._executor.delete(credentials, uid)

    def move_message(self, credentials: Credentials, uid: int, destination: str) -> None:
        self._executor.move(credentials, uid, destination)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send_mail(
        self,
        credentials: Credentials,
        to: list[str] | str,
        subject: str,
        body: str,
        attachments: list[OutboundAttachment] | None = None,
        html_body: str | None = None,
    ) -> SendResult:
        """Send a new message and archive a copy in the sent folder."""
        draft = OutboundDraft(
            from_address=credentials.address,
            to=to,
            subject=subject,
            text=body,
            html=html_body,
            attachments=attachments or [],
        )
        return self._deliver(credentials, draft)

    def reply_mail(
        self,
        credentials: Credentials,
        to: list[str] | str,
        subject: str,
        body: str,
        original_message_id: str | None = None,
        attachments: list[OutboundAttachment] | None = None,
    ) -> SendResult:
        """Send a reply threaded under ``original_message_id``."""
        draft = OutboundDraft(
            from_address=credentials.address,
            to=to,
            subject=_prefixed(subject, "Re:"),
            text=body,
            attachments=attachments or [],
            in_reply_to=original_message_id or None,
            references=[original_message_id] if original_message_id else [],
        )
        return self._deliver(credentials, draft)

    def forward_mail(
        self,
        credentials: Credentials,
        to: list[str] | str,
        subject: str,
        body: str,
        attachments: list[OutboundAttachment] | None = None,
    ) -> SendResult:
        """Forward a message body (and attachments) to new recipients."""
        draft = OutboundDraft(
            from_address=credentials.address,
            to=to,
            subject=_prefixed(subject, "Fwd:"),
            text=body,
            attachments=attachments or [],
        )
        return self._deliver(credentials, draft)

    def save_draft(
        self,
        credentials: Credentials,
        to: list[str] | str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> str:
        """
        Store a draft in the drafts folder, flagged \\Seen and \\Draft.

        Returns:
            Folder the draft was stored in

        Raises:
            OperationError: No drafts folder accepted the message
        """
        draft = OutboundDraft(
            from_address=credentials.address,
            to=to,
            subject=subject,
            text=body,
            html=html_body or f"<p>{html.escape(body or '')}</p>",
        )
        message = compose(draft)
        return self._executor.append(
            credentials,
            self._executor.config.drafts_folders,
            message,
            [SEEN, DRAFT],
            operation="save-draft",
        )

    def send_welcome(self, address: str) -> bool:
        """
        Send the welcome notification from the site account.

        Runs detached from the request that triggered it, so every failure
        is logged here and reported as False.
        """
        hashed = hash_address(address)
        if not self._app_config.welcome_mail_enabled:
            return False
        if not self._smtp_config.has_site_account:
            logger.debug("No site account configured, skipping welcome mail")
            return False

        try:
            draft = build_welcome_draft(address, self._smtp_config)
            self._transport.send(compose(draft), draft.from_address, draft.to, None)
        except (MailError, ValueError) as e:
            logger.warning(f"Welcome mail to user {hashed} failed: {e}")
            return False

        logger.info(f"Welcome mail sent to user {hashed}")
        return True

    def _deliver(self, credentials: Credentials, draft: OutboundDraft) -> SendResult:
        """Send ``draft`` then archive it; archival never affects delivery."""
        if not draft.to:
            raise ValueError("At least one recipient is required")

        message = compose(draft)
        self._transport.send(message, draft.from_address, draft.to, credentials)
        result = SendResult(delivered=True)

        try:
            result.archive_folder = self._executor.append(
                credentials,
                self._executor.config.sent_folders,
                message,
                [SEEN],
                operation="archive",
            )
            result.archived = True
        except MailError as e:
            warning = ArchivalWarning(f"Sent copy was not stored: {e}")
            result.warnings.append(warning)
            logger.warning(f"{warning} (user {hash_address(credentials.address)})")

        return result
