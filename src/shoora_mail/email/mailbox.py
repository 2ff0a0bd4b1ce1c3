r"""Mailbox operations executed under the lock/act/release protocol.

Every public method follows the same skeleton, implemented once in
``MailboxExecutor.run``:

1. open a fresh session for the request's credentials
2. lock the target folder (INBOX unless the operation is folder-scoped)
3. run exactly one action
4. release the lock
5. close the session

Steps 4 and 5 run on every exit path. Protocol and socket errors raised by the
action surface as ``OperationError``; the server text stays in the logs.

AIDEV-NOTE: Targeting
- Mutations address messages by UID only (IMAPClient.use_uid is True)
- The range fetch is the one place that addresses messages by position,
  because "newest N" is a position range ("start:*")
"""

import time
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, TypeVar

from imapclient import DELETED
from imapclient.exceptions import IMAPClientError

from shoora_mail.auth.protocols import MailClientProtocol, MailSessionFactoryProtocol
from shoora_mail.auth.session import Credentials, MailboxLock, MailSession, MailSessionFactory
from shoora_mail.email.normalizer import MessageNormalizer
from shoora_mail.exceptions import FolderNotFoundError, OperationError
from shoora_mail.lib.config import MailboxConfig, mailbox_config
from shoora_mail.lib.logger import get_structured_logger
from shoora_mail.models.message import Message

logger = get_structured_logger(__name__)

T = TypeVar("T")

# BODY.PEEK keeps \Seen untouched; the response key is still b"BODY[]"
FETCH_FIELDS = ["UID", "FLAGS", "INTERNALDATE", "BODY.PEEK[]"]


@contextmanager
def sequence_numbers(client: MailClientProtocol) -> Iterator[MailClientProtocol]:
    """Temporarily address messages by sequence number instead of UID."""
    previous = client.use_uid
    client.use_uid = False
    try:
        yield client
    finally:
        client.use_uid = previous


def fetch_range(total: int, limit: int) -> str | None:
    """Sequence range covering the newest ``limit`` of ``total`` messages.

    Returns:
        "start:*" with start = max(1, total - limit + 1), or None when the
        folder is empty
    """
    if total <= 0:
        return None
    start = max(1, total - limit + 1)
    return f"{start}:*"


class MailboxExecutor:
    """Runs single mailbox operations with guaranteed cleanup.

    Attributes:
        _factory: Session factory implementing MailSessionFactoryProtocol
        _normalizer: Converts fetched messages into Message records
        _config: Folder names and fetch limits
    """

    def __init__(
        self,
        session_factory: MailSessionFactoryProtocol | None = None,
        normalizer: MessageNormalizer | None = None,
        config: MailboxConfig | None = None,
    ) -> None:
        self._config = config or mailbox_config
        self._factory = session_factory or MailSessionFactory()
        self._normalizer = normalizer or MessageNormalizer(self._config.important_flag)

    @property
    def config(self) -> MailboxConfig:
        return self._config

    # ------------------------------------------------------------------
    # Generic protocol
    # ------------------------------------------------------------------

    def run(
        self,
        credentials: Credentials,
        folder: str,
        action: Callable[[MailboxLock], T],
        *,
        operation: str,
        readonly: bool = False,
    ) -> T:
        """Open a session, lock ``folder``, run ``action``, clean up.

        Args:
            credentials: Credentials for this request
            folder: Folder to lock
            action: Callable receiving the held MailboxLock
            operation: Operation name used in logs and errors
            readonly: Select the folder read-only

        Returns:
            Whatever ``action`` returns

        Raises:
            AuthenticationError: Credentials rejected
            MailConnectionError: Server unreachable
            FolderNotFoundError: ``folder`` does not exist
            OperationError: Lock or action failed
        """
        started = time.monotonic()
        status = "error"
        try:
            with self._factory.open_session(credentials) as session:
                result = self._act(session, folder, action, operation=operation, readonly=readonly)
            status = "ok"
            return result
        finally:
            logger.log_operation(
                operation, folder, status, duration_ms=(time.monotonic() - started) * 1000
            )

    def _act(
        self,
        session: MailSession,
        folder: str,
        action: Callable[[MailboxLock], T],
        *,
        operation: str,
        readonly: bool = False,
    ) -> T:
        with session.lock(folder, readonly=readonly, operation=operation) as mailbox:
            try:
                return action(mailbox)
            except (OSError, IMAPClientError) as e:
                logger.error(
                    "Mailbox action failed",
                    operation=operation,
                    folder=folder,
                    error=str(e),
                )
                raise OperationError(operation) from e

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    def fetch_recent(
        self,
        credentials: Credentials,
        folder: str,
        limit: int,
        stamp: str | None = None,
        operation: str = "fetch",
    ) -> list[Message]:
        """Fetch the newest ``limit`` messages of ``folder``, newest first.

        Args:
            credentials: Credentials for this request
            folder: Folder to read
            limit: Maximum number of messages
            stamp: Folder name written onto each record (default: ``folder``)
            operation: Operation name used in logs and errors

        Returns:
            Up to ``limit`` Message records, newest first
        """
        stamp = stamp if stamp is not None else folder

        def action(mailbox: MailboxLock) -> list[Message]:
            client = mailbox.client
            status = client.folder_status(mailbox.folder, ["MESSAGES"])
            total = int(status.get(b"MESSAGES", 0))

            message_range = fetch_range(total, limit)
            if message_range is None:
                return []

            with sequence_numbers(client):
                response = client.fetch(message_range, FETCH_FIELDS)

            # Server order is oldest to newest within the range
            messages = [
                self._normalizer.normalize(seq, response[seq], stamp)
                for seq in sorted(response)
            ]
            messages.reverse()
            return messages[:limit]

        return self.run(credentials, folder, action, operation=operation, readonly=True)

    def fetch_inbox(self, credentials: Credentials) -> list[Message]:
        """Newest inbox messages (default 10), stamped with folder "inbox"."""
        return self.fetch_recent(
            credentials,
            self._config.inbox_folder,
            self._config.inbox_fetch_limit,
            stamp="inbox",
            operation="inbox-fetch",
        )

    def fetch_folder(self, credentials: Credentials, folder: str) -> list[Message]:
        """Newest messages of ``folder`` (default 20).

        An unknown folder yields an empty list rather than an error.
        """
        try:
            return self.fetch_recent(
                credentials,
                folder,
                self._config.folder_fetch_limit,
                operation="folder-fetch",
            )
        except FolderNotFoundError:
            logger.info("Folder not found, returning no messages", folder=folder)
            return []

    # ------------------------------------------------------------------
    # Mutations (UID-targeted)
    # ------------------------------------------------------------------

    def set_flag(
        self,
        credentials: Credentials,
        uid: int,
        flag: bytes | str,
        enabled: bool,
        *,
        operation: str = "set-flag",
        folder: str | None = None,
    ) -> None:
        """Add or remove one flag on the message with ``uid``.

        Both directions are idempotent on the server side.
        """
        def action(mailbox: MailboxLock) -> None:
            if enabled:
                mailbox.client.add_flags([uid], [flag])
            else:
                mailbox.client.remove_flags([uid], [flag])

        self.run(credentials, folder or self._config.inbox_folder, action, operation=operation)

    def delete(
        self,
        credentials: Credentials,
        uid: int,
        *,
        folder: str | None = None,
    ) -> None:
        """Flag ``uid`` as deleted and expunge it explicitly.

        Uses UID EXPUNGE when the server supports UIDPLUS so only this
        message is removed; otherwise falls back to a plain EXPUNGE.
        """
        def action(mailbox: MailboxLock) -> None:
            client = mailbox.client
            client.add_flags([uid], [DELETED])
            if client.has_capability("UIDPLUS"):
                client.expunge([uid])
            else:
                client.expunge()

        self.run(credentials, folder or self._config.inbox_folder, action, operation="delete")

    def move(
        self,
        credentials: Credentials,
        uid: int,
        destination: str,
        *,
        folder: str | None = None,
    ) -> None:
        """Move ``uid`` to ``destination`` with a single UID MOVE."""
        if not destination:
            raise ValueError("Destination folder cannot be empty")

        def action(mailbox: MailboxLock) -> None:
            mailbox.client.move([uid], destination)

        self.run(credentials, folder or self._config.inbox_folder, action, operation="move")

    # ------------------------------------------------------------------
    # Append
    # ------------------------------------------------------------------

    def append(
        self,
        credentials: Credentials,
        folders: Iterable[str],
        message: bytes,
        flags: Iterable[bytes | str],
        *,
        operation: str = "append",
    ) -> str:
        """Append ``message`` to the first candidate folder that accepts it.

        Candidates are tried in order within one session. Each attempt locks
        its folder and releases it before the next one.

        Args:
            credentials: Credentials for this request
            folders: Candidate folder names, e.g. ("Sent", "Sent Items")
            message: Wire-ready message bytes
            flags: Flags stored with the message
            operation: Operation name used in logs and errors

        Returns:
            Name of the folder the message was stored in

        Raises:
            OperationError: Every candidate failed
        """
        candidates = list(folders)
        if not candidates:
            raise ValueError("At least one target folder is required")
        flags = list(flags)

        started = time.monotonic()
        last_error: Exception | None = None
        with self._factory.open_session(credentials) as session:
            for folder in candidates:
                def action(mailbox: MailboxLock, folder: str = folder) -> None:
                    mailbox.client.append(folder, message, flags=flags)

                try:
                    self._act(session, folder, action, operation=operation)
                except OperationError as e:
                    last_error = e
                    logger.warning(
                        "Append failed, trying next folder",
                        operation=operation,
                        folder=folder,
                    )
                    continue

                logger.log_operation(
                    operation, folder, "ok", duration_ms=(time.monotonic() - started) * 1000
                )
                return folder

        logger.log_operation(
            operation, ",".join(candidates), "error",
            duration_ms=(time.monotonic() - started) * 1000,
        )
        raise OperationError(operation) from last_error
