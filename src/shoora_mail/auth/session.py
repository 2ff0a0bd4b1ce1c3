"""Per-request IMAP sessions.

Every request opens its own connection, authenticates, does one unit of work
and logs out. There is no pooling and no shared session registry: a
``MailSession`` is owned by exactly one caller and is closed exactly once,
whichever way the work ends.

AIDEV-NOTE: Lifecycle
- MailSessionFactory.open_session() connects and logs in (CONNECTING -> CONNECTED)
- MailSession.lock(folder) selects one folder; at most one lock per session
- MailboxLock release sends UNSELECT when advertised; it never sends CLOSE,
  which would expunge \Deleted messages the request did not touch
- MailSession.close() logs out once (-> DISCONNECTED); later calls are no-ops

AIDEV-NOTE: TLS
- Certificate verification follows ImapConfig.verify_certificates
- It is off by default for the hosted provider this backend targets;
  this is a known risk, not an oversight
"""

import re
import ssl
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError, LoginError

from shoora_mail.exceptions import (
    AuthenticationError,
    FolderNotFoundError,
    MailConnectionError,
    OperationError,
)
from shoora_mail.lib.config import ImapConfig, imap_config
from shoora_mail.lib.logger import get_logger, hash_address

if TYPE_CHECKING:
    from shoora_mail.auth.protocols import MailClientProtocol

logger = get_logger(__name__)

# Email validation pattern (compiled once at module level for performance)
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


# ============================================================================
# Enums
# ============================================================================
class SessionState(Enum):
    """Mail session connection states.

    State transitions:
    - CONNECTING → CONNECTED (on successful login)
    - CONNECTING → ERROR (on auth or connection failure)
    - CONNECTED → DISCONNECTED (on close)
    """
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


# ============================================================================
# Data Classes
# ============================================================================
@dataclass(frozen=True)
class Credentials:
    """Mailbox credentials supplied with a single request.

    Attributes:
        address: Mailbox address, also used as the IMAP login name
        secret: Mailbox password

    Credentials are never persisted and never logged; ``repr()`` omits the
    secret.
    """
    address: str
    secret: str

    def __post_init__(self) -> None:
        """Validate address format and secret presence."""
        if not self.address or not EMAIL_PATTERN.match(self.address):
            raise ValueError("Invalid email address format")
        if not self.secret:
            raise ValueError("Password cannot be empty")

    @property
    def local_part(self) -> str:
        """Part of the address before the '@'."""
        return self.address.split("@")[0]

    def __repr__(self) -> str:
        """String representation without the secret."""
        return f"Credentials(address='{self.address}')"


class MailboxLock:
    """Exclusive selection of one folder inside a session.

    Acquired through ``MailSession.lock()``. Use as a context manager so the
    folder is released on every exit path:

        with session.lock("INBOX") as mailbox:
            mailbox.client.add_flags([uid], [SEEN])
    """

    def __init__(
        self,
        session: "MailSession",
        folder: str,
        readonly: bool = False,
        operation: str = "lock",
    ) -> None:
        self._session = session
        self.folder = folder
        self.readonly = readonly
        self.operation = operation
        self.message_count = 0
        self._held = False

    @property
    def client(self) -> "MailClientProtocol":
        """Connection the lock was taken on."""
        return self._session.connection

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> "MailboxLock":
        """Select the folder.

        Raises:
            FolderNotFoundError: Folder does not exist on the server
            OperationError: Selection failed for any other reason
        """
        client = self.client
        try:
            response = client.select_folder(self.folder, readonly=self.readonly)
        except (OSError, IMAPClientError) as e:
            if not self._folder_exists():
                logger.info(f"Folder '{self.folder}' not found on server")
                raise FolderNotFoundError(self.operation, self.folder) from e
            logger.error(f"Failed to select folder '{self.folder}': {e}")
            raise OperationError(self.operation) from e

        self.message_count = int(response.get(b"EXISTS", 0))
        self._held = True
        self._session.selected_folder = self.folder
        logger.debug(f"Locked folder '{self.folder}' ({self.message_count} messages)")
        return self

    def release(self) -> None:
        """Unselect the folder. Safe to call more than once."""
        if not self._held:
            return
        self._held = False
        self._session._release_lock(self)

        # CLOSE would expunge every \Deleted message in a read-write folder.
        # Without UNSELECT the folder stays selected until logout or the next
        # SELECT, neither of which expunges.
        client = self.client
        try:
            if client.has_capability("UNSELECT"):
                client.unselect_folder()
        except (OSError, IMAPClientError) as e:
            # The session is about to be closed anyway
            logger.warning(f"Error releasing folder '{self.folder}': {e}")
        finally:
            self._session.selected_folder = None
        logger.debug(f"Released folder '{self.folder}'")

    def _folder_exists(self) -> bool:
        try:
            return bool(self.client.folder_exists(self.folder))
        except (OSError, IMAPClientError):
            return True

    def __enter__(self) -> "MailboxLock":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


@dataclass
class MailSession:
    """One authenticated, single-use IMAP connection.

    Attributes:
        address: Mailbox address the session was opened for
        connection: Live IMAP client (None once closed)
        session_id: Identifier used to correlate log lines
        state: Current SessionState
        opened_at: Timestamp of successful login
        selected_folder: Folder held by the active lock, if any

    Lifecycle:
    - Created by MailSessionFactory.open_session()
    - Used for exactly one logical operation
    - Closed exactly once via close() or the context manager exit
    """
    address: str
    connection: Optional["MailClientProtocol"] = None
    session_id: uuid.UUID = field(default_factory=uuid.uuid4)
    state: SessionState = SessionState.CONNECTING
    opened_at: datetime = field(default_factory=datetime.now)
    selected_folder: str | None = None
    _active_lock: MailboxLock | None = field(default=None, repr=False)
    _closed: bool = field(default=False, repr=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def lock(self, folder: str, readonly: bool = False, operation: str = "lock") -> MailboxLock:
        """Acquire the exclusive lock on ``folder``.

        Args:
            folder: Folder name to select
            readonly: Open folder in read-only mode (EXAMINE)
            operation: Operation name reported in errors

        Returns:
            Held MailboxLock, to be used as a context manager

        Raises:
            RuntimeError: Session is closed or already holds a lock
            FolderNotFoundError: Folder does not exist
            OperationError: Folder could not be selected
        """
        if self._closed or self.connection is None:
            raise RuntimeError(f"Session {self.session_id} is closed")
        if self._active_lock is not None:
            raise RuntimeError(
                f"Session {self.session_id} already holds a lock on "
                f"'{self._active_lock.folder}'"
            )

        mailbox_lock = MailboxLock(self, folder, readonly=readonly, operation=operation)
        self._active_lock = mailbox_lock
        try:
            return mailbox_lock.acquire()
        except Exception:
            self._active_lock = None
            raise

    def _release_lock(self, mailbox_lock: MailboxLock) -> None:
        if self._active_lock is mailbox_lock:
            self._active_lock = None

    def close(self) -> None:
        """Release any held lock and log out. Idempotent."""
        if self._closed:
            return
        self._closed = True

        if self._active_lock is not None:
            self._active_lock.release()

        if self.connection is not None:
            try:
                self.connection.logout()
                logger.debug(f"Logged out session {self.session_id}")
            except (OSError, IMAPClientError) as e:
                logger.warning(f"Error during logout for session {self.session_id}: {e}")
        self.connection = None
        self.state = SessionState.DISCONNECTED

    def __enter__(self) -> "MailSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        """String representation of session info."""
        return (
            f"MailSession(session_id={self.session_id}, "
            f"state={self.state.value}, "
            f"selected_folder='{self.selected_folder}')"
        )


# ============================================================================
# MailSessionFactory Class
# ============================================================================
class MailSessionFactory:
    """Opens fresh authenticated sessions against one IMAP host.

    Attributes:
        _config: Host, port, TLS and timeout settings
        _client_factory: Callable creating the IMAP client (IMAPClient by default)
    """

    def __init__(
        self,
        config: ImapConfig | None = None,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        """Initialize session factory.

        Args:
            config: IMAP configuration (default: module-level imap_config)
            client_factory: Replacement for IMAPClient, used by tests
        """
        self._config = config or imap_config
        self._client_factory = client_factory or IMAPClient

    @property
    def config(self) -> ImapConfig:
        return self._config

    def open_session(self, credentials: Credentials) -> MailSession:
        """Connect and authenticate a new session.

        Args:
            credentials: Credentials for this request

        Returns:
            MailSession in CONNECTED state; the caller must close it

        Raises:
            AuthenticationError: Server rejected the credentials
            MailConnectionError: Server unreachable or TLS failure
        """
        hashed = hash_address(credentials.address)
        session = MailSession(address=credentials.address)

        logger.debug(
            f"Connecting to {self._config.host}:{self._config.port} for user {hashed}"
        )
        try:
            client = self._client_factory(
                self._config.host,
                port=self._config.port,
                ssl=self._config.use_ssl,
                ssl_context=self._ssl_context() if self._config.use_ssl else None,
                timeout=self._config.timeout,
            )
        except (OSError, IMAPClientError) as e:
            session.state = SessionState.ERROR
            logger.error(f"Connection to {self._config.host} failed for user {hashed}: {e}")
            raise MailConnectionError(
                f"Failed to connect to {self._config.host}:{self._config.port}"
            ) from e

        try:
            client.login(credentials.address, credentials.secret)
        except LoginError as e:
            session.state = SessionState.ERROR
            self._shutdown(client)
            logger.warning(f"Authentication rejected for user {hashed}")
            raise AuthenticationError("Invalid credentials") from e
        except (OSError, IMAPClientError) as e:
            session.state = SessionState.ERROR
            self._shutdown(client)
            logger.error(f"Login failed for user {hashed}: {e}")
            raise MailConnectionError("Connection failed during login") from e

        session.connection = client
        session.state = SessionState.CONNECTED
        session.opened_at = datetime.now()
        logger.info(f"Session {session.session_id} opened for user {hashed}")
        return session

    def _ssl_context(self) -> ssl.SSLContext:
        ssl_context = ssl.create_default_context()
        if not self._config.verify_certificates:
            ssl_context.check_hostname = False
            ssl_context.verify_mode = ssl.CERT_NONE
        return ssl_context

    @staticmethod
    def _shutdown(client: Any) -> None:
        """Drop the socket of a client that never finished logging in."""
        try:
            client.shutdown()
        except (OSError, IMAPClientError) as e:
            logger.debug(f"Error shutting down connection: {e}")
