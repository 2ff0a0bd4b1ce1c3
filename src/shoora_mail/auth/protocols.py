"""Protocol definitions for the mail collaborators.

This module defines Protocol-based interfaces for dependency injection,
enabling testable code without concrete dependencies on imapclient and
smtplib.

Protocols use structural subtyping (PEP 544), meaning any class implementing
the required methods satisfies the protocol without explicit inheritance.

Benefits:
- Easy faking in tests (see tests/fakes.py)
- Testable without network access
- Swappable implementations
"""

from datetime import datetime
from typing import Any, Iterable, Protocol, runtime_checkable

from shoora_mail.auth.session import Credentials, MailSession

# ============================================================================
# Session Factory Protocol
# ============================================================================


@runtime_checkable
class MailSessionFactoryProtocol(Protocol):
    """Protocol for opening single-use mail sessions.

    Example:
        >>> factory: MailSessionFactoryProtocol = MailSessionFactory()
        >>> with factory.open_session(credentials) as session:
        ...     with session.lock("INBOX") as mailbox:
        ...         ...
    """

    def open_session(self, credentials: Credentials) -> MailSession:
        """Connect and authenticate a new session.

        Raises:
            AuthenticationError: Credentials rejected
            MailConnectionError: Server unreachable
        """
        ...


# ============================================================================
# IMAP Client Protocol
# ============================================================================


@runtime_checkable
class MailClientProtocol(Protocol):
    """Subset of the imapclient.IMAPClient API used by this package.

    Methods operate on UIDs while ``use_uid`` is true (the IMAPClient
    default). The range fetch switches it off for the duration of one FETCH
    so it can address messages by position.

    Example:
        >>> from imapclient import IMAPClient
        >>> client: MailClientProtocol = IMAPClient("imap.example.com")
    """

    use_uid: bool

    def login(self, username: str, password: str) -> bytes:
        """Authenticate with the server.

        Raises:
            LoginError: Credentials rejected
        """
        ...

    def logout(self) -> bytes:
        """Log out and close the connection."""
        ...

    def shutdown(self) -> None:
        """Close the socket without logging out."""
        ...

    def has_capability(self, capability: str) -> bool:
        """Whether the server advertises ``capability``."""
        ...

    def select_folder(self, folder: str, readonly: bool = False) -> dict[bytes, Any]:
        """Select a folder; returns SELECT response items (EXISTS, ...)."""
        ...

    def unselect_folder(self) -> bytes:
        """Unselect the current folder without expunging."""
        ...

    def folder_exists(self, folder: str) -> bool:
        """Whether ``folder`` exists on the server."""
        ...

    def folder_status(self, folder: str, what: Iterable[str] | None = None) -> dict[bytes, int]:
        """STATUS response for ``folder`` (e.g. {b"MESSAGES": 3})."""
        ...

    def fetch(self, messages: Any, data: Iterable[str]) -> dict[int, dict[bytes, Any]]:
        """Fetch message data keyed by message id."""
        ...

    def add_flags(self, messages: Iterable[int], flags: Iterable[bytes | str]) -> Any:
        """Add flags to messages."""
        ...

    def remove_flags(self, messages: Iterable[int], flags: Iterable[bytes | str]) -> Any:
        """Remove flags from messages."""
        ...

    def expunge(self, messages: Iterable[int] | None = None) -> Any:
        """Expunge deleted messages (UID EXPUNGE when messages are given)."""
        ...

    def move(self, messages: Iterable[int], folder: str) -> Any:
        """Move messages to ``folder`` (requires MOVE)."""
        ...

    def append(
        self,
        folder: str,
        msg: bytes,
        flags: Iterable[bytes | str] = (),
        msg_time: datetime | None = None,
    ) -> bytes:
        """Append a raw message to ``folder``."""
        ...


# ============================================================================
# Send Transport Protocol
# ============================================================================


@runtime_checkable
class SendTransportProtocol(Protocol):
    """Protocol for outbound delivery (SMTP or equivalent)."""

    def send(
        self,
        message: bytes,
        sender: str,
        recipients: list[str],
        credentials: Credentials | None = None,
    ) -> None:
        """Deliver a composed message.

        Args:
            message: Wire-ready RFC 5322 bytes
            sender: Envelope sender
            recipients: Envelope recipients
            credentials: User credentials, or None for the site account

        Raises:
            AuthenticationError: SMTP login rejected
            TransportError: Delivery failed
        """
        ...
