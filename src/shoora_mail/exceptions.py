"""Exception hierarchy for Shoora Mail.

Errors are grouped by where in the request lifecycle they occur so the HTTP
layer can map them to a status code without inspecting server text:

- SessionError: the session could not be opened (HTTP 401)
- OperationError: an action failed after login (HTTP 500)
- TransportError: outbound SMTP delivery failed (HTTP 500)

Messages are generic on purpose. The raw protocol diagnostic is kept as the
exception's ``__cause__`` and only ever reaches the logs.
"""


class MailError(Exception):
    """Base class for all Shoora Mail errors."""
    pass


# ============================================================================
# Session Errors
# ============================================================================
class SessionError(MailError):
    """Raised when a mail session cannot be established."""
    pass


class AuthenticationError(SessionError):
    """Raised when the mail server rejects the supplied credentials.

    This includes:
    - Wrong address or password
    - Account disabled or IMAP access turned off
    """
    pass


class MailConnectionError(SessionError):
    """Raised when the mail server cannot be reached.

    This includes:
    - DNS or network failures
    - TLS handshake failures
    - Connection timeouts
    """
    pass


# ============================================================================
# Operation Errors
# ============================================================================
class OperationError(MailError):
    """Raised when a mailbox operation fails after successful login.

    Attributes:
        operation: Short name of the failed operation (e.g. "delete")
    """

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message or f"Mailbox operation '{operation}' failed")


class FolderNotFoundError(OperationError):
    """Raised when the target folder does not exist on the server."""

    def __init__(self, operation: str, folder: str) -> None:
        self.folder = folder
        super().__init__(operation, f"Folder '{folder}' does not exist")


class TransportError(MailError):
    """Raised when an outbound message cannot be delivered over SMTP."""
    pass


# ============================================================================
# Warnings
# ============================================================================
class ArchivalWarning(UserWarning):
    """Self-copy of a delivered message could not be stored.

    Never raised to callers: it is logged and attached to the send result,
    since the message itself already reached the recipient.
    """
    pass
