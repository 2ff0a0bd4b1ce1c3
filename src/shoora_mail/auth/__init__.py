"""Session and collaborator contracts for mailbox access."""

from shoora_mail.auth.session import (
    Credentials,
    MailboxLock,
    MailSession,
    MailSessionFactory,
    SessionState,
)
from shoora_mail.auth.protocols import (
    MailClientProtocol,
    MailSessionFactoryProtocol,
    SendTransportProtocol,
)

__all__ = [
    # Sessions
    "Credentials",
    "MailboxLock",
    "MailSession",
    "MailSessionFactory",
    "SessionState",
    # Protocols
    "MailClientProtocol",
    "MailSessionFactoryProtocol",
    "SendTransportProtocol",
]
