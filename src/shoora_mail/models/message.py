"""Canonical message record returned by fetch operations."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Attachment:
    """
    Attachment extracted from a fetched message.

    Attributes:
        filename: File name as given in the MIME part
        content_type: MIME type (e.g. "application/pdf")
        content_id: Content-ID for inline parts, if any
        size: Decoded size in bytes
        content: Base64-encoded payload
    """

    filename: str
    content_type: str
    content_id: str | None = None
    size: int = 0
    content: str = ""

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "contentType": self.content_type,
            "contentId": self.content_id,
            "size": self.size,
            "content": self.content,
        }


@dataclass(frozen=True)
class Message:
    """
    Normalized view of one message in one folder.

    Records are never mutated: flag changes are made on the server and show
    up on the next fetch.

    Attributes:
        uid: Folder-scoped IMAP UID, the only stable id across fetches
        sender: Sender display name
        sender_email: Sender address
        to: Recipient display value (see normalizer for the fallback chain)
        to_email: Recipient address
        subject: Subject line
        preview: First 100 characters of the rendered text
        body: HTML body, falling back to rendered plain text
        date: Date header, falling back to the server's internal date
        unread: True when \\Seen is absent
        flagged: True when \\Flagged is present (starred)
        important: True when the server's "Important" keyword is present
        attachments: Attachments found in the MIME tree
        folder: Folder the record was fetched from, stamped by the caller
    """

    uid: int
    sender: str
    sender_email: str
    to: str
    to_email: str
    subject: str | None
    preview: str
    body: str
    date: datetime | None
    unread: bool
    flagged: bool
    important: bool
    attachments: tuple[Attachment, ...] = ()
    folder: str = "inbox"

    # Presentation defaults expected by the web client
    category: str = "personal"
    category_color: str = "#2D62ED"
    avatar: str = ""

    @property
    def starred(self) -> bool:
        return self.flagged

    @property
    def display_subject(self) -> str:
        """Get display-safe subject line."""
        return self.subject or "(No Subject)"

    def to_dict(self) -> dict:
        """Convert to the JSON shape served by the HTTP API."""
        return {
            "id": self.uid,
            "sender": self.sender,
            "senderEmail": self.sender_email,
            "to": self.to,
            "toEmail": self.to_email,
            "subject": self.subject,
            "preview": self.preview,
            "body": self.body,
            "date": self.date.isoformat() if self.date else None,
            "unread": self.unread,
            "flagged": self.flagged,
            "important": self.important,
            "attachments": [a.to_dict() for a in self.attachments],
            "folder": self.folder,
            "category": self.category,
            "categoryColor": self.category_color,
            "avatar": self.avatar,
        }


@dataclass
class InboxResult:
    """Inbox fetch result with the derived display name of the user."""

    user_name: str
    messages: list[Message] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "userName": self.user_name,
            "messages": [m.to_dict() for m in self.messages],
        }


@dataclass
class FolderResult:
    """Folder fetch result."""

    folder: str
    messages: list[Message] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "folder": self.folder,
            "messages": [m.to_dict() for m in self.messages],
        }
