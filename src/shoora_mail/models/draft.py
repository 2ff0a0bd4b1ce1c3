"""Outbound message records."""

import base64
import binascii
from dataclasses import dataclass, field

from shoora_mail.exceptions import ArchivalWarning


@dataclass(frozen=True)
class OutboundAttachment:
    """
    File attached to an outbound message.

    Attributes:
        filename: File name shown to the recipient
        content: Raw file bytes
        content_type: MIME type (default: application/octet-stream)
    """

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @classmethod
    def from_payload(
        cls,
        filename: str,
        content: str,
        encoding: str | None = "base64",
        content_type: str | None = None,
    ) -> "OutboundAttachment":
        """
        Build an attachment from a JSON request payload.

        Args:
            filename: File name
            content: File content, base64 text unless ``encoding`` says otherwise
            encoding: "base64" or None/"utf-8" for plain text content
            content_type: MIME type, if known

        Raises:
            ValueError: Content is not valid base64
        """
        if encoding and encoding.lower() == "base64":
            try:
                data = base64.b64decode(content, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Attachment '{filename}' is not valid base64") from e
        else:
            data = content.encode("utf-8")

        return cls(
            filename=filename,
            content=data,
            content_type=content_type or "application/octet-stream",
        )


@dataclass
class OutboundDraft:
    """
    Logical outbound message, alive only while it is being compiled.

    Attributes:
        from_address: Sender address (From header and envelope sender)
        to: Recipient addresses
        subject: Subject line
        text: Plain text body
        html: Optional HTML alternative
        attachments: Files to attach
        in_reply_to: Message-ID this message replies to
        references: Message-IDs of the thread, oldest first
        from_name: Optional sender display name
    """

    from_address: str
    to: list[str]
    subject: str = ""
    text: str = ""
    html: str | None = None
    attachments: list[OutboundAttachment] = field(default_factory=list)
    in_reply_to: str | None = None
    references: list[str] = field(default_factory=list)
    from_name: str | None = None

    def __post_init__(self) -> None:
        """Normalize recipients."""
        if isinstance(self.to, str):
            self.to = [addr.strip() for addr in self.to.split(",") if addr.strip()]
        if not self.from_address:
            raise ValueError("Sender address cannot be empty")


@dataclass
class SendResult:
    """
    Outcome of a send, reply or forward.

    ``delivered`` reflects the SMTP hand-off only. Archival of the self-copy
    is tracked separately and never changes it.
    """

    delivered: bool
    archived: bool = False
    archive_folder: str | None = None
    warnings: list[ArchivalWarning] = field(default_factory=list)
