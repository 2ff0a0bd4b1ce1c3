r"""Map raw IMAP fetch responses to canonical Message records.

AIDEV-NOTE: Address parsing asymmetry
- Sender: prefer the quoted display name ("Jane" <jane@x>), then the text
  before '<', then "Unknown"
- Recipient: prefer the bracketed address, then the text before '@', then
  "Unknown"
- The web client depends on this behaviour; do not unify the two chains
  without a client change

AIDEV-NOTE: Flags
- unread    = \Seen absent
- flagged   = \Flagged present (starred)
- important = server keyword "Important" present (not an IMAP system flag)
"""

import base64
import binascii
import email.errors
import html
import re
from datetime import datetime
from email.header import decode_header, make_header
from typing import Any

import mailparser
from imapclient import FLAGGED, SEEN
from mailparser.exceptions import MailParserError

from shoora_mail.lib.config import mailbox_config
from shoora_mail.lib.logger import get_logger
from shoora_mail.models.message import Attachment, Message

logger = get_logger(__name__)

PREVIEW_LENGTH = 100

QUOTED_NAME_PATTERN = re.compile(r'"([^"]*)"')
BRACKETED_ADDRESS_PATTERN = re.compile(r"<([^>]*)>")
PARAGRAPH_SPLIT_PATTERN = re.compile(r"\r?\n\s*\r?\n")


def render_text_as_html(text: str | None) -> str | None:
    """Render plain text as simple HTML.

    Blank lines separate paragraphs, single line breaks become <br/>.

    Args:
        text: Plain text body

    Returns:
        HTML fragment, or None when there is no text
    """
    if not text:
        return None

    paragraphs = [p for p in PARAGRAPH_SPLIT_PATTERN.split(text.strip()) if p.strip()]
    if not paragraphs:
        return None

    rendered = []
    for paragraph in paragraphs:
        lines = [html.escape(line) for line in paragraph.splitlines()]
        rendered.append("<p>" + "<br/>".join(lines) + "</p>")
    return "".join(rendered)


def parse_sender(header_text: str) -> tuple[str, str]:
    """Split a From header into (display name, address)."""
    name_match = QUOTED_NAME_PATTERN.search(header_text)
    address_match = BRACKETED_ADDRESS_PATTERN.search(header_text)

    if name_match:
        name = name_match.group(1)
    else:
        name = header_text.split("<")[0].strip() or "Unknown"
    address = address_match.group(1) if address_match else header_text
    return name, address


def parse_recipient(header_text: str) -> tuple[str, str]:
    """Split a To header into (display value, address).

    The display value is the bracketed address when there is one.
    """
    address_match = BRACKETED_ADDRESS_PATTERN.search(header_text)

    if address_match:
        name = address_match.group(1)
    else:
        name = header_text.split("@")[0].strip() or "Unknown"
    address = address_match.group(1) if address_match else header_text
    return name, address


class MessageNormalizer:
    """Converts fetched messages into Message records.

    Attributes:
        _important_flag: Server keyword marking important messages
    """

    def __init__(self, important_flag: str | None = None) -> None:
        flag = important_flag or mailbox_config.important_flag
        self._important_flag = flag.encode() if isinstance(flag, str) else flag

    def normalize(self, msg_id: int, data: dict[bytes, Any], folder: str) -> Message:
        """Build a Message from one fetch response entry.

        Args:
            msg_id: Key of the fetch response (UID or sequence number)
            data: Fetch data with b"UID", b"FLAGS", b"INTERNALDATE", b"BODY[]"
            folder: Folder name stamped onto the record

        Returns:
            Message record

        Note:
            A body that cannot be parsed yields a record with empty content
            instead of failing the whole fetch.
        """
        uid = int(data.get(b"UID", msg_id))
        flags = tuple(data.get(b"FLAGS", ()))
        internal_date = data.get(b"INTERNALDATE")
        source = data.get(b"BODY[]") or b""

        mail = self._parse(uid, source)

        sender_text = self._header_text(mail, "From")
        to_text = self._header_text(mail, "To")
        sender, sender_email = parse_sender(sender_text)
        to, to_email = parse_recipient(to_text)

        text = self._joined(mail, "text_plain")
        html_body = self._joined(mail, "text_html")
        text_as_html = render_text_as_html(text)

        if text_as_html:
            preview = text_as_html[:PREVIEW_LENGTH]
        elif text:
            preview = text[:PREVIEW_LENGTH]
        else:
            preview = ""

        return Message(
            uid=uid,
            sender=sender,
            sender_email=sender_email,
            to=to,
            to_email=to_email,
            subject=self._subject(mail),
            preview=preview,
            body=html_body or text_as_html or text or "",
            date=self._date(mail) or internal_date,
            unread=SEEN not in flags,
            flagged=FLAGGED in flags,
            important=self._important_flag in flags,
            attachments=self._attachments(mail),
            folder=folder,
        )

    # ------------------------------------------------------------------
    # Parsing helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _parse(uid: int, source: bytes) -> Any:
        if not source:
            return None
        try:
            return mailparser.parse_from_bytes(source)
        except (MailParserError, email.errors.MessageError, UnicodeError, ValueError) as e:
            logger.warning(f"Failed to parse message {uid}: {e}")
            return None

    @staticmethod
    def _header_text(mail: Any, name: str) -> str:
        """Decoded header value with folding whitespace collapsed."""
        if mail is None:
            return ""
        raw = mail.message.get(name)
        if raw is None:
            return ""
        raw = re.sub(r"\s+", " ", str(raw)).strip()
        try:
            return str(make_header(decode_header(raw))).strip()
        except (email.errors.HeaderParseError, UnicodeError, LookupError):
            return raw

    @staticmethod
    def _joined(mail: Any, attribute: str) -> str | None:
        if mail is None:
            return None
        parts = getattr(mail, attribute, None) or []
        joined = "\n".join(p for p in parts if p)
        return joined or None

    @staticmethod
    def _subject(mail: Any) -> str | None:
        if mail is None:
            return None
        return mail.subject or None

    @staticmethod
    def _date(mail: Any) -> datetime | None:
        if mail is None:
            return None
        value = mail.date
        return value if isinstance(value, datetime) else None

    @staticmethod
    def _attachments(mail: Any) -> tuple[Attachment, ...]:
        if mail is None:
            return ()

        attachments = []
        for part in mail.attachments or []:
            payload = part.get("payload") or ""
            if part.get("binary"):
                try:
                    size = len(base64.b64decode(payload))
                except (binascii.Error, ValueError):
                    size = 0
                content = payload
            else:
                raw = payload.encode("utf-8", errors="replace")
                size = len(raw)
                content = base64.b64encode(raw).decode("ascii")

            attachments.append(
                Attachment(
                    filename=part.get("filename") or "attachment",
                    content_type=part.get("mail_content_type") or "application/octet-stream",
                    content_id=part.get("content-id") or None,
                    size=size,
                    content=content,
                )
            )
        return tuple(attachments)


def normalize(data: dict[bytes, Any], folder: str = "inbox", msg_id: int = 0) -> Message:
    """Normalize one fetch response entry with the configured flags."""
    return MessageNormalizer().normalize(msg_id, data, folder)
