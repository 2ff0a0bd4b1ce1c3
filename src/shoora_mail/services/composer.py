"""Compile outbound drafts into wire-ready RFC 5322 bytes.

The same buffer is handed to SMTP for delivery and appended to the Sent or
Drafts folder, so the archived copy is byte-identical to what was sent.
"""

from email import policy
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid

from shoora_mail.models.draft import OutboundDraft


def _message_id_domain(address: str) -> str | None:
    _, _, domain = address.rpartition("@")
    return domain or None


def _references(draft: OutboundDraft) -> list[str]:
    references = list(draft.references)
    if draft.in_reply_to and draft.in_reply_to not in references:
        references.append(draft.in_reply_to)
    return references


def build_message(draft: OutboundDraft) -> EmailMessage:
    """
    Build an EmailMessage from a draft.

    Args:
        draft: Logical outbound message

    Returns:
        EmailMessage with text body, optional HTML alternative and attachments

    Raises:
        ValueError: A header value is invalid (e.g. contains a line break)
    """
    msg = EmailMessage(policy=policy.SMTP)

    if draft.from_name:
        msg["From"] = formataddr((draft.from_name, draft.from_address))
    else:
        msg["From"] = draft.from_address
    if draft.to:
        msg["To"] = ", ".join(draft.to)
    msg["Subject"] = draft.subject or ""
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid(domain=_message_id_domain(draft.from_address))

    # Threading headers for replies
    if draft.in_reply_to:
        msg["In-Reply-To"] = draft.in_reply_to
    references = _references(draft)
    if references:
        msg["References"] = " ".join(references)

    msg.set_content(draft.text or "")
    if draft.html:
        msg.add_alternative(draft.html, subtype="html")

    for attachment in draft.attachments:
        maintype, _, subtype = attachment.content_type.partition("/")
        msg.add_attachment(
            attachment.content,
            maintype=maintype or "application",
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )

    return msg


def compose(draft: OutboundDraft) -> bytes:
    """Compile ``draft`` into CRLF-terminated message bytes."""
    return build_message(draft).as_bytes(policy=policy.SMTP)
