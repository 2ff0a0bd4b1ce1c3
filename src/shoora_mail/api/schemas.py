"""Request and response bodies for the HTTP API.

Field names follow the web client's camelCase JSON; Python attributes stay
snake_case through pydantic aliases.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from shoora_mail.auth.session import Credentials
from shoora_mail.models.draft import OutboundAttachment


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CredentialsRequest(ApiModel):
    """Every route authenticates with the account's own address and password."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, repr=False)

    def credentials(self) -> Credentials:
        return Credentials(address=self.email.strip(), secret=self.password)


class FolderRequest(CredentialsRequest):
    folder: str = Field(..., min_length=1)


class MessageRequest(CredentialsRequest):
    message_id: int = Field(..., validation_alias=AliasChoices("messageId", "uid", "message_id"))


class MarkReadRequest(MessageRequest):
    read: bool


class ToggleStarRequest(MessageRequest):
    starred: bool


class ToggleImportantRequest(MessageRequest):
    important: bool


class MoveRequest(MessageRequest):
    destination_folder: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("destinationFolder", "destination_folder"),
    )


class AttachmentPayload(ApiModel):
    """Attachment as sent by the web client (base64 content by default)."""

    filename: str = Field(..., min_length=1)
    content: str
    encoding: str | None = "base64"
    content_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("contentType", "content_type"),
    )

    def to_attachment(self) -> OutboundAttachment:
        return OutboundAttachment.from_payload(
            self.filename, self.content, self.encoding, self.content_type
        )


class ComposeRequest(CredentialsRequest):
    to: list[str]
    subject: str = ""
    body: str = ""
    attachments: list[AttachmentPayload] = Field(default_factory=list)

    @field_validator("to", mode="before")
    @classmethod
    def split_recipients(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    def outbound_attachments(self) -> list[OutboundAttachment]:
        return [attachment.to_attachment() for attachment in self.attachments]


class SendRequest(ComposeRequest):
    html: str | None = None


class ReplyRequest(ComposeRequest):
    original_message_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("originalMessageId", "original_message_id"),
    )


class DraftRequest(ComposeRequest):
    # Drafts may be saved before any recipient is entered
    to: list[str] = Field(default_factory=list)
    html: str | None = None


