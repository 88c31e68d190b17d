"""Message and attachment reference models (``<alias>/emails.json``)."""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


def parse_message_date(value: str | None) -> datetime | None:
    """Parse an exported message date.

    Exports carry ISO-8601 timestamps; RFC 2822 dates (as found in raw
    headers) are accepted too. Naive values are taken as UTC.
    """

    if not value:
        return None

    text = value.strip()
    parsed: datetime | None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, OverflowError):
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class AttachmentRef(BaseModel):
    """Reference from a message to a blob in the archive's attachment pool."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    guid: str = Field(
        alias="Guid",
        validation_alias=AliasChoices("Guid", "guid", "id"),
        description="Blob identifier in the attachment pool",
    )
    file_name: str = Field(
        default="",
        alias="FileName",
        validation_alias=AliasChoices("FileName", "fileName", "filename", "file_name"),
    )
    mime_type: str = Field(
        default="",
        alias="MimeType",
        validation_alias=AliasChoices("MimeType", "mimeType", "mime_type"),
    )
    size: int = Field(
        default=0,
        alias="Size",
        validation_alias=AliasChoices("Size", "size"),
        description="Size in bytes",
    )

    @field_validator("file_name", "mime_type", mode="before")
    @classmethod
    def _null_text(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("size", mode="before")
    @classmethod
    def _null_size(cls, value: object) -> object:
        return 0 if value is None else value


class MessageRecord(BaseModel):
    """A single exported message."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str = Field(
        alias="Id",
        validation_alias=AliasChoices("Id", "id"),
        description="Unique message identifier",
    )
    subject: str = Field(default="", alias="Subject", validation_alias=AliasChoices("Subject", "subject"))
    sender: str = Field(
        default="",
        alias="From",
        validation_alias=AliasChoices("From", "from", "sender"),
        description="Raw From header",
    )
    recipient: str = Field(
        default="",
        alias="To",
        validation_alias=AliasChoices("To", "to", "recipient"),
        description="Raw To header",
    )
    cc: str = Field(default="", alias="Cc", validation_alias=AliasChoices("Cc", "cc"))
    bcc: str = Field(default="", alias="Bcc", validation_alias=AliasChoices("Bcc", "bcc"))
    date: str = Field(default="", alias="Date", validation_alias=AliasChoices("Date", "date"))
    text_body: str = Field(
        default="",
        alias="TextBody",
        validation_alias=AliasChoices("TextBody", "textBody", "text_body"),
    )
    html_body: str = Field(
        default="",
        alias="HtmlBody",
        validation_alias=AliasChoices("HtmlBody", "htmlBody", "html_body"),
    )
    attachments: list[AttachmentRef] = Field(
        default_factory=list,
        alias="Attachments",
        validation_alias=AliasChoices("Attachments", "attachments"),
    )
    has_attachments: bool | None = Field(
        default=None,
        alias="HasAttachments",
        validation_alias=AliasChoices("HasAttachments", "hasAttachments", "has_attachments"),
    )
    file_name: str = Field(
        default="",
        alias="FileName",
        validation_alias=AliasChoices("FileName", "fileName", "file_name"),
        description="Name of the file the message was exported from",
    )

    # Store-side fields, never present in the archive.
    folder_id: str | None = Field(default=None, description="Alias of the owning folder")
    is_read: bool = Field(default=False, description="Whether the message has been opened")

    @field_validator(
        "subject",
        "sender",
        "recipient",
        "cc",
        "bcc",
        "date",
        "text_body",
        "html_body",
        "file_name",
        mode="before",
    )
    @classmethod
    def _null_text(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("attachments", mode="before")
    @classmethod
    def _null_attachments(cls, value: object) -> object:
        return [] if value is None else value

    @model_validator(mode="after")
    def _derive_has_attachments(self) -> MessageRecord:
        if self.has_attachments is None:
            self.has_attachments = bool(self.attachments)
        return self

    @property
    def parsed_date(self) -> datetime | None:
        return parse_message_date(self.date)
