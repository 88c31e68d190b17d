"""Folder metadata model (``<alias>/folder-info.json``)."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from mail_archive_viewer.models.manifest import DateRange


class TopSender(BaseModel):
    """A sender and the number of messages they sent to the folder."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sender: str = Field(alias="Sender", validation_alias=AliasChoices("Sender", "sender"))
    count: int = Field(default=0, alias="Count", validation_alias=AliasChoices("Count", "count"))


class FolderRecord(BaseModel):
    """A folder of the imported archive, keyed by its alias."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(description="Folder alias; archive path prefix and message foreign key")
    folder_name: str = Field(
        default="",
        alias="FolderName",
        validation_alias=AliasChoices("FolderName", "folderName", "folder_name", "Name", "name"),
        description="Display name",
    )
    export_date: str | None = Field(
        default=None,
        alias="ExportDate",
        validation_alias=AliasChoices("ExportDate", "exportDate", "export_date"),
    )
    email_count: int = Field(
        default=0,
        alias="EmailCount",
        validation_alias=AliasChoices("EmailCount", "emailCount", "messageCount", "email_count"),
    )
    attachment_count: int = Field(
        default=0,
        alias="AttachmentCount",
        validation_alias=AliasChoices("AttachmentCount", "attachmentCount", "attachment_count"),
    )
    date_range: DateRange | None = Field(
        default=None,
        alias="DateRange",
        validation_alias=AliasChoices("DateRange", "dateRange", "date_range"),
    )
    top_senders: list[TopSender] = Field(
        default_factory=list,
        alias="TopSenders",
        validation_alias=AliasChoices("TopSenders", "topSenders", "top_senders"),
    )

    @field_validator("email_count", "attachment_count", mode="before")
    @classmethod
    def _null_count(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("top_senders", mode="before")
    @classmethod
    def _null_senders(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def display_name(self) -> str:
        return self.folder_name or self.id
