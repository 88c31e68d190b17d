"""Export manifest model.

The manifest (``export-index.json``) summarises an export: aggregate counts and
one entry per declared folder. It is only a hint for folder discovery; the
archive's own entries are authoritative.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class DateRange(BaseModel):
    """Earliest and latest message dates of a folder, as exported."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    earliest: str | None = Field(
        default=None,
        alias="Earliest",
        validation_alias=AliasChoices("Earliest", "earliest"),
    )
    latest: str | None = Field(
        default=None,
        alias="Latest",
        validation_alias=AliasChoices("Latest", "latest"),
    )


class ManifestFolder(BaseModel):
    """A folder declared by the export manifest."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(
        alias="Name",
        validation_alias=AliasChoices("Name", "name"),
        description="Display name of the folder",
    )
    safe_name: str = Field(
        alias="SafeName",
        validation_alias=AliasChoices("SafeName", "safeName", "safe_name"),
        description="Filesystem-safe alias used as the folder's directory name",
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


class ExportManifest(BaseModel):
    """Top-level summary of an export."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    export_date: str | None = Field(
        default=None,
        alias="ExportDate",
        validation_alias=AliasChoices("ExportDate", "exportDate", "export_date"),
    )
    total_folders: int = Field(
        default=0,
        alias="TotalFolders",
        validation_alias=AliasChoices("TotalFolders", "totalFolders", "total_folders"),
    )
    total_emails: int = Field(
        default=0,
        alias="TotalEmails",
        validation_alias=AliasChoices("TotalEmails", "totalEmails", "total_emails"),
    )
    total_attachments: int = Field(
        default=0,
        alias="TotalAttachments",
        validation_alias=AliasChoices("TotalAttachments", "totalAttachments", "total_attachments"),
    )
    folders: list[ManifestFolder] = Field(
        default_factory=list,
        alias="Folders",
        validation_alias=AliasChoices("Folders", "folders"),
    )

    @field_validator("total_folders", "total_emails", "total_attachments", mode="before")
    @classmethod
    def _null_count(cls, value: object) -> object:
        return 0 if value is None else value

    @field_validator("folders", mode="before")
    @classmethod
    def _null_folders(cls, value: object) -> object:
        return [] if value is None else value
