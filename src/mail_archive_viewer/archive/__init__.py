"""Archive access and folder discovery for exported mail collections."""

from .manifest import FolderSource, ManifestResolver, ResolvedFolders
from .reader import ArchiveEntry, ArchiveReader

__all__ = ["ArchiveEntry", "ArchiveReader", "FolderSource", "ManifestResolver", "ResolvedFolders"]
