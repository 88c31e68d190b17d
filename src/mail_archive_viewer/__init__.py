"""Mail Archive Viewer - import and browse exported mail archives.

This package loads a ZIP export (manifest, per-folder message documents and a
pool of attachment blobs) into a local SQLite store and provides filtered views
over the imported messages.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from mail_archive_viewer.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
