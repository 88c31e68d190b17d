"""Archive import pipeline.

This package contains the bulk loader that replaces the store's contents with
an archive's, and the progress telemetry it reports while doing so.
"""

from .loader import BulkLoader, ImportSummary
from .progress import ImportProgress, ProgressTracker, compute_progress

__all__ = ["BulkLoader", "ImportProgress", "ImportSummary", "ProgressTracker", "compute_progress"]
