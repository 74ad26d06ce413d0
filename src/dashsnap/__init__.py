"""dashsnap - shareable dashboard snapshots with pluggable full-text search."""

__version__ = "0.1.0"
