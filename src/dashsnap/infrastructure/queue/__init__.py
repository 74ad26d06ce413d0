"""Background job queue."""
