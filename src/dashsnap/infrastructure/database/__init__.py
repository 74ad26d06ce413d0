"""Database models, repositories and connection handling."""
