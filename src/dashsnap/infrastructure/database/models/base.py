"""Base model and shared column types for SQLAlchemy models."""

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntPrimaryKey = BigInteger().with_variant(Integer, "sqlite")

# JSONB on PostgreSQL, generic JSON elsewhere. Python None is stored as SQL NULL.
JSONDocument = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass
