"""Declarative base and column types shared by the document request models"""

from sqlalchemy import JSON, Column, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

from ..utils.time import utc_now

# JSONB on PostgreSQL, plain JSON on SQLite test databases
PortableJSONB = JSON().with_variant(JSONB(), "postgresql")

Base = declarative_base()


class TimestampMixin:
    """created_at / updated_at columns maintained by the ORM (naive UTC)."""

    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)


def one_of(column: str, values) -> str:
    """SQL CHECK expression restricting column to the values of a str Enum."""
    quoted = ", ".join(f"'{getattr(v, 'value', v)}'" for v in values)
    return f"{column} IN ({quoted})"
