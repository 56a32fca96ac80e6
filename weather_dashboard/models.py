"""
ORM models.

The search history is stored as a whole collection: ``position`` keeps the
insertion order, ``id`` is the stable public identifier.
"""

from sqlalchemy import String, Integer
from sqlalchemy.orm import Mapped, mapped_column

from .db import Base


class SearchHistoryRow(Base):
    __tablename__ = "search_history"

    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, index=True)

    # Exactly what the user typed; dedup lowercases a copy, never this column
    name: Mapped[str] = mapped_column(String(255))
