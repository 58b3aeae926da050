"""
SQLAlchemy models for the local video catalog.
Mirrors the spreadsheet columns so both backends hold the same records.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Video(Base):
    """Catalog entry. Url uniqueness is checked by the conversation, not here."""

    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Indexes
    __table_args__ = (
        Index("ix_videos_url", "url"),
    )

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, url='{self.url}', tags='{self.tags}')>"
