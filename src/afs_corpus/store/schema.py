"""SQLAlchemy ORM schema for sources, scrapes, elements and the search log."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from afs_corpus.models import StoredElement


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Source(Base):
    """A fetchable regulation page and its fetch settings."""

    __tablename__ = "sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current: Mapped[bool] = mapped_column("is_current", Boolean, nullable=False, default=True)
    superseded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    scrapes: Mapped[list["Scrape"]] = relationship(
        back_populates="source", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index(
            "ux_sources_url_current",
            "url",
            unique=True,
            sqlite_where=text("is_current = 1"),
            postgresql_where=text("is_current"),
        ),
        Index("ux_sources_url_version", "url", "version", unique=True),
    )


class Scrape(Base):
    """One fetched revision of a source page."""

    __tablename__ = "scrapes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    source_id: Mapped[int] = mapped_column(ForeignKey("sources.id", ondelete="CASCADE"), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(512))
    raw_html: Mapped[str] = mapped_column(Text, nullable=False)
    plain_text: Mapped[Optional[str]] = mapped_column(Text)
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current: Mapped[bool] = mapped_column("is_current", Boolean, nullable=False, default=True)
    superseded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    source: Mapped[Source] = relationship(back_populates="scrapes")
    elements: Mapped[list["Element"]] = relationship(
        back_populates="scrape", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index(
            "ux_scrapes_url_source_current",
            "url",
            "source_id",
            unique=True,
            sqlite_where=text("is_current = 1"),
            postgresql_where=text("is_current"),
        ),
        Index("ux_scrapes_url_source_version", "url", "source_id", "version", unique=True),
    )


class Element(Base):
    """One classified content element of a scrape revision."""

    __tablename__ = "elements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    scrape_id: Mapped[int] = mapped_column(ForeignKey("scrapes.id", ondelete="CASCADE"), nullable=False)
    tag_name: Mapped[str] = mapped_column(String(32), nullable=False)
    element_class: Mapped[Optional[str]] = mapped_column(String(512))
    element_id: Mapped[Optional[str]] = mapped_column(String(512))
    text_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    html_snippet: Mapped[str] = mapped_column(Text, nullable=False)
    regulation: Mapped[Optional[str]] = mapped_column(String(32))
    chapter: Mapped[Optional[int]] = mapped_column(Integer)
    section: Mapped[Optional[int]] = mapped_column(Integer)
    appendix: Mapped[Optional[str]] = mapped_column(String(16))
    is_transitional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_general_recommendation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    css_path: Mapped[Optional[str]] = mapped_column(Text)
    position_in_parent: Mapped[Optional[int]] = mapped_column(Integer)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current: Mapped[bool] = mapped_column("is_current", Boolean, nullable=False, default=True)
    superseded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    scrape: Mapped[Scrape] = relationship(back_populates="elements")

    __table_args__ = (
        CheckConstraint(
            "NOT (is_transitional AND (chapter IS NOT NULL OR section IS NOT NULL OR appendix IS NOT NULL))",
            name="ck_elements_transitional_scope",
        ),
        CheckConstraint(
            "NOT (appendix IS NOT NULL AND (chapter IS NOT NULL OR section IS NOT NULL))",
            name="ck_elements_appendix_scope",
        ),
        Index("ix_elements_scrape_version", "scrape_id", "version"),
        Index("ix_elements_hierarchy", "regulation", "chapter", "section", "is_general_recommendation"),
        Index("ix_elements_regulation_appendix", "regulation", "appendix"),
    )

    def to_view(self) -> StoredElement:
        return StoredElement(
            id=self.id,
            scrape_id=self.scrape_id,
            tag_name=self.tag_name,
            text_content=self.text_content,
            html_snippet=self.html_snippet,
            regulation=self.regulation,
            chapter=self.chapter,
            section=self.section,
            appendix=self.appendix,
            is_transitional=self.is_transitional,
            is_general_recommendation=self.is_general_recommendation,
            position_in_parent=self.position_in_parent,
            version=self.version,
            current=self.current,
            element_class=self.element_class,
            element_id=self.element_id,
            css_path=self.css_path,
        )


class SearchQuery(Base):
    """Append-only log of successful substring searches."""

    __tablename__ = "search_queries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    query: Mapped[str] = mapped_column(String(255), nullable=False)
    match_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (Index("ix_search_queries_created_at_query", "created_at", "query"),)
