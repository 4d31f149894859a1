"""Versioned corpus store: sources, scrape revisions and element batches."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import Select, delete, func, or_, select, update

from afs_corpus.config import DEFAULT_USER_AGENT
from afs_corpus.errors import DuplicateKeyError, NotFoundError
from afs_corpus.models import ElementRecord, StoredElement
from afs_corpus.store.database import Database
from afs_corpus.store.locks import KeyedLocks
from afs_corpus.store.schema import Element, Scrape, Source, utc_now
from afs_corpus.text_utils import extract_plain_text

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_SETTINGS: dict[str, Any] = {
    "enabled": True,
    "scrape_frequency": "daily",
    "user_agent": DEFAULT_USER_AGENT,
    "timeout": 30,
    "language": "sv-SE",
}


def element_select(*entities, current: bool) -> Select:
    """Elements (or the given columns) joined to their scrape, filtered to the current or historical view."""
    stmt = select(*(entities or (Element,))).join(Scrape, Element.scrape_id == Scrape.id)
    if current:
        return stmt.where(Element.current.is_(True), Scrape.current.is_(True))
    return stmt.where(or_(Element.current.is_(False), Scrape.current.is_(False)))


@dataclass
class RecordedScrape:
    """Outcome of recording one fetched page."""

    scrape: Scrape
    created: bool
    superseded: Optional[Scrape] = None


class CorpusStore:
    """Sole writer of version and current fields for sources, scrapes and elements.

    Revision creation is serialized per (url, source) and reindexing per
    scrape, each inside a single database transaction.
    """

    def __init__(self, database: Database):
        self.database = database
        self._revision_locks = KeyedLocks()
        self._reindex_locks = KeyedLocks()

    # Sources

    def create_source(self, url: str, settings: dict[str, Any] | None = None) -> Source:
        with self._revision_locks.hold(("source", url)):
            with self.database.session_scope(write=True) as session:
                if self._current_source(session, url) is not None:
                    raise DuplicateKeyError("source", url)
                source = Source(
                    url=url,
                    settings={**DEFAULT_SOURCE_SETTINGS, **(settings or {})},
                    version=1,
                    current=True,
                )
                session.add(source)
                session.flush()
        logger.info("Created source %s (id=%d)", url, source.id)
        return source

    def update_source_settings(self, url: str, settings: dict[str, Any]) -> Source:
        """Supersede the current source for `url` with a new version carrying `settings`.

        The scrape history moves to the new source row in the same transaction.
        """
        with self._revision_locks.hold(("source", url)):
            with self.database.session_scope(write=True) as session:
                previous = self._current_source(session, url)
                if previous is None:
                    raise NotFoundError("Source", url)
                previous.current = False
                previous.superseded_at = utc_now()
                session.flush()

                source = Source(
                    url=url,
                    settings={**previous.settings, **settings},
                    version=previous.version + 1,
                    current=True,
                )
                session.add(source)
                session.flush()
                session.execute(
                    update(Scrape)
                    .where(Scrape.source_id == previous.id)
                    .values({Scrape.source_id: source.id})
                )
        logger.info("Source %s superseded: version %d -> %d", url, previous.version, source.version)
        return source

    def get_source(self, source_id: int) -> Source:
        with self.database.session_scope() as session:
            source = session.get(Source, source_id)
            if source is None:
                raise NotFoundError("Source", str(source_id))
            return source

    def current_source(self, url: str) -> Source | None:
        with self.database.session_scope() as session:
            return self._current_source(session, url)

    def list_sources(self, *, current: bool) -> list[Source]:
        with self.database.session_scope() as session:
            stmt = select(Source).where(Source.current.is_(current)).order_by(Source.url, Source.version)
            return list(session.scalars(stmt))

    @staticmethod
    def _current_source(session, url: str) -> Source | None:
        return session.scalars(
            select(Source).where(Source.url == url, Source.current.is_(True))
        ).one_or_none()

    # Scrapes

    def record_scrape(
        self,
        source_id: int,
        url: str,
        raw_html: str,
        fetched_at: datetime,
        *,
        title: str | None = None,
        records: Sequence[ElementRecord] | None = None,
    ) -> RecordedScrape:
        """Create a new scrape revision unless `raw_html` equals the current one.

        Comparison, supersede, insert and, when `records` is given, the new
        element batch run as one transaction under the (url, source) lock, so
        the previous revision stays current if any step fails.
        """
        with self._revision_locks.hold(("scrape", url, source_id)):
            with self.database.session_scope(write=True) as session:
                if session.get(Source, source_id) is None:
                    raise NotFoundError("Source", str(source_id))

                existing = session.scalars(
                    select(Scrape).where(
                        Scrape.url == url,
                        Scrape.source_id == source_id,
                        Scrape.current.is_(True),
                    )
                ).one_or_none()

                if existing is not None and existing.raw_html == raw_html:
                    logger.debug("Content unchanged for %s (version %d)", url, existing.version)
                    return RecordedScrape(scrape=existing, created=False)

                version = 1
                if existing is not None:
                    latest = session.scalar(
                        select(func.max(Scrape.version)).where(
                            Scrape.url == url, Scrape.source_id == source_id
                        )
                    )
                    version = (latest or existing.version) + 1
                    self._supersede_scrape(session, existing)

                scrape = Scrape(
                    source_id=source_id,
                    url=url,
                    title=title,
                    raw_html=raw_html,
                    plain_text=extract_plain_text(raw_html),
                    fetched_at=fetched_at,
                    version=version,
                    current=True,
                )
                session.add(scrape)
                session.flush()
                if records is not None:
                    session.add_all(self._element_rows(scrape, records))
                    session.flush()

        logger.info("Recorded %s version %d (scrape id=%d)", url, scrape.version, scrape.id)
        return RecordedScrape(scrape=scrape, created=True, superseded=existing)

    @staticmethod
    def _supersede_scrape(session, scrape: Scrape) -> None:
        now = utc_now()
        scrape.current = False
        scrape.superseded_at = now
        session.execute(
            update(Element)
            .where(Element.scrape_id == scrape.id, Element.current.is_(True))
            .values({Element.current: False, Element.superseded_at: now})
        )
        session.flush()

    def get_scrape(self, scrape_id: int) -> Scrape:
        with self.database.session_scope() as session:
            scrape = session.get(Scrape, scrape_id)
            if scrape is None:
                raise NotFoundError("Scrape", str(scrape_id))
            return scrape

    def current_scrape(self, url: str, source_id: int) -> Scrape | None:
        with self.database.session_scope() as session:
            return session.scalars(
                select(Scrape).where(
                    Scrape.url == url, Scrape.source_id == source_id, Scrape.current.is_(True)
                )
            ).one_or_none()

    def list_scrapes(self, *, current: bool) -> list[Scrape]:
        with self.database.session_scope() as session:
            stmt = select(Scrape).where(Scrape.current.is_(current)).order_by(Scrape.url, Scrape.version)
            return list(session.scalars(stmt))

    def scrape_versions(self, url: str, source_id: int) -> list[Scrape]:
        """All revisions for (url, source), oldest first."""
        with self.database.session_scope() as session:
            stmt = (
                select(Scrape)
                .where(Scrape.url == url, Scrape.source_id == source_id)
                .order_by(Scrape.version)
            )
            return list(session.scalars(stmt))

    def previous_version(self, scrape: Scrape) -> Scrape | None:
        return self._adjacent_version(scrape, older=True)

    def next_version(self, scrape: Scrape) -> Scrape | None:
        return self._adjacent_version(scrape, older=False)

    def _adjacent_version(self, scrape: Scrape, *, older: bool) -> Scrape | None:
        with self.database.session_scope() as session:
            stmt = select(Scrape).where(Scrape.url == scrape.url, Scrape.source_id == scrape.source_id)
            if older:
                stmt = stmt.where(Scrape.version < scrape.version).order_by(Scrape.version.desc())
            else:
                stmt = stmt.where(Scrape.version > scrape.version).order_by(Scrape.version)
            return session.scalars(stmt.limit(1)).first()

    # Elements

    def reindex_elements(self, scrape_id: int, records: Sequence[ElementRecord]) -> int:
        """Replace the element batch of a scrape's version with `records`.

        Delete and insert commit together; on failure the previous batch stays.
        """
        with self._reindex_locks.hold(scrape_id):
            with self.database.session_scope(write=True) as session:
                scrape = session.get(Scrape, scrape_id)
                if scrape is None:
                    raise NotFoundError("Scrape", str(scrape_id))

                removed = session.execute(
                    delete(Element).where(
                        Element.scrape_id == scrape.id, Element.version == scrape.version
                    )
                ).rowcount
                session.add_all(self._element_rows(scrape, records))
                session.flush()
                version = scrape.version

        logger.info(
            "Reindexed scrape %d version %d: %d removed, %d inserted",
            scrape_id,
            version,
            removed,
            len(records),
        )
        return len(records)

    @staticmethod
    def _element_rows(scrape: Scrape, records: Sequence[ElementRecord]) -> list[Element]:
        superseded_at = None if scrape.current else scrape.superseded_at
        return [
            Element(
                scrape_id=scrape.id,
                version=scrape.version,
                current=scrape.current,
                superseded_at=superseded_at,
                **asdict(record),
            )
            for record in records
        ]

    def count_elements(self, scrape_id: int, *, current: bool) -> int:
        with self.database.session_scope() as session:
            return session.scalar(
                select(func.count(Element.id)).where(
                    Element.scrape_id == scrape_id, Element.current.is_(current)
                )
            ) or 0

    def elements_for_scrape(self, scrape_id: int, *, current: bool) -> list[StoredElement]:
        with self.database.session_scope() as session:
            stmt = (
                select(Element)
                .where(Element.scrape_id == scrape_id, Element.current.is_(current))
                .order_by(Element.position_in_parent.asc().nulls_first(), Element.id)
            )
            return [element.to_view() for element in session.scalars(stmt)]
