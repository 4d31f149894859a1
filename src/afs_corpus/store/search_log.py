"""Append-only search history used for recent and popular query reports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select

from afs_corpus.store.database import Database
from afs_corpus.store.schema import SearchQuery, utc_now
from afs_corpus.text_utils import normalize_text

logger = logging.getLogger(__name__)

REPORT_WINDOW_DAYS = 30
REPORT_LIMIT = 20


@dataclass
class QueryStat:
    query: str
    match_count: int
    searches: int
    last_searched_at: datetime


class SearchQueryLog:
    def __init__(self, database: Database):
        self.database = database

    def log_search(self, query: str, match_count: int) -> bool:
        """Append one entry; blank queries and searches without hits are ignored."""
        query = normalize_text(query)
        if not query or match_count <= 0:
            return False
        with self.database.session_scope(write=True) as session:
            session.add(SearchQuery(query=query[:255], match_count=match_count))
        logger.debug("Logged search %r (%d matches)", query, match_count)
        return True

    def recent(self, *, days: int = REPORT_WINDOW_DAYS, limit: int = REPORT_LIMIT) -> list[QueryStat]:
        """Distinct queries of the last `days`, most recently searched first."""
        return self._report(days, limit, order_by_count=False)

    def popular(self, *, days: int = REPORT_WINDOW_DAYS, limit: int = REPORT_LIMIT) -> list[QueryStat]:
        """Distinct queries of the last `days`, most frequently searched first."""
        return self._report(days, limit, order_by_count=True)

    def _report(self, days: int, limit: int, *, order_by_count: bool) -> list[QueryStat]:
        cutoff = utc_now() - timedelta(days=days)
        searches = func.count(SearchQuery.id).label("searches")
        last_searched = func.max(SearchQuery.created_at).label("last_searched_at")
        stmt = (
            select(
                SearchQuery.query,
                func.max(SearchQuery.match_count).label("match_count"),
                searches,
                last_searched,
            )
            .where(SearchQuery.created_at >= cutoff)
            .group_by(SearchQuery.query)
        )
        if order_by_count:
            stmt = stmt.order_by(searches.desc(), last_searched.desc())
        else:
            stmt = stmt.order_by(last_searched.desc())
        with self.database.session_scope() as session:
            rows = session.execute(stmt.limit(limit)).all()
        return [
            QueryStat(
                query=row.query,
                match_count=row.match_count,
                searches=row.searches,
                last_searched_at=row.last_searched_at,
            )
            for row in rows
        ]
