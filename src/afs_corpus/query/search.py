"""Case-insensitive substring search over current elements."""

from __future__ import annotations

import logging

from sqlalchemy import String, func

from afs_corpus.models import StoredElement
from afs_corpus.query.ordering import deduplicate, hierarchy_order_key
from afs_corpus.store.corpus import element_select
from afs_corpus.store.database import Database
from afs_corpus.store.schema import Element
from afs_corpus.text_utils import normalize_text

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 500


class ElementSearch:
    def __init__(self, database: Database, *, max_results: int = DEFAULT_LIMIT):
        self.database = database
        self.max_results = max_results

    def _folded(self, column):
        if self.database.is_sqlite:
            return func.casefold(column, type_=String)
        return func.lower(column)

    def search(self, query: str, limit: int | None = None) -> list[StoredElement]:
        """Current elements whose text contains `query`, one per duplicate group.

        Results are ordered by regulation, chapter and section (nulls first),
        advisory flag and text.
        """
        query = normalize_text(query)
        if not query:
            return []
        limit = self.max_results if limit is None else max(0, min(limit, self.max_results))

        stmt = element_select(current=True).where(
            self._folded(Element.text_content).contains(query.casefold(), autoescape=True)
        )
        with self.database.session_scope() as session:
            candidates = [element.to_view() for element in session.scalars(stmt)]

        results = sorted(deduplicate(candidates), key=hierarchy_order_key)
        logger.debug(
            "Search %r: %d candidates, %d unique, limit %d", query, len(candidates), len(results), limit
        )
        return results[:limit]
