"""Parse scrape revisions and replace their element batches, in parallel across scrapes."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Iterable

from afs_corpus.errors import CorpusError
from afs_corpus.models import ElementRecord, ValidationReport
from afs_corpus.parser.engine import AFSParser
from afs_corpus.store.corpus import CorpusStore

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    """Outcome of reindexing one scrape."""

    scrape_id: int
    ok: bool
    element_count: int = 0
    validation: ValidationReport | None = None
    error: str | None = None


class ElementIndexer:
    def __init__(self, store: CorpusStore, *, max_workers: int = 4):
        self.store = store
        self.max_workers = max_workers

    def parse(self, url: str, raw_html: str) -> tuple[list[ElementRecord], ValidationReport]:
        parser = AFSParser(source_url=url)
        records = parser.parse(raw_html)
        if not parser.validation.is_valid():
            logger.warning(
                "%s: %d missing sections, %d skipped nodes",
                url,
                len(parser.validation.missing_sections),
                len(parser.validation.skipped_nodes),
            )
        return records, parser.validation

    def reindex(self, scrape_id: int) -> IndexResult:
        scrape = self.store.get_scrape(scrape_id)
        records, validation = self.parse(scrape.url, scrape.raw_html)
        count = self.store.reindex_elements(scrape_id, records)
        return IndexResult(scrape_id=scrape_id, ok=True, element_count=count, validation=validation)

    def reindex_many(self, scrape_ids: Iterable[int]) -> list[IndexResult]:
        """Reindex several scrapes concurrently; one failure does not stop the others."""
        scrape_ids = list(dict.fromkeys(scrape_ids))
        results: dict[int, IndexResult] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self.reindex, scrape_id): scrape_id for scrape_id in scrape_ids}
            for future in as_completed(futures):
                scrape_id = futures[future]
                try:
                    results[scrape_id] = future.result()
                except CorpusError as e:
                    logger.error("Reindex of scrape %d failed: %s", scrape_id, e)
                    results[scrape_id] = IndexResult(scrape_id=scrape_id, ok=False, error=str(e))
        return [results[scrape_id] for scrape_id in scrape_ids]

    def reindex_current(self) -> list[IndexResult]:
        return self.reindex_many(scrape.id for scrape in self.store.list_scrapes(current=True))
