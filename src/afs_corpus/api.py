"""High-level library API: parsing, ingest, lookup and search over the corpus."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from afs_corpus.config import CorpusSettings
from afs_corpus.download.av import FetchResult, fetch_regulation_page
from afs_corpus.errors import CorpusError, InvalidInputError, NotFoundError
from afs_corpus.labels import format_reference, format_regulation, reference_path
from afs_corpus.models import (
    ElementRecord,
    RegexSearchResult,
    RegulationStructure,
    RegulationSummary,
    ResolvedReference,
    SearchHit,
    SectionContent,
    StoredElement,
    ValidationReport,
)
from afs_corpus.parser.engine import AFSParser
from afs_corpus.query.ordering import SORT_MODES, sort_elements
from afs_corpus.query.reconstruction import Reconstructor
from afs_corpus.query.references import ReferenceResolver
from afs_corpus.query.regex_search import RegexSearch, is_regex_query
from afs_corpus.query.search import ElementSearch
from afs_corpus.query.structure import RegulationCatalog
from afs_corpus.store.corpus import CorpusStore
from afs_corpus.store.database import Database
from afs_corpus.store.indexer import ElementIndexer, IndexResult
from afs_corpus.store.schema import Source
from afs_corpus.store.search_log import QueryStat, SearchQueryLog

logger = logging.getLogger(__name__)

MIN_YEAR, MAX_YEAR = 2000, 2100
MIN_NUMBER, MAX_NUMBER = 1, 999


@dataclass
class ParseResult:
    """Structured parser result for one source document."""

    elements: list[ElementRecord]
    validation: ValidationReport
    source_url: str
    regulation: str | None


@dataclass
class IngestResult:
    """Outcome of recording one fetched page and, when it changed, reindexing it."""

    scrape_id: int
    version: int
    created: bool
    index: IndexResult | None = None


@dataclass
class JobResult:
    """Outcome of a single fetch + ingest job."""

    source_url: str
    fetch: FetchResult
    ingest: IngestResult | None = None
    ingest_error: str | None = None


@dataclass
class SearchPage:
    """Search response: substring hits, or aggregated regex matches for `/pattern/` queries."""

    query: str
    hits: list[SearchHit] = field(default_factory=list)
    regex: RegexSearchResult | None = None
    logged: bool = False


def parse_html(html_content: str, source_url: str, *, regulation: str | None = None) -> ParseResult:
    """Parse HTML content and return structured results."""
    parser = AFSParser(source_url=source_url, regulation=regulation)
    elements = parser.parse(html_content)
    return ParseResult(
        elements=list(elements),
        validation=parser.validation,
        source_url=source_url,
        regulation=parser.regulation,
    )


def parse_file(
    input_path: str | Path,
    *,
    source_url: str | None = None,
    regulation: str | None = None,
) -> ParseResult:
    """Parse an HTML file from disk."""
    path = Path(input_path)
    html_content = path.read_text(encoding="utf-8")
    return parse_html(html_content, source_url=source_url or str(path), regulation=regulation)


def validate_regulation(year: int, number: int) -> str:
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInputError("year", f"must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")
    if not MIN_NUMBER <= number <= MAX_NUMBER:
        raise InvalidInputError("number", f"must be between {MIN_NUMBER} and {MAX_NUMBER}, got {number}")
    return format_regulation(year, number)


def _validate_positive(field_name: str, value: int | None) -> None:
    if value is not None and value < 1:
        raise InvalidInputError(field_name, f"must be a positive integer, got {value}")


class CorpusService:
    """Facade over the store, indexer and query engines for one database."""

    def __init__(self, database: Database, settings: CorpusSettings | None = None):
        self.settings = settings or CorpusSettings()
        self.database = database
        self.store = CorpusStore(database)
        self.indexer = ElementIndexer(self.store, max_workers=self.settings.index_workers)
        self.search_log = SearchQueryLog(database)
        self.reconstructor = Reconstructor(database)
        self.element_search = ElementSearch(database, max_results=self.settings.max_search_results)
        self.regex_search = RegexSearch(
            database,
            timeout_seconds=self.settings.regex_timeout_seconds,
            max_results=self.settings.max_search_results,
        )
        self.resolver = ReferenceResolver(database)
        self.catalog = RegulationCatalog(database)

    @classmethod
    def from_settings(cls, settings: CorpusSettings | None = None) -> "CorpusService":
        settings = settings or CorpusSettings.from_env()
        database = Database(settings.database_url)
        database.create_all()
        return cls(database, settings)

    # Ingest

    def ingest(
        self,
        source_id: int,
        raw_html: str,
        fetched_at: datetime,
        *,
        title: str | None = None,
    ) -> IngestResult:
        """Record a fetched page for a source together with its parsed elements.

        Changed content is parsed first; the new revision and its element
        batch then commit in one transaction, so a failure leaves the
        previous revision current and searchable.
        """
        source = self.store.get_source(source_id)
        existing = self.store.current_scrape(source.url, source.id)
        if existing is not None and existing.raw_html == raw_html:
            return IngestResult(scrape_id=existing.id, version=existing.version, created=False)

        records, validation = self.indexer.parse(source.url, raw_html)
        recorded = self.store.record_scrape(
            source.id, source.url, raw_html, fetched_at, title=title, records=records
        )
        scrape = recorded.scrape
        if not recorded.created:
            return IngestResult(scrape_id=scrape.id, version=scrape.version, created=False)
        index = IndexResult(scrape_id=scrape.id, ok=True, element_count=len(records), validation=validation)
        return IngestResult(scrape_id=scrape.id, version=scrape.version, created=True, index=index)

    def fetch_and_ingest(self, source: Source) -> JobResult:
        fetch = fetch_regulation_page(source.url, source.settings)
        if not fetch.ok:
            return JobResult(source_url=source.url, fetch=fetch)
        try:
            ingest = self.ingest(source.id, fetch.raw_html, fetch.fetched_at, title=fetch.title)
        except CorpusError as e:
            logger.error("Ingest failed for %s: %s", source.url, e)
            return JobResult(source_url=source.url, fetch=fetch, ingest_error=str(e))
        return JobResult(source_url=source.url, fetch=fetch, ingest=ingest)

    def fetch_all(self) -> list[JobResult]:
        """Fetch and ingest every enabled current source, one after another."""
        results = []
        for source in self.store.list_sources(current=True):
            if not source.settings.get("enabled", True):
                logger.info("Skipping disabled source %s", source.url)
                continue
            results.append(self.fetch_and_ingest(source))
        return results

    # Lookup

    def list_regulations(self) -> list[RegulationSummary]:
        return self.catalog.list_regulations()

    def get_structure(self, year: int, number: int) -> RegulationStructure:
        regulation = validate_regulation(year, number)
        structure = self.catalog.get_structure(regulation)
        if structure.is_empty():
            raise NotFoundError("Regulation", regulation)
        return structure

    def get_section(self, year: int, number: int, chapter: int | None, section: int) -> SectionContent:
        regulation = validate_regulation(year, number)
        _validate_positive("chapter", chapter)
        _validate_positive("section", section)
        content = self.reconstructor.reconstruct_section(regulation, chapter, section)
        if content is None:
            raise NotFoundError("Section", format_reference(regulation, chapter=chapter, section=section))
        return content

    def get_appendix(self, year: int, number: int, appendix_id: str) -> str:
        regulation = validate_regulation(year, number)
        if not appendix_id or not appendix_id.strip():
            raise InvalidInputError("appendix", "must not be blank")
        html = self.reconstructor.reconstruct_appendix(regulation, appendix_id)
        if html is None:
            raise NotFoundError("Appendix", format_reference(regulation, appendix=appendix_id.strip()))
        return html

    def get_transitional(self, year: int, number: int) -> str:
        regulation = validate_regulation(year, number)
        html = self.reconstructor.reconstruct_regulation_transitional(regulation)
        if html is None:
            raise NotFoundError("Transitional provisions", format_reference(regulation, is_transitional=True))
        return html

    def resolve_reference(self, text: str) -> ResolvedReference:
        return self.resolver.resolve(text)

    def reconstruct_hit(self, element: StoredElement) -> str | None:
        return self.reconstructor.reconstruct_from_element(element)

    # Search

    def _hit(self, element: StoredElement) -> SearchHit:
        return SearchHit(
            element=element,
            reference=format_reference(
                element.regulation,
                chapter=element.chapter,
                section=element.section,
                appendix=element.appendix,
                is_transitional=element.is_transitional,
                is_advisory=element.is_general_recommendation and element.section is not None,
            ),
            path=reference_path(
                element.regulation,
                chapter=element.chapter,
                section=element.section,
                appendix=element.appendix,
                base_path=self.settings.api_base_path,
            ),
        )

    def search(self, query: str, limit: int | None = None) -> list[str]:
        """Canonical lookup paths of the units containing `query`, in result order."""
        paths: dict[str, None] = {}
        for element in self.element_search.search(query, limit):
            hit = self._hit(element)
            if hit.path:
                paths.setdefault(hit.path)
        return list(paths)

    def _validate_query(self, query: str | None) -> str:
        query = (query or "").strip()
        if not query:
            raise InvalidInputError("query", "must not be blank")
        if len(query) > self.settings.max_query_length:
            raise InvalidInputError(
                "query", f"must be at most {self.settings.max_query_length} characters"
            )
        return query

    def search_page(
        self,
        query: str,
        *,
        sort_by: str | None = None,
        limit: int | None = None,
    ) -> SearchPage:
        """Run a user search.

        `/pattern/` queries go to regex search and are never logged; other
        queries run a substring search that is logged once when it has hits
        and no explicit sort was requested.
        """
        query = self._validate_query(query)
        if sort_by is not None and sort_by not in SORT_MODES:
            raise InvalidInputError("sort_by", f"must be one of {', '.join(SORT_MODES)}")

        if is_regex_query(query):
            context = self.regex_search.new_context(limit)
            return SearchPage(query=query, regex=self.regex_search.search(query, context))

        elements = self.element_search.search(query, limit)
        if sort_by is not None:
            elements = sort_elements(elements, sort_by)
        page = SearchPage(query=query, hits=[self._hit(element) for element in elements])
        if elements and sort_by is None:
            page.logged = self.search_log.log_search(query, len(elements))
        return page

    def recent_searches(self, **kwargs: Any) -> list[QueryStat]:
        return self.search_log.recent(**kwargs)

    def popular_searches(self, **kwargs: Any) -> list[QueryStat]:
        return self.search_log.popular(**kwargs)
