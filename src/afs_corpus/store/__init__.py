"""Versioned persistence for sources, scrapes, elements and search history."""

from afs_corpus.store.corpus import DEFAULT_SOURCE_SETTINGS, CorpusStore, RecordedScrape, element_select
from afs_corpus.store.database import Database
from afs_corpus.store.indexer import ElementIndexer
from afs_corpus.store.schema import Element, Scrape, SearchQuery, Source
from afs_corpus.store.search_log import QueryStat, SearchQueryLog
from afs_corpus.store.seed import DEFAULT_SOURCE_URLS, seed_sources

__all__ = [
    "CorpusStore",
    "Database",
    "DEFAULT_SOURCE_SETTINGS",
    "DEFAULT_SOURCE_URLS",
    "Element",
    "ElementIndexer",
    "QueryStat",
    "RecordedScrape",
    "Scrape",
    "SearchQuery",
    "SearchQueryLog",
    "Source",
    "element_select",
    "seed_sources",
]
