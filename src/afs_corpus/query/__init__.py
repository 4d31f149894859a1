"""Read-only reconstruction, search and reference lookup over current elements."""

from afs_corpus.query.reconstruction import Reconstructor
from afs_corpus.query.references import ReferenceResolver, parse_reference
from afs_corpus.query.regex_search import RegexSearch, SearchContext, is_regex_query
from afs_corpus.query.search import ElementSearch
from afs_corpus.query.structure import RegulationCatalog

__all__ = [
    "ElementSearch",
    "Reconstructor",
    "ReferenceResolver",
    "RegexSearch",
    "RegulationCatalog",
    "SearchContext",
    "is_regex_query",
    "parse_reference",
]
