"""Public package API for afs-corpus."""

from afs_corpus.api import CorpusService, IngestResult, JobResult, ParseResult, SearchPage, parse_file, parse_html
from afs_corpus.config import CorpusSettings
from afs_corpus.download.av import FetchResult, fetch_regulation_page
from afs_corpus.errors import (
    ConflictError,
    CorpusError,
    DuplicateKeyError,
    InvalidInputError,
    InvalidPatternError,
    NotFoundError,
    RegexTimeoutError,
    StorageFailureError,
)
from afs_corpus.models import (
    ElementRecord,
    Hierarchy,
    ReferenceKey,
    RegexMatch,
    RegexSearchResult,
    Scope,
    SectionContent,
    StoredElement,
    ValidationReport,
)
from afs_corpus.parser.engine import AFSParser
from afs_corpus.query.references import parse_reference
from afs_corpus.text_utils import normalize_text

__all__ = [
    "AFSParser",
    "CorpusService",
    "CorpusSettings",
    "fetch_regulation_page",
    "FetchResult",
    "parse_html",
    "parse_file",
    "parse_reference",
    "ParseResult",
    "IngestResult",
    "JobResult",
    "SearchPage",
    "ElementRecord",
    "Hierarchy",
    "Scope",
    "StoredElement",
    "SectionContent",
    "ReferenceKey",
    "RegexMatch",
    "RegexSearchResult",
    "ValidationReport",
    "CorpusError",
    "NotFoundError",
    "InvalidInputError",
    "InvalidPatternError",
    "RegexTimeoutError",
    "ConflictError",
    "DuplicateKeyError",
    "StorageFailureError",
    "normalize_text",
]
