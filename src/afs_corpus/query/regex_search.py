"""Regex search with frequency aggregation under a query-scoped deadline."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field

import regex

from afs_corpus.errors import InvalidPatternError, RegexTimeoutError
from afs_corpus.models import RegexMatch, RegexSearchResult
from afs_corpus.store.corpus import element_select
from afs_corpus.store.database import Database
from afs_corpus.store.schema import Element

logger = logging.getLogger(__name__)

REGEX_DELIMITER = "/"
DEFAULT_TIMEOUT_SECONDS = 2.0
DEFAULT_LIMIT = 500
STREAM_BATCH_SIZE = 500


def is_regex_query(query: str | None) -> bool:
    """True for `/pattern/` queries with something between the delimiters."""
    if not query:
        return False
    query = query.strip()
    return len(query) > 2 and query.startswith(REGEX_DELIMITER) and query.endswith(REGEX_DELIMITER)


def extract_pattern(query: str) -> str:
    return query.strip()[1:-1]


def matched_strings(match: regex.Match) -> list[str]:
    """Captured groups when the pattern has any, otherwise the whole match."""
    if match.re.groups:
        return [group for group in match.groups() if group]
    return [match.group(0)] if match.group(0) else []


@dataclass
class SearchContext:
    """Per-request search configuration and compiled-pattern cache."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    limit: int = DEFAULT_LIMIT
    flags: int = regex.IGNORECASE
    _patterns: dict[str, regex.Pattern] = field(default_factory=dict, repr=False)

    def compile(self, pattern: str) -> regex.Pattern:
        compiled = self._patterns.get(pattern)
        if compiled is None:
            if not pattern:
                raise InvalidPatternError(pattern, "Regex pattern cannot be empty")
            try:
                compiled = regex.compile(pattern, self.flags)
            except regex.error as e:
                raise InvalidPatternError(pattern, f"Invalid regex pattern: {e}") from e
            self._patterns[pattern] = compiled
        return compiled


class RegexSearch:
    def __init__(
        self,
        database: Database,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_results: int = DEFAULT_LIMIT,
    ):
        self.database = database
        self.timeout_seconds = timeout_seconds
        self.max_results = max_results

    def new_context(self, limit: int | None = None) -> SearchContext:
        limit = self.max_results if limit is None else max(0, min(limit, self.max_results))
        return SearchContext(timeout_seconds=self.timeout_seconds, limit=limit)

    def search(self, query: str, context: SearchContext | None = None) -> RegexSearchResult:
        """Aggregate all case-insensitive matches of a `/pattern/` query.

        Patterns with capture groups count each captured substring, others
        the whole match. Raises `InvalidPatternError` for malformed patterns
        and `RegexTimeoutError` once the deadline passes, even in the middle
        of a single match; partial counts are discarded.
        """
        context = context or self.new_context()
        if not is_regex_query(query):
            raise InvalidPatternError(query or "", "Regex queries must be wrapped in /slashes/")
        pattern = extract_pattern(query)
        compiled = context.compile(pattern)

        deadline = time.monotonic() + context.timeout_seconds
        try:
            counts = self._count_matches(compiled, deadline)
        except TimeoutError:
            logger.warning("Regex search timed out after %.1fs: %r", context.timeout_seconds, pattern)
            raise RegexTimeoutError(pattern, context.timeout_seconds) from None

        matches = [RegexMatch(matched_string=text, count=count) for text, count in sorted(counts.items())]
        return RegexSearchResult(
            results=matches[: context.limit],
            total_unique=len(matches),
            total_occurrences=sum(counts.values()),
        )

    def _count_matches(self, compiled: regex.Pattern, deadline: float) -> Counter[str]:
        counts: Counter[str] = Counter()
        stmt = element_select(Element.text_content, current=True)
        with self.database.session_scope() as session:
            rows = session.execute(stmt.execution_options(yield_per=STREAM_BATCH_SIZE)).scalars()
            for text in rows:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError("regex search deadline passed")
                if not text:
                    continue
                for match in compiled.finditer(text, timeout=remaining):
                    counts.update(matched_strings(match))
        return counts
