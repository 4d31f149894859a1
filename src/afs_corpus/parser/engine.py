"""Parser engine that orchestrates the full parsing pipeline."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from afs_corpus.models import ElementRecord
from afs_corpus.parser.hierarchy import HierarchyIndex
from afs_corpus.parser.selection import ElementSelectionMixin
from afs_corpus.parser.state import ParserStateMixin
from afs_corpus.parser.validation import ValidationMixin

logger = logging.getLogger(__name__)


class AFSParser(
    ElementSelectionMixin,
    ValidationMixin,
    ParserStateMixin,
):
    """Parser for av.se regulation (AFS) HTML pages."""

    def parse(self, html_content: str) -> list[ElementRecord]:
        self._reset()
        self.soup = BeautifulSoup(html_content, "lxml")
        self.index = HierarchyIndex(self._content_root())

        self._count_expected_elements()
        self._collect_elements()
        self._count_parsed_elements()
        self._validate()

        logger.debug(
            "Parsed %d elements from %s (%s)",
            len(self.elements),
            self.source_url,
            self.regulation or "unknown regulation",
        )
        return self.elements
