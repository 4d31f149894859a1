"""Shared parser state and common lifecycle helpers."""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag

from afs_corpus.labels import regulation_from_url
from afs_corpus.models import ElementRecord, ValidationReport
from afs_corpus.parser.hierarchy import HierarchyIndex

PROVISION_CLASS = "provision"


class ParserStateMixin:
    """Shared parser state and common helper methods."""

    def __init__(self, source_url: str, regulation: str | None = None):
        self.source_url = source_url
        self.regulation = regulation or regulation_from_url(source_url)
        self._reset()

    def _reset(self) -> None:
        self.elements: list[ElementRecord] = []
        self.validation = ValidationReport(source_url=self.source_url)
        self.soup: BeautifulSoup | None = None
        self.index: HierarchyIndex | None = None

    def _content_root(self) -> Tag:
        """The `.provision` block when present, otherwise the document body."""
        assert self.soup is not None
        provision = self.soup.find(class_=PROVISION_CLASS)
        if isinstance(provision, Tag):
            return provision
        body = self.soup.body
        return body if body is not None else self.soup

    def _add_element(self, element: ElementRecord) -> None:
        self.elements.append(element)
