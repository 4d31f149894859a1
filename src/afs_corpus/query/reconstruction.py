"""Reassemble sections, appendices and transitional provisions from stored elements."""

from __future__ import annotations

from bs4 import BeautifulSoup
from sqlalchemy import ColumnElement

from afs_corpus.labels import normalize_appendix_id
from afs_corpus.models import SectionContent, StoredElement
from afs_corpus.parser.hierarchy import GENERAL_RECOMMENDATION_CLASS
from afs_corpus.store.corpus import element_select
from afs_corpus.store.database import Database
from afs_corpus.store.schema import Element

ADVISORY_WRAPPER = f'<div class="{GENERAL_RECOMMENDATION_CLASS}">\n{{}}\n</div>'


def chapter_clause(chapter: int | None) -> ColumnElement[bool]:
    """Strict chapter filter: `None` selects chapterless content only."""
    if chapter is None:
        return Element.chapter.is_(None)
    return Element.chapter == chapter


def wrap_advisory(html: str) -> str:
    if BeautifulSoup(html, "lxml").select_one(f".{GENERAL_RECOMMENDATION_CLASS}") is not None:
        return html
    return ADVISORY_WRAPPER.format(html)


def join_snippets(elements: list[StoredElement]) -> str:
    return "\n".join(element.html_snippet for element in elements)


class Reconstructor:
    """Read-only assembly of current elements in `(position_in_parent, id)` order."""

    def __init__(self, database: Database):
        self.database = database

    def ordered_elements(self, *criteria: ColumnElement[bool]) -> list[StoredElement]:
        stmt = (
            element_select(current=True)
            .where(*criteria)
            .order_by(Element.position_in_parent.asc().nulls_first(), Element.id.asc())
        )
        with self.database.session_scope() as session:
            return [element.to_view() for element in session.scalars(stmt)]

    def reconstruct_section(
        self, regulation: str, chapter: int | None, section: int
    ) -> SectionContent | None:
        scope = (
            Element.regulation == regulation,
            chapter_clause(chapter),
            Element.section == section,
        )
        normative = self.ordered_elements(*scope, Element.is_general_recommendation.is_(False))
        if not normative:
            return None
        advisory = self.ordered_elements(*scope, Element.is_general_recommendation.is_(True))
        return SectionContent(
            normative_html=join_snippets(normative),
            advisory_html=wrap_advisory(join_snippets(advisory)) if advisory else None,
        )

    def reconstruct_appendix(self, regulation: str, appendix_id: str) -> str | None:
        elements = self.ordered_elements(
            Element.regulation == regulation,
            Element.appendix == normalize_appendix_id(appendix_id),
        )
        return join_snippets(elements) if elements else None

    def reconstruct_transitional(self, scrape_id: int) -> str | None:
        elements = self.ordered_elements(
            Element.scrape_id == scrape_id,
            Element.is_transitional.is_(True),
        )
        return join_snippets(elements) if elements else None

    def reconstruct_regulation_transitional(self, regulation: str) -> str | None:
        elements = self.ordered_elements(
            Element.regulation == regulation,
            Element.is_transitional.is_(True),
        )
        return join_snippets(elements) if elements else None

    def reconstruct_from_element(self, element: StoredElement) -> str | None:
        """The full unit a search hit belongs to, normative and advisory text together."""
        if element.is_transitional:
            return self.reconstruct_transitional(element.scrape_id)
        if element.appendix:
            return self.reconstruct_appendix(element.regulation, element.appendix)
        if element.section is None or element.regulation is None:
            return None
        content = self.reconstruct_section(element.regulation, element.chapter, element.section)
        if content is None:
            return None
        if content.advisory_html:
            return f"{content.normative_html}\n{content.advisory_html}"
        return content.normative_html
