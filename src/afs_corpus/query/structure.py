"""Regulation listing and table-of-contents queries."""

from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select

from afs_corpus.labels import appendix_sort_key, parse_regulation_code, regulation_from_url
from afs_corpus.models import ChapterStructure, RegulationStructure, RegulationSummary
from afs_corpus.store.corpus import element_select
from afs_corpus.store.database import Database
from afs_corpus.store.schema import Element, Scrape, Source


class RegulationCatalog:
    def __init__(self, database: Database):
        self.database = database

    def list_regulations(self) -> list[RegulationSummary]:
        """One entry per regulation with a current scrape of a current source, by (year, number)."""
        stmt = (
            select(Scrape.url, Scrape.title, Source.url.label("source_url"))
            .join(Source, Scrape.source_id == Source.id)
            .where(Scrape.current.is_(True), Source.current.is_(True))
            .order_by(Scrape.id)
        )
        summaries: dict[str, RegulationSummary] = {}
        with self.database.session_scope() as session:
            rows = session.execute(stmt).all()
        for row in rows:
            code = regulation_from_url(row.source_url) or regulation_from_url(row.url)
            parsed = parse_regulation_code(code)
            if parsed is None or code in summaries:
                continue
            summaries[code] = RegulationSummary(code=code, year=parsed[0], number=parsed[1], title=row.title)
        return sorted(summaries.values(), key=lambda s: (s.year, s.number))

    def get_structure(self, regulation: str) -> RegulationStructure:
        stmt = (
            element_select(
                Element.chapter,
                Element.section,
                Element.appendix,
                Element.is_transitional,
                current=True,
            )
            .where(Element.regulation == regulation)
            .distinct()
        )
        with self.database.session_scope() as session:
            rows = session.execute(stmt).all()

        chapters: dict[int, set[int]] = defaultdict(set)
        loose_sections: set[int] = set()
        appendices: set[str] = set()
        has_transitional = False
        for row in rows:
            if row.is_transitional:
                has_transitional = True
            elif row.appendix:
                appendices.add(row.appendix)
            elif row.chapter is not None:
                sections = chapters[row.chapter]
                if row.section is not None:
                    sections.add(row.section)
            elif row.section is not None:
                loose_sections.add(row.section)

        return RegulationStructure(
            regulation=regulation,
            chapters=[
                ChapterStructure(chapter=chapter, sections=sorted(sections))
                for chapter, sections in sorted(chapters.items())
            ],
            sections_without_chapter=sorted(loose_sections),
            appendices=sorted(appendices, key=appendix_sort_key),
            has_transitional=has_transitional,
        )
