"""Parse `AFS 2023:10, 13 kap., 10 §, AR` references and resolve them against the corpus."""

from __future__ import annotations

import re

from afs_corpus.errors import InvalidInputError, NotFoundError
from afs_corpus.labels import ADVISORY_LABEL, format_reference
from afs_corpus.models import ReferenceKey, ResolvedReference
from afs_corpus.query.ordering import deduplicate, nulls_first, reconstruction_key
from afs_corpus.query.reconstruction import Reconstructor, chapter_clause, join_snippets
from afs_corpus.store.corpus import element_select
from afs_corpus.store.database import Database
from afs_corpus.store.schema import Element
from afs_corpus.text_utils import normalize_text

REFERENCE_RE = re.compile(r"^(AFS\s*(\d{4}):(\d+))\s*(?:,(.*))?$", re.IGNORECASE)
CHAPTER_PART_RE = re.compile(r"^(\d+)\s*kap\.?$", re.IGNORECASE)
SECTION_PART_RE = re.compile(r"^(\d+)\s*§$")


def parse_reference(text: str) -> ReferenceKey:
    """Parse a reference string into a `ReferenceKey`.

    Raises `InvalidInputError` when the regulation part is not `AFS YYYY:N` or
    any trailing part is not a chapter, section or `AR` marker.
    """
    normalized = normalize_text(text)
    m = REFERENCE_RE.match(normalized)
    if not m:
        raise InvalidInputError("reference", f"expected 'AFS <year>:<number>', got {text!r}")
    regulation = f"AFS {int(m.group(2))}:{int(m.group(3))}"

    chapter = section = None
    is_advisory = False
    rest = m.group(4)
    if rest is not None:
        for part in (p.strip() for p in rest.split(",")):
            if not part:
                continue
            chapter_match = CHAPTER_PART_RE.match(part)
            section_match = SECTION_PART_RE.match(part)
            if chapter_match and chapter is None and section is None and not is_advisory:
                chapter = int(chapter_match.group(1))
            elif section_match and section is None and not is_advisory:
                section = int(section_match.group(1))
            elif part.upper() == ADVISORY_LABEL and not is_advisory:
                is_advisory = True
            else:
                raise InvalidInputError("reference", f"unrecognized part {part!r} in {text!r}")

    return ReferenceKey(regulation=regulation, chapter=chapter, section=section, is_advisory=is_advisory)


def format_key(key: ReferenceKey) -> str:
    return format_reference(
        key.regulation, chapter=key.chapter, section=key.section, is_advisory=key.is_advisory
    )


class ReferenceResolver:
    def __init__(self, database: Database):
        self.database = database
        self.reconstructor = Reconstructor(database)

    def resolve(self, text: str) -> ResolvedReference:
        key = parse_reference(text)
        criteria = [
            Element.regulation == key.regulation,
            chapter_clause(key.chapter),
            Element.appendix.is_(None),
            Element.is_transitional.is_(False),
        ]
        if key.section is not None:
            criteria.append(Element.section == key.section)
        if key.is_advisory:
            criteria.append(Element.is_general_recommendation.is_(True))

        elements = sorted(
            deduplicate(self.reconstructor.ordered_elements(*criteria)), key=reconstruction_key
        )
        if not elements:
            raise NotFoundError("Reference", format_key(key))

        prev_reference = next_reference = None
        if key.section is not None:
            prev_reference, next_reference = self.adjacent_references(
                key.regulation, key.chapter, key.section
            )
        return ResolvedReference(
            key=key,
            elements=elements,
            html=join_snippets(elements),
            text="\n".join(element.text_content for element in elements),
            prev_reference=prev_reference,
            next_reference=next_reference,
        )

    def section_keys(self, regulation: str) -> list[tuple[int | None, int]]:
        """Sorted distinct (chapter, section) pairs of a regulation, chapterless first."""
        stmt = (
            element_select(Element.chapter, Element.section, current=True)
            .where(Element.regulation == regulation, Element.section.is_not(None))
            .distinct()
        )
        with self.database.session_scope() as session:
            pairs = {(row.chapter, row.section) for row in session.execute(stmt)}
        return sorted(pairs, key=lambda pair: (nulls_first(pair[0]), pair[1]))

    def adjacent_references(
        self, regulation: str, chapter: int | None, section: int
    ) -> tuple[str | None, str | None]:
        keys = self.section_keys(regulation)
        try:
            index = keys.index((chapter, section))
        except ValueError:
            return None, None
        previous = keys[index - 1] if index > 0 else None
        following = keys[index + 1] if index + 1 < len(keys) else None
        return (
            format_reference(regulation, chapter=previous[0], section=previous[1]) if previous else None,
            format_reference(regulation, chapter=following[0], section=following[1]) if following else None,
        )
