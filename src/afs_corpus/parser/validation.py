"""Validation mixin for parser output integrity."""

from __future__ import annotations

from afs_corpus.models import Scope
from afs_corpus.parser.hierarchy import BOUNDARY_APPENDIX, GENERAL_RECOMMENDATION_CLASS


class ValidationMixin:
    """Mixin with pre- and post-parse integrity checks."""

    def _count_expected_elements(self) -> None:
        index = self.index
        appendices = {m.value for m in index.boundaries if m.kind == BOUNDARY_APPENDIX and m.value}
        self.validation.counts_expected = {
            "section_signs": len(index.section_signs),
            "appendices": len(appendices),
            "general_recommendations": len(
                index.root.find_all("div", class_=GENERAL_RECOMMENDATION_CLASS)
            ),
        }

    def _count_parsed_elements(self) -> None:
        sections = {(e.chapter, e.section) for e in self.elements if e.section is not None}
        appendices = {e.appendix for e in self.elements if e.appendix}
        self.validation.counts_parsed = {
            "elements": len(self.elements),
            "sections": len(sections),
            "appendices": len(appendices),
            "advisory_elements": sum(1 for e in self.elements if e.is_general_recommendation),
            "transitional_elements": sum(1 for e in self.elements if e.is_transitional),
        }

    def _validate(self) -> None:
        parsed = {(e.chapter, e.section) for e in self.elements if e.section is not None}
        index = self.index
        for marker in index.section_signs:
            hierarchy = index.classify(index.nodes[marker.offset])
            if hierarchy.scope is not Scope.SECTION:
                continue
            key = (hierarchy.chapter, hierarchy.section)
            if key not in parsed:
                self.validation.missing_sections.append(
                    {"chapter": hierarchy.chapter, "section": hierarchy.section}
                )
