"""Document pre-pass index and hierarchy classification for regulation HTML."""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Optional

from bs4 import Tag

from afs_corpus.labels import (
    appendix_from_heading,
    chapter_from_heading,
    is_appendix_marker,
    is_transitional_marker,
    section_from_sign,
)
from afs_corpus.models import Hierarchy
from afs_corpus.text_utils import has_class, is_heading, is_leaf_content, is_skipped, node_text

GENERAL_RECOMMENDATION_CLASS = "general-recommendation"
SECTION_SIGN_CLASS = "section-sign"
BOUNDARY_HEADING_TAGS = ("h2", "h3")

BOUNDARY_CHAPTER = "chapter"
BOUNDARY_APPENDIX = "appendix"
BOUNDARY_TRANSITIONAL = "transitional"
BOUNDARY_OTHER = "other"


@dataclass(frozen=True)
class Marker:
    """One structural marker at a document-order offset."""

    offset: int
    kind: str
    value: object = None


def classify_heading(node: Tag) -> Marker | None:
    """Boundary marker for an h2/h3 heading, or None if the heading is not a boundary.

    Headings with an id are always boundaries (kind `other` when they carry no
    structural marker); headings without an id only count when their text is a
    chapter, appendix or transitional marker.
    """
    if node.name not in BOUNDARY_HEADING_TAGS:
        return None
    text = node_text(node)
    element_id = node.get("id")
    if is_transitional_marker(text, element_id):
        return Marker(-1, BOUNDARY_TRANSITIONAL)
    if is_appendix_marker(text, element_id):
        return Marker(-1, BOUNDARY_APPENDIX, appendix_from_heading(text, element_id))
    chapter = chapter_from_heading(text)
    if chapter is not None:
        return Marker(-1, BOUNDARY_CHAPTER, chapter)
    if element_id:
        return Marker(-1, BOUNDARY_OTHER)
    return None


class HierarchyIndex:
    """Ordered index of structural markers for one document.

    Built once per document in a single depth-first pass. Every visited element
    gets a document-order offset and the offset of its last descendant, so any
    node's enclosing chapter, section, appendix or transitional block is
    resolved by binary search over the marker lists.
    """

    def __init__(self, root: Tag):
        self.root = root
        self.nodes: list[Tag] = []
        self._offsets: dict[int, int] = {}
        self._ends: dict[int, int] = {}
        self._advisory: set[int] = set()
        self.boundaries: list[Marker] = []
        self.chapters: list[Marker] = []
        self.section_signs: list[Marker] = []
        self._visit(root, advisory=False)
        self._boundary_offsets = [m.offset for m in self.boundaries]
        self._chapter_offsets = [m.offset for m in self.chapters]
        self._sign_offsets = [m.offset for m in self.section_signs]

    def _visit(self, node: Tag, advisory: bool) -> None:
        offset = len(self.nodes)
        self.nodes.append(node)
        self._offsets[id(node)] = offset

        advisory = advisory or (node.name == "div" and has_class(node, GENERAL_RECOMMENDATION_CLASS))
        if advisory:
            self._advisory.add(offset)

        self._record_markers(node, offset)

        for child in node.children:
            if isinstance(child, Tag) and not is_skipped(child):
                self._visit(child, advisory)
        self._ends[id(node)] = len(self.nodes) - 1

    def _record_markers(self, node: Tag, offset: int) -> None:
        marker = classify_heading(node)
        if marker is not None:
            marker = Marker(offset, marker.kind, marker.value)
            self.boundaries.append(marker)
            if marker.kind == BOUNDARY_CHAPTER:
                self.chapters.append(marker)
        elif node.name == "span" and has_class(node, SECTION_SIGN_CLASS):
            section = section_from_sign(node_text(node), node.get("id"))
            if section is not None:
                self.section_signs.append(Marker(offset, "section", section))

    def offset(self, node: Tag) -> int:
        try:
            return self._offsets[id(node)]
        except KeyError:
            raise ValueError(f"<{node.name}> is not part of the indexed document") from None

    def end(self, node: Tag) -> int:
        return self._ends[id(node)]

    def is_advisory(self, node: Tag) -> bool:
        return self.offset(node) in self._advisory

    def next_content_node(self, node: Tag) -> Optional[Tag]:
        """First non-heading leaf content node after `node`'s subtree in document order."""
        for candidate in self.nodes[self.end(node) + 1 :]:
            if is_heading(candidate):
                continue
            if is_leaf_content(candidate):
                return candidate
        return None

    def classify(self, node: Tag) -> Hierarchy:
        """Resolve the hierarchy of `node`.

        Headings announce the unit that follows them, so they take the
        hierarchy of the next content node.
        """
        target = node
        if is_heading(node):
            target = self.next_content_node(node) or node

        offset = self.offset(target)
        advisory = self.is_advisory(target)

        scope = self._enclosing_boundary(offset)
        if scope is not None and scope.kind == BOUNDARY_TRANSITIONAL:
            return Hierarchy.transitional(advisory=advisory)
        if scope is not None and scope.kind == BOUNDARY_APPENDIX and scope.value:
            return Hierarchy.in_appendix(str(scope.value), advisory=advisory)

        chapter_marker = self._nearest(self.chapters, self._chapter_offsets, offset)
        chapter = int(chapter_marker.value) if chapter_marker else None
        floor = chapter_marker.offset if chapter_marker else -1
        section = self._section_for(offset, self.end(target), floor)
        return Hierarchy.in_section(chapter, section, advisory=advisory)

    def _enclosing_boundary(self, offset: int) -> Marker | None:
        """Nearest preceding chapter, appendix or transitional heading.

        Identified headings without a structural marker are stepped over.
        """
        i = bisect.bisect_right(self._boundary_offsets, offset)
        while i > 0:
            i -= 1
            marker = self.boundaries[i]
            if marker.kind != BOUNDARY_OTHER:
                return marker
        return None

    @staticmethod
    def _nearest(markers: list[Marker], offsets: list[int], offset: int) -> Marker | None:
        i = bisect.bisect_right(offsets, offset)
        return markers[i - 1] if i > 0 else None

    def _section_for(self, offset: int, end: int, floor: int) -> int | None:
        # a sign inside the node wins over the nearest preceding one
        i = bisect.bisect_left(self._sign_offsets, offset)
        if i < len(self.section_signs) and self._sign_offsets[i] <= end:
            return int(self.section_signs[i].value)
        if i > 0 and self._sign_offsets[i - 1] > floor:
            return int(self.section_signs[i - 1].value)
        return None
