"""Deterministic ordering and de-duplication rules shared by search and lookup."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from afs_corpus.labels import appendix_sort_key, regulation_sort_key
from afs_corpus.models import StoredElement

# paragraph > list item > table cell > table header > other > generic container
TAG_PREFERENCE = {"p": 0, "li": 1, "td": 2, "th": 3}
OTHER_TAG_PREFERENCE = 4
CONTAINER_TAG_PREFERENCE = 5
CONTAINER_TAGS = frozenset({"div"})

SORT_REFERENCE = "reference"
SORT_REFERENCE_DESC = "reference_desc"
SORT_RELEVANCE = "relevance"
SORT_RELEVANCE_DESC = "relevance_desc"
SORT_MODES = (SORT_REFERENCE, SORT_REFERENCE_DESC, SORT_RELEVANCE, SORT_RELEVANCE_DESC)


def nulls_first(value: Any) -> tuple[int, Any]:
    return (0, 0) if value is None else (1, value)


def tag_preference(tag_name: str) -> int:
    if tag_name in CONTAINER_TAGS:
        return CONTAINER_TAG_PREFERENCE
    return TAG_PREFERENCE.get(tag_name, OTHER_TAG_PREFERENCE)


def reconstruction_key(element: StoredElement) -> tuple:
    """`(position_in_parent nulls first, id)`: the one reconstruction order."""
    return (nulls_first(element.position_in_parent), element.id)


def duplicate_key(element: StoredElement) -> tuple:
    return (
        element.regulation,
        element.chapter,
        element.section,
        element.appendix,
        element.is_transitional,
        element.is_general_recommendation,
        element.text_content,
    )


def preference_key(element: StoredElement) -> tuple:
    return (tag_preference(element.tag_name), nulls_first(element.position_in_parent), element.id)


def deduplicate(elements: Iterable[StoredElement]) -> list[StoredElement]:
    """Collapse identical text within one scope, keeping the preferred tag."""
    chosen: dict[tuple, StoredElement] = {}
    for element in elements:
        key = duplicate_key(element)
        best = chosen.get(key)
        if best is None or preference_key(element) < preference_key(best):
            chosen[key] = element
    return list(chosen.values())


def hierarchy_order_key(element: StoredElement) -> tuple:
    return (
        regulation_sort_key(element.regulation),
        nulls_first(element.chapter),
        nulls_first(element.section),
        element.is_general_recommendation,
        element.text_content,
        nulls_first(appendix_sort_key(element.appendix) if element.appendix else None),
        element.is_transitional,
        element.id,
    )


def reference_sort_key(element: StoredElement) -> tuple:
    """Natural order of complete references: regulation, then section, appendix or transitional."""
    if element.is_transitional:
        unit = (2, (0, 0, ""), 0, 0)
    elif element.appendix:
        unit = (1, appendix_sort_key(element.appendix), 0, 0)
    else:
        unit = (0, (0, 0, ""), element.chapter or 0, element.section or 0)
    advisory = element.is_general_recommendation and element.section is not None
    return (regulation_sort_key(element.regulation), unit, advisory)


def relevance_sort_key(element: StoredElement) -> tuple:
    """Sections (advice after the normative text), then appendices, then transitional rules."""
    if element.is_transitional:
        group = (2, (0, 0, ""), 0)
    elif element.appendix:
        group = (1, appendix_sort_key(element.appendix), 0)
    elif element.section is not None:
        group = (0, (0, element.section, ""), int(element.is_general_recommendation))
    else:
        group = (3, (0, 0, ""), 0)
    return (regulation_sort_key(element.regulation), group)


def sort_elements(elements: list[StoredElement], sort_by: str | None) -> list[StoredElement]:
    if sort_by == SORT_REFERENCE_DESC:
        return sorted(elements, key=reference_sort_key, reverse=True)
    if sort_by == SORT_RELEVANCE:
        return sorted(elements, key=relevance_sort_key)
    if sort_by == SORT_RELEVANCE_DESC:
        return sorted(elements, key=relevance_sort_key, reverse=True)
    return sorted(elements, key=reference_sort_key)
