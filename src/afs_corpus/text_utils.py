"""Text and HTML utility helpers shared across the parser, store and search."""

from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

WHITESPACE_RE = re.compile(r"[\u00a0\s]+")

SKIPPED_TAGS = frozenset({"script", "style", "noscript", "template", "head", "meta", "link"})
HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
INLINE_TAGS = frozenset(
    {
        "a",
        "abbr",
        "b",
        "bdi",
        "bdo",
        "br",
        "cite",
        "code",
        "data",
        "dfn",
        "em",
        "i",
        "kbd",
        "mark",
        "q",
        "s",
        "samp",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "time",
        "u",
        "var",
        "wbr",
    }
)
PLAIN_TEXT_NOISE_SELECTORS = ("script", "style", "nav", "footer", "aside", ".sidebar")


def normalize_text(text: Optional[str]) -> str:
    """Collapse regular and non-breaking whitespace to single spaces and strip."""
    if not text:
        return ""
    return WHITESPACE_RE.sub(" ", text).strip()


def node_text(node: Tag) -> str:
    """Normalized full text of a node, inline formatting folded in."""
    return normalize_text(node.get_text())


def class_tokens(node: Tag) -> list[str]:
    classes = node.get("class") or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def has_class(node: Tag, class_name: str) -> bool:
    return class_name in class_tokens(node)


def is_hidden(node: Tag) -> bool:
    if node.has_attr("hidden"):
        return True
    return str(node.get("aria-hidden", "")).strip().lower() == "true"


def is_skipped(node: Tag) -> bool:
    """True for non-content tags and hidden nodes, whose whole subtree is ignored."""
    return node.name in SKIPPED_TAGS or is_hidden(node)


def is_heading(node: Tag) -> bool:
    return node.name in HEADING_TAGS


def is_inline(node: Tag) -> bool:
    return node.name in INLINE_TAGS


def css_segment(node: Tag) -> str:
    segment = node.name
    classes = class_tokens(node)
    if classes:
        segment += "." + ".".join(classes)
    element_id = node.get("id")
    if element_id:
        segment += f"#{element_id}"
    return segment


def build_css_path(node: Tag, parent_path: str | None = None) -> str:
    """CSS path from the root, e.g. `div.provision > p.paragraph#p1`."""
    segment = css_segment(node)
    return f"{parent_path} > {segment}" if parent_path else segment


def extract_plain_text(html_content: str) -> str:
    """Readable text of a page with navigation and scripts removed."""
    soup = BeautifulSoup(html_content or "", "lxml")
    for selector in PLAIN_TEXT_NOISE_SELECTORS:
        for node in soup.select(selector):
            node.decompose()
    return normalize_text(soup.get_text(" "))


def has_block_text_child(node: Tag) -> bool:
    """True if a non-inline child element carries text of its own."""
    for child in node.children:
        if not isinstance(child, Tag) or is_skipped(child) or is_inline(child):
            continue
        if node_text(child):
            return True
    return False


def is_leaf_content(node: Tag) -> bool:
    """A node with text whose text is not split across block-level children."""
    return bool(node_text(node)) and not has_block_text_child(node)
