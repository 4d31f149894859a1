"""Node selection: decide which document nodes become persisted elements."""

from __future__ import annotations

import logging

from bs4 import Tag

from afs_corpus.models import ElementRecord
from afs_corpus.text_utils import (
    build_css_path,
    class_tokens,
    css_segment,
    is_leaf_content,
    is_skipped,
    node_text,
)

logger = logging.getLogger(__name__)


class ElementSelectionMixin:
    """Depth-first, fine-grained element selection.

    A node is persisted when it carries text and none of its block-level
    children do; inline formatting is folded into the persisted node's text
    and snippet. Descendants of a persisted node are covered by its snippet
    and are not emitted again.
    """

    def _collect_elements(self) -> None:
        root = self.index.root
        root_path = css_segment(root)
        for child in root.children:
            if isinstance(child, Tag):
                self._visit_node(child, root_path)

    def _visit_node(self, node: Tag, parent_path: str) -> None:
        if is_skipped(node):
            return
        path = build_css_path(node, parent_path)

        if is_leaf_content(node):
            try:
                self._emit_element(node, path)
            except Exception as e:
                logger.warning("Skipping <%s> at %s: %s", node.name, path, e, exc_info=True)
                self.validation.skipped_nodes.append(
                    {"tag": node.name, "css_path": path, "error": str(e)}
                )
            return

        for child in node.children:
            if isinstance(child, Tag):
                self._visit_node(child, path)

    def _emit_element(self, node: Tag, path: str) -> None:
        hierarchy = self.index.classify(node)
        classes = class_tokens(node)
        self._add_element(
            ElementRecord.from_hierarchy(
                hierarchy,
                tag_name=node.name,
                text_content=node_text(node),
                html_snippet=str(node),
                position_in_parent=len(self.elements),
                regulation=self.regulation,
                element_class=" ".join(classes) or None,
                element_id=node.get("id") or None,
                css_path=path,
            )
        )
