"""Structural parser for AFS regulation HTML."""

from afs_corpus.parser.engine import AFSParser
from afs_corpus.parser.hierarchy import HierarchyIndex

__all__ = ["AFSParser", "HierarchyIndex"]
