"""CLI module exports."""

from afs_corpus.cli.ingest import main as ingest_main
from afs_corpus.cli.parse import main as parse_main
from afs_corpus.cli.search import main as search_main

__all__ = ["parse_main", "ingest_main", "search_main"]
