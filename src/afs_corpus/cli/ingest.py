"""CLI entrypoint for fetching, recording and indexing regulation pages."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from afs_corpus.api import CorpusService
from afs_corpus.config import CorpusSettings
from afs_corpus.download.av import extract_provision_html, extract_title
from afs_corpus.errors import CorpusError
from afs_corpus.store.seed import seed_sources


def _print_index_result(label: str, result) -> None:
    if result.ingest is None:
        reason = result.ingest_error or f"{result.fetch.status}: {result.fetch.error}"
        print(f"  FAIL {label}: {reason}")
        return
    ingest = result.ingest
    if not ingest.created:
        print(f"  SAME {label}: version {ingest.version} unchanged")
    else:
        count = ingest.index.element_count if ingest.index else 0
        print(f"  NEW  {label}: version {ingest.version}, {count} elements")


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch AFS regulation pages into the corpus database")
    parser.add_argument("--db", help="Database URL (default: $AFS_CORPUS_DATABASE_URL or sqlite:///data/afs_corpus.db)")
    parser.add_argument("--seed", action="store_true", help="Create sources for the AFS 2023 regulations first")
    parser.add_argument("--file", type=Path, help="Ingest a saved HTML page instead of fetching")
    parser.add_argument("--source-url", help="Source URL the --file page belongs to")
    parser.add_argument("--reindex", action="store_true", help="Reparse every current scrape without fetching")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = CorpusSettings.from_env()
    if args.db:
        settings = replace(settings, database_url=args.db)

    if args.file and not args.source_url:
        parser.error("--file requires --source-url")

    try:
        service = CorpusService.from_settings(settings)
        if args.seed:
            created = seed_sources(service.store)
            print(f"Seeded {len(created)} sources")

        if args.file:
            html_content = args.file.read_text(encoding="utf-8")
            source = service.store.current_source(args.source_url) or service.store.create_source(
                args.source_url
            )
            ingest = service.ingest(
                source.id,
                extract_provision_html(html_content) or html_content,
                datetime.now(timezone.utc),
                title=extract_title(html_content),
            )
            state = "new version" if ingest.created else "unchanged"
            print(f"{args.source_url}: version {ingest.version} ({state})")
        elif args.reindex:
            results = service.indexer.reindex_current()
            failed = [r for r in results if not r.ok]
            print(f"Reindexed {len(results) - len(failed)} scrapes, {len(failed)} failed")
            for result in failed:
                print(f"  FAIL scrape {result.scrape_id}: {result.error}")
        else:
            results = service.fetch_all()
            print(f"Fetched {len(results)} sources:")
            for result in results:
                _print_index_result(result.source_url, result)
    except CorpusError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
