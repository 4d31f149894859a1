"""CLI entrypoint for searching and looking up regulation text."""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace

from afs_corpus.api import CorpusService
from afs_corpus.config import CorpusSettings
from afs_corpus.errors import CorpusError
from afs_corpus.query.ordering import SORT_MODES


def _print_search(service: CorpusService, args: argparse.Namespace) -> None:
    page = service.search_page(args.query, sort_by=args.sort, limit=args.limit)
    if page.regex is not None:
        print(
            f"{page.regex.total_unique} unique matches, "
            f"{page.regex.total_occurrences} occurrences for {page.query}"
        )
        for match in page.regex.results:
            print(f"  {match.count:>5}  {match.matched_string}")
        return

    print(f"{len(page.hits)} results for {page.query!r}")
    for hit in page.hits:
        print(f"  {hit.reference}: {hit.element.text_content[:100]}")


def _print_reference(service: CorpusService, text: str) -> None:
    resolved = service.resolve_reference(text)
    print(resolved.text)
    if resolved.prev_reference:
        print(f"\n< {resolved.prev_reference}")
    if resolved.next_reference:
        print(f"> {resolved.next_reference}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Search AFS regulations or look up a reference")
    parser.add_argument("query", nargs="?", help="Text, /regex/, or with --reference an 'AFS 2023:1, 2 kap., 3 §'")
    parser.add_argument("--db", help="Database URL (default: $AFS_CORPUS_DATABASE_URL or sqlite:///data/afs_corpus.db)")
    parser.add_argument("--reference", "-r", action="store_true", help="Treat the query as a reference")
    parser.add_argument("--sort", choices=SORT_MODES, help="Result ordering (disables search logging)")
    parser.add_argument("--limit", type=int, help="Maximum number of results")
    parser.add_argument("--list", action="store_true", help="List regulations in the corpus")
    parser.add_argument("--popular", action="store_true", help="Show popular searches of the last 30 days")
    args = parser.parse_args()

    settings = CorpusSettings.from_env()
    if args.db:
        settings = replace(settings, database_url=args.db)

    try:
        service = CorpusService.from_settings(settings)
        if args.list:
            for summary in service.list_regulations():
                print(f"{summary.code}  {summary.title or ''}")
        elif args.popular:
            for stat in service.popular_searches():
                print(f"{stat.searches:>5}  {stat.query} ({stat.match_count} matches)")
        elif not args.query:
            parser.error("a query is required")
        elif args.reference:
            _print_reference(service, args.query)
        else:
            _print_search(service, args)
    except CorpusError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
