"""Fetch AFS regulation pages from av.se with requests."""

from __future__ import annotations

import argparse
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests
from bs4 import BeautifulSoup

from afs_corpus.config import DEFAULT_USER_AGENT
from afs_corpus.text_utils import normalize_text

logger = logging.getLogger(__name__)

PROVISION_SELECTOR = ".provision"
TITLE_SUFFIX_RE = re.compile(r",?\s*föreskrifter\s*-\s*Arbetsmiljöverket\s*$", re.IGNORECASE)
ACCEPT_LANGUAGE = "sv-SE,sv;q=0.9,en;q=0.5"


@dataclass
class FetchResult:
    """Structured fetch result for the ingest pipeline."""

    ok: bool
    status: str
    error: str | None
    url: str
    final_url: str | None
    raw_html: str | None
    title: str | None
    fetched_at: datetime | None
    bytes_received: int = 0


def extract_provision_html(html_content: str) -> str | None:
    """Outer HTML of the `.provision` block holding the regulation text."""
    soup = BeautifulSoup(html_content, "lxml")
    provision = soup.select_one(PROVISION_SELECTOR)
    return str(provision) if provision is not None else None


def extract_title(html_content: str) -> str | None:
    soup = BeautifulSoup(html_content, "lxml")
    if soup.title is None:
        return None
    title = TITLE_SUFFIX_RE.sub("", normalize_text(soup.title.get_text()))
    return title or None


def _failure(
    url: str,
    status: str,
    error: str,
    final_url: str | None = None,
    *,
    bytes_received: int = 0,
) -> FetchResult:
    return FetchResult(
        ok=False,
        status=status,
        error=error,
        url=url,
        final_url=final_url,
        raw_html=None,
        title=None,
        fetched_at=None,
        bytes_received=bytes_received,
    )


def fetch_regulation_page(url: str, settings: dict[str, Any] | None = None) -> FetchResult:
    """GET a regulation page and keep only its `.provision` block.

    `settings` are a source's fetch settings (`user_agent`, `timeout`,
    `language`).
    """
    settings = settings or {}
    headers = {
        "User-Agent": settings.get("user_agent") or DEFAULT_USER_AGENT,
        "Accept-Language": settings.get("language") or ACCEPT_LANGUAGE,
    }
    timeout = float(settings.get("timeout") or 30)

    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True, headers=headers)
    except requests.RequestException as e:
        logger.warning("Fetch failed for %s: %s", url, e)
        return _failure(url, "fetch_error", str(e))

    if response.status_code != 200:
        return _failure(url, f"http_{response.status_code}", f"HTTP {response.status_code}", response.url)

    content = response.text
    provision = extract_provision_html(content)
    if provision is None:
        logger.warning("No .provision block in %s", url)
        return _failure(
            url,
            "provision_missing",
            "Page has no .provision block.",
            response.url,
            bytes_received=len(response.content),
        )

    return FetchResult(
        ok=True,
        status="ok",
        error=None,
        url=url,
        final_url=response.url,
        raw_html=provision,
        title=extract_title(content),
        fetched_at=datetime.now(timezone.utc),
        bytes_received=len(response.content),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Download the regulation text of an av.se AFS page")
    parser.add_argument("url", help="Regulation page URL, e.g. .../foreskrifter/afs-20231/")
    parser.add_argument("--out", "-o", required=True, help="Path to write the .provision HTML to")
    args = parser.parse_args()

    result = fetch_regulation_page(args.url)
    if not result.ok:
        print(f"Error: {result.status}: {result.error}")
        raise SystemExit(1)

    output_path = Path(args.out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.raw_html, encoding="utf-8")
    print(f"Saved {result.title or args.url} -> {output_path}")


if __name__ == "__main__":
    main()
