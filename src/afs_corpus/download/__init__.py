"""Fetching helpers for av.se regulation pages."""

from afs_corpus.download.av import FetchResult, extract_provision_html, extract_title, fetch_regulation_page

__all__ = ["FetchResult", "extract_provision_html", "extract_title", "fetch_regulation_page"]
