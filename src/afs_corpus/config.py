"""Runtime settings with `AFS_CORPUS_*` environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

DEFAULT_DATABASE_URL = "sqlite:///data/afs_corpus.db"
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; AFS-Corpus/1.0)"


@dataclass(frozen=True)
class CorpusSettings:
    """Settings shared by the store, search engine and fetcher."""

    database_url: str = DEFAULT_DATABASE_URL
    regex_timeout_seconds: float = 2.0
    max_search_results: int = 500
    max_query_length: int = 100
    api_base_path: str = "/api/v1"
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 30
    index_workers: int = 4

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "CorpusSettings":
        env = os.environ if environ is None else environ

        def _env_str(key: str, default: str) -> str:
            val = env.get(key)
            return val.strip() if val and val.strip() else default

        def _env_int(key: str, default: int) -> int:
            val = env.get(key)
            return int(val) if val and val.strip() else default

        def _env_float(key: str, default: float) -> float:
            val = env.get(key)
            return float(val) if val and val.strip() else default

        return cls(
            database_url=_env_str("AFS_CORPUS_DATABASE_URL", DEFAULT_DATABASE_URL),
            regex_timeout_seconds=_env_float("AFS_CORPUS_REGEX_TIMEOUT", 2.0),
            max_search_results=_env_int("AFS_CORPUS_MAX_RESULTS", 500),
            max_query_length=_env_int("AFS_CORPUS_MAX_QUERY_LENGTH", 100),
            api_base_path=_env_str("AFS_CORPUS_API_BASE_PATH", "/api/v1"),
            user_agent=_env_str("AFS_CORPUS_USER_AGENT", DEFAULT_USER_AGENT),
            request_timeout=_env_int("AFS_CORPUS_REQUEST_TIMEOUT", 30),
            index_workers=_env_int("AFS_CORPUS_INDEX_WORKERS", 4),
        )
