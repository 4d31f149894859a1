"""Seed list of AFS 2023 regulation pages on av.se."""

from __future__ import annotations

import logging

from afs_corpus.store.corpus import CorpusStore
from afs_corpus.store.schema import Source

logger = logging.getLogger(__name__)

AV_REGULATIONS_BASE = "https://www.av.se/arbetsmiljoarbete-och-inspektioner/publikationer/foreskrifter"

DEFAULT_SOURCE_URLS = tuple(f"{AV_REGULATIONS_BASE}/afs-2023{number}/" for number in range(1, 16))


def seed_sources(store: CorpusStore, urls: tuple[str, ...] | list[str] = DEFAULT_SOURCE_URLS) -> list[Source]:
    """Create a current source for every URL that does not have one yet."""
    created = []
    for url in urls:
        if store.current_source(url) is not None:
            continue
        created.append(store.create_source(url))
    logger.info("Seeded %d of %d sources", len(created), len(urls))
    return created
