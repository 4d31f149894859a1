"""Shared fixtures: a sample regulation page and throwaway corpus databases."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from afs_corpus.api import CorpusService
from afs_corpus.config import CorpusSettings
from afs_corpus.store.database import Database

SOURCE_URL = "https://www.av.se/arbetsmiljoarbete-och-inspektioner/publikationer/foreskrifter/afs-202310/"
FETCHED_AT = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

SAMPLE_HTML = """
<div class="provision">
  <h2 id="kap1">1 kap. Allmänna bestämmelser</h2>
  <p><span class="section-sign">1 §</span> Dessa föreskrifter gäller alla arbetsgivare.</p>
  <div class="general-recommendation">
    <h4>Allmänna råd</h4>
    <p>Arbetsgivaren bör dokumentera riskbedömningen.</p>
  </div>
  <p><span class="section-sign">2 §</span> Arbetsgivaren ska undersöka <strong>risker</strong>.</p>
  <h2 id="kap2">2 kap. Buller</h2>
  <p><span class="section-sign">1 §</span> Bullret ska begränsas.</p>
  <table><tr><td>Gränsvärde 85 dB</td></tr></table>
  <h2 id="overgangsbestammelser">Övergångsbestämmelser</h2>
  <ol><li>Denna författning träder i kraft den 1 januari 2025.</li></ol>
  <h2 id="bilaga-1">Bilaga 1 Mätmetoder</h2>
  <p>Mätning sker enligt standard.</p>
  <h3 id="bilaga-2a">Bilaga 2A Gränsvärden</h3>
  <p>Tabell över gränsvärden.</p>
  <script>var tracking = "Arbetsgivaren";</script>
  <p hidden>Dold text</p>
</div>
"""


@pytest.fixture
def sample_html() -> str:
    return (
        "<html><head><title>AFS 2023:10 Risker i arbetsmiljön, föreskrifter - Arbetsmiljöverket</title></head>"
        f"<body><nav>Meny</nav>{SAMPLE_HTML}</body></html>"
    )


@pytest.fixture
def database(tmp_path: Path):
    db = Database(f"sqlite:///{tmp_path / 'corpus.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def service(database: Database) -> CorpusService:
    return CorpusService(database, CorpusSettings(database_url=str(database.url)))


@pytest.fixture
def ingested(service: CorpusService, sample_html: str):
    """A service whose corpus holds one indexed revision of the sample page."""
    source = service.store.create_source(SOURCE_URL)
    result = service.ingest(source.id, sample_html, FETCHED_AT, title="AFS 2023:10 Risker i arbetsmiljön")
    assert result.created and result.index is not None and result.index.ok
    return service
