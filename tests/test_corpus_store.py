"""Tests for source/scrape versioning and element batch replacement."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

import pytest

from afs_corpus.errors import ConflictError, DuplicateKeyError, NotFoundError
from afs_corpus.models import ElementRecord
from afs_corpus.store.corpus import CorpusStore
from afs_corpus.store.indexer import ElementIndexer
from afs_corpus.store.seed import DEFAULT_SOURCE_URLS, seed_sources

from conftest import FETCHED_AT, SAMPLE_HTML, SOURCE_URL


def _record(text: str, position: int) -> ElementRecord:
    return ElementRecord(
        tag_name="p",
        text_content=text,
        html_snippet=f"<p>{text}</p>",
        position_in_parent=position,
        regulation="AFS 2023:10",
        chapter=1,
        section=1,
    )


def test_create_source_applies_default_settings(database) -> None:
    store = CorpusStore(database)

    source = store.create_source(SOURCE_URL, {"timeout": 10})

    assert source.version == 1
    assert source.current is True
    assert source.settings["timeout"] == 10
    assert source.settings["enabled"] is True
    assert source.settings["language"] == "sv-SE"


def test_second_current_source_for_url_is_rejected(database) -> None:
    store = CorpusStore(database)
    store.create_source(SOURCE_URL)

    with pytest.raises(DuplicateKeyError) as exc:
        store.create_source(SOURCE_URL)

    assert exc.value.status_code == 409


def test_update_source_settings_supersedes_and_moves_scrapes(database) -> None:
    store = CorpusStore(database)
    source = store.create_source(SOURCE_URL)
    recorded = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT)

    updated = store.update_source_settings(SOURCE_URL, {"enabled": False})

    assert updated.version == 2
    assert updated.settings["enabled"] is False
    assert store.current_source(SOURCE_URL).id == updated.id
    [old] = store.list_sources(current=False)
    assert old.id == source.id
    assert old.superseded_at is not None
    assert store.get_scrape(recorded.scrape.id).source_id == updated.id


def test_update_settings_of_unknown_source_raises(database) -> None:
    with pytest.raises(NotFoundError):
        CorpusStore(database).update_source_settings(SOURCE_URL, {"enabled": False})


def test_unchanged_content_does_not_create_revision(database) -> None:
    store = CorpusStore(database)
    source = store.create_source(SOURCE_URL)

    first = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT, title="AFS 2023:10")
    second = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT)

    assert first.created is True
    assert second.created is False
    assert second.scrape.id == first.scrape.id
    assert len(store.scrape_versions(SOURCE_URL, source.id)) == 1
    assert "Dessa föreskrifter gäller alla arbetsgivare." in first.scrape.plain_text


def test_changed_content_supersedes_previous_revision(database) -> None:
    store = CorpusStore(database)
    source = store.create_source(SOURCE_URL)

    first = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT)
    second = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML + "<p>Ny text.</p>", FETCHED_AT)

    assert second.created is True
    assert second.scrape.version == 2
    assert second.superseded.id == first.scrape.id

    [current] = store.list_scrapes(current=True)
    assert current.id == second.scrape.id
    assert store.current_scrape(SOURCE_URL, source.id).id == second.scrape.id

    older = store.previous_version(second.scrape)
    assert older.id == first.scrape.id
    assert older.current is False
    assert older.superseded_at is not None
    assert store.next_version(older).id == second.scrape.id
    assert store.next_version(second.scrape) is None


def test_record_scrape_for_unknown_source_raises(database) -> None:
    with pytest.raises(NotFoundError):
        CorpusStore(database).record_scrape(999, SOURCE_URL, SAMPLE_HTML, FETCHED_AT)


def test_concurrent_identical_fetches_create_one_revision(database) -> None:
    store = CorpusStore(database)
    source = store.create_source(SOURCE_URL)

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(
            executor.map(
                lambda _: store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT),
                range(8),
            )
        )

    assert sum(1 for r in results if r.created) == 1
    assert {r.scrape.version for r in results} == {1}
    assert len(store.list_scrapes(current=True)) == 1


def test_reindex_replaces_batch_without_duplicates(database) -> None:
    store = CorpusStore(database)
    source = store.create_source(SOURCE_URL)
    scrape = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT).scrape
    records = [_record("Första stycket.", 0), _record("Andra stycket.", 1)]

    store.reindex_elements(scrape.id, records)
    store.reindex_elements(scrape.id, records)

    elements = store.elements_for_scrape(scrape.id, current=True)
    assert [e.text_content for e in elements] == ["Första stycket.", "Andra stycket."]
    assert {e.version for e in elements} == {1}


def test_failed_reindex_keeps_previous_batch(database) -> None:
    store = CorpusStore(database)
    source = store.create_source(SOURCE_URL)
    scrape = store.record_scrape(source.id, SOURCE_URL, SAMPLE_HTML, FETCHED_AT).scrape
    store.reindex_elements(scrape.id, [_record("Första stycket.", 0)])

    # appendix content may not carry a chapter or section
    invalid = replace(_record("Trasig rad.", 1), appendix="1")
    with pytest.raises(ConflictError):
        store.reindex_elements(scrape.id, [_record("Ersättning.", 0), invalid])

    elements = store.elements_for_scrape(scrape.id, current=True)
    assert [e.text_content for e in elements] == ["Första stycket."]


def test_new_revision_retires_previous_elements(service, sample_html) -> None:
    source = service.store.create_source(SOURCE_URL)
    first = service.ingest(source.id, sample_html, FETCHED_AT)
    second = service.ingest(source.id, sample_html.replace("Buller", "Buller och vibrationer"), FETCHED_AT)

    assert second.created is True
    assert service.store.count_elements(first.scrape_id, current=True) == 0
    assert service.store.count_elements(first.scrape_id, current=False) == 14
    assert service.store.count_elements(second.scrape_id, current=True) == 14


def test_failed_ingest_keeps_previous_revision_searchable(service, sample_html, monkeypatch) -> None:
    source = service.store.create_source(SOURCE_URL)
    first = service.ingest(source.id, sample_html, FETCHED_AT)
    parse = ElementIndexer.parse

    def _parse_with_invalid_row(self, url, raw_html):
        records, validation = parse(self, url, raw_html)
        return records + [replace(_record("Trasig rad.", 99), appendix="1")], validation

    monkeypatch.setattr(ElementIndexer, "parse", _parse_with_invalid_row)

    with pytest.raises(ConflictError):
        service.ingest(source.id, sample_html.replace("Buller", "Buller och vibrationer"), FETCHED_AT)

    assert service.search("Bullret") == ["/api/v1/regulations/2023/10/chapters/2/sections/1"]
    [current] = service.store.list_scrapes(current=True)
    assert current.id == first.scrape_id
    assert len(service.store.scrape_versions(SOURCE_URL, source.id)) == 1
    assert service.store.count_elements(first.scrape_id, current=True) == 14


def test_ingest_stores_revision_and_elements_together(service, sample_html) -> None:
    source = service.store.create_source(SOURCE_URL)

    result = service.ingest(source.id, sample_html, FETCHED_AT)
    again = service.ingest(source.id, sample_html, FETCHED_AT)

    assert result.index.element_count == 14
    assert service.store.count_elements(result.scrape_id, current=True) == 14
    assert again.created is False and again.index is None
    assert again.scrape_id == result.scrape_id


def test_indexer_reports_failures_per_scrape(service, sample_html) -> None:
    source = service.store.create_source(SOURCE_URL)
    scrape_id = service.store.record_scrape(source.id, SOURCE_URL, sample_html, FETCHED_AT).scrape.id
    indexer = ElementIndexer(service.store, max_workers=2)

    results = indexer.reindex_many([scrape_id, 4242])

    assert [r.scrape_id for r in results] == [scrape_id, 4242]
    assert results[0].ok and results[0].element_count == 14
    assert results[0].validation.is_valid()
    assert results[1].ok is False
    assert "4242" in results[1].error


def test_seed_sources_is_idempotent(database) -> None:
    store = CorpusStore(database)

    created = seed_sources(store)
    again = seed_sources(store)

    assert len(created) == len(DEFAULT_SOURCE_URLS) == 15
    assert again == []
    assert DEFAULT_SOURCE_URLS[0].endswith("/afs-20231/")
