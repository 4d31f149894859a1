"""Tests for the av.se page fetcher with a mocked requests session."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import requests

from afs_corpus.download import av

from conftest import SAMPLE_HTML, SOURCE_URL

PAGE = (
    "<html><head><title>AFS 2023:10 Risker i arbetsmiljön, föreskrifter - Arbetsmiljöverket</title></head>"
    f"<body><nav>Meny</nav>{SAMPLE_HTML}<footer>Kontakt</footer></body></html>"
)


class _FakeResponse:
    def __init__(self, text: str, status_code: int = 200, url: str = SOURCE_URL):
        self.text = text
        self.content = text.encode("utf-8")
        self.status_code = status_code
        self.url = url


def test_fetch_keeps_only_provision_block(monkeypatch) -> None:
    calls = []

    def _get(url, **kwargs):
        calls.append((url, kwargs))
        return _FakeResponse(PAGE)

    monkeypatch.setattr("afs_corpus.download.av.requests.get", _get)

    result = av.fetch_regulation_page(SOURCE_URL, {"user_agent": "test-agent", "timeout": 5})

    assert result.ok is True
    assert result.status == "ok"
    assert result.raw_html.startswith('<div class="provision">')
    assert "Meny" not in result.raw_html
    assert result.title == "AFS 2023:10 Risker i arbetsmiljön"
    assert result.fetched_at is not None
    assert result.bytes_received == len(PAGE.encode("utf-8"))

    [(url, kwargs)] = calls
    assert url == SOURCE_URL
    assert kwargs["headers"]["User-Agent"] == "test-agent"
    assert kwargs["timeout"] == 5.0


def test_fetch_reports_http_errors(monkeypatch) -> None:
    monkeypatch.setattr(
        "afs_corpus.download.av.requests.get",
        lambda *_args, **_kwargs: _FakeResponse("Not found", status_code=404),
    )

    result = av.fetch_regulation_page(SOURCE_URL)

    assert result.ok is False
    assert result.status == "http_404"
    assert result.raw_html is None


def test_fetch_reports_network_errors(monkeypatch) -> None:
    def _raise(*_args, **_kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("afs_corpus.download.av.requests.get", _raise)

    result = av.fetch_regulation_page(SOURCE_URL)

    assert result.ok is False
    assert result.status == "fetch_error"
    assert "connection refused" in result.error


def test_fetch_reports_missing_provision(monkeypatch) -> None:
    monkeypatch.setattr(
        "afs_corpus.download.av.requests.get",
        lambda *_args, **_kwargs: _FakeResponse("<html><body><p>Sidan har flyttat.</p></body></html>"),
    )

    result = av.fetch_regulation_page(SOURCE_URL)

    assert result.status == "provision_missing"
    assert result.bytes_received > 0


def test_main_writes_provision_html(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("afs_corpus.download.av.requests.get", lambda *_args, **_kwargs: _FakeResponse(PAGE))
    out_path = tmp_path / "pages" / "afs-202310.html"
    monkeypatch.setattr(sys, "argv", ["afs-download", SOURCE_URL, "--out", str(out_path)])

    av.main()

    assert out_path.read_text(encoding="utf-8").startswith('<div class="provision">')


def test_main_exits_1_on_failure(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(
        "afs_corpus.download.av.requests.get",
        lambda *_args, **_kwargs: _FakeResponse("", status_code=503),
    )
    monkeypatch.setattr(sys, "argv", ["afs-download", SOURCE_URL, "--out", str(tmp_path / "x.html")])

    with pytest.raises(SystemExit) as exc:
        av.main()

    assert exc.value.code == 1
