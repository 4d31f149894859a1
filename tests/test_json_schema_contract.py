"""Contract tests for generated JSON Schemas."""

from __future__ import annotations

import importlib.util
from dataclasses import asdict
from pathlib import Path

import pytest
from jsonschema import Draft202012Validator, ValidationError

from afs_corpus.api import parse_html
from afs_corpus.models import ElementRecord, ValidationReport

from conftest import SAMPLE_HTML, SOURCE_URL

REPO_ROOT = Path(__file__).resolve().parents[1]
GENERATOR = REPO_ROOT / "scripts" / "generate_json_schemas.py"


def _generator():
    spec = importlib.util.spec_from_file_location("generate_json_schemas", GENERATOR)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _payload(*elements: ElementRecord) -> dict:
    return {"regulation": "AFS 2023:10", "source_url": SOURCE_URL, "elements": [asdict(e) for e in elements]}


def test_elements_schema_is_valid_and_accepts_parser_payload() -> None:
    schema = _generator().elements_schema()
    result = parse_html(SAMPLE_HTML, source_url=SOURCE_URL)
    payload = {
        "regulation": result.regulation,
        "source_url": result.source_url,
        "elements": [asdict(e) for e in result.elements],
    }

    Draft202012Validator.check_schema(schema)
    Draft202012Validator(schema).validate(payload)


def test_elements_schema_accepts_minimal_empty_payload() -> None:
    schema = _generator().elements_schema()
    payload = {"regulation": None, "source_url": "inline.html", "elements": []}

    Draft202012Validator(schema).validate(payload)


@pytest.mark.parametrize(
    "element",
    [
        ElementRecord(tag_name="p", text_content="x", html_snippet="<p>x</p>", position_in_parent=0,
                      chapter=1, appendix="2A"),
        ElementRecord(tag_name="p", text_content="x", html_snippet="<p>x</p>", position_in_parent=0,
                      section=3, is_transitional=True),
        ElementRecord(tag_name="p", text_content="x", html_snippet="<p>x</p>", position_in_parent=0,
                      section=0),
        ElementRecord(tag_name="p", text_content="x", html_snippet="<p>x</p>", position_in_parent=0,
                      regulation="2023:10"),
    ],
    ids=["appendix-with-chapter", "transitional-with-section", "section-zero", "bad-regulation"],
)
def test_elements_schema_rejects_impossible_elements(element: ElementRecord) -> None:
    schema = _generator().elements_schema()

    with pytest.raises(ValidationError):
        Draft202012Validator(schema).validate(_payload(element))


def test_elements_schema_allows_advice_inside_appendix() -> None:
    schema = _generator().elements_schema()
    element = ElementRecord(
        tag_name="p",
        text_content="Råd.",
        html_snippet="<p>Råd.</p>",
        position_in_parent=3,
        appendix="1",
        is_general_recommendation=True,
    )

    Draft202012Validator(schema).validate(_payload(element))


def test_validation_schema_is_valid_and_accepts_validation_report_payload() -> None:
    schema = _generator().validation_schema()
    payload = asdict(ValidationReport(source_url="inline.html"))

    Draft202012Validator.check_schema(schema)
    Draft202012Validator(schema).validate(payload)
    assert schema["title"] == "AFS Validation Report"
