#!/usr/bin/env python3
"""Write (or verify) JSON Schemas for the `afs-parse` element output and validation report."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from afs_corpus.models import ElementRecord, ValidationReport  # noqa: E402

SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"
ELEMENTS_SCHEMA = "afs-elements.schema.json"
VALIDATION_SCHEMA = "afs-validation.schema.json"

# Every annotation used by the parser-facing models.
TYPE_SCHEMAS: dict[Any, dict[str, Any]] = {
    str: {"type": "string"},
    int: {"type": "integer"},
    bool: {"type": "boolean"},
    Optional[str]: {"type": ["null", "string"]},
    Optional[int]: {"type": ["integer", "null"]},
    dict[str, int]: {"type": "object", "additionalProperties": {"type": "integer", "minimum": 0}},
    list[dict[str, object]]: {"type": "array", "items": {"type": "object"}},
}

# Value constraints the parser guarantees beyond the Python types.
ELEMENT_CONSTRAINTS: dict[str, dict[str, Any]] = {
    "tag_name": {"pattern": "^[a-z][a-z0-9]*$"},
    "position_in_parent": {"minimum": 0},
    "regulation": {"pattern": r"^AFS \d{4}:\d+$"},
    "chapter": {"minimum": 1},
    "section": {"minimum": 1},
    "appendix": {"pattern": r"^(\d+[A-Z]?|[A-Z])$"},
}

# An element belongs to at most one of: a chapter/section, an appendix, the
# transitional provisions.
SCOPE_RULES = [
    {
        "if": {"properties": {"appendix": {"type": "string"}}, "required": ["appendix"]},
        "then": {"properties": {"chapter": {"type": "null"}, "section": {"type": "null"}}},
    },
    {
        "if": {"properties": {"is_transitional": {"const": True}}, "required": ["is_transitional"]},
        "then": {
            "properties": {
                "chapter": {"type": "null"},
                "section": {"type": "null"},
                "appendix": {"type": "null"},
            }
        },
    },
]


def model_schema(model: type, constraints: dict[str, dict[str, Any]] | None = None) -> dict[str, Any]:
    """Object schema for a model dataclass; every field is required, descriptions come from `schema_field`."""
    constraints = constraints or {}
    properties: dict[str, Any] = {}
    for model_field in fields(model):
        if model_field.type not in TYPE_SCHEMAS:
            raise TypeError(f"{model.__name__}.{model_field.name}: no schema for {model_field.type!r}")
        prop = {**TYPE_SCHEMAS[model_field.type], **constraints.get(model_field.name, {})}
        if model_field.metadata.get("description"):
            prop["description"] = model_field.metadata["description"]
        properties[model_field.name] = prop
    return {
        "title": model.__name__,
        "description": (model.__doc__ or "").strip(),
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": list(properties),
    }


def elements_schema() -> dict[str, Any]:
    element = model_schema(ElementRecord, ELEMENT_CONSTRAINTS)
    element["allOf"] = SCOPE_RULES
    return {
        "$schema": SCHEMA_DRAFT,
        "title": "AFS Parser Output",
        "description": "Document written by `afs-parse`: one regulation page as a flat element list.",
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "regulation": {
                "description": "Regulation code, e.g. `AFS 2023:1`, when it could be derived.",
                "type": ["null", "string"],
            },
            "source_url": {
                "description": "URL (or file path) the elements were parsed from.",
                "type": "string",
            },
            "elements": {
                "description": "Content elements in document order.",
                "type": "array",
                "items": {"$ref": "#/$defs/ElementRecord"},
            },
        },
        "required": ["regulation", "source_url", "elements"],
        "$defs": {"ElementRecord": element},
    }


def validation_schema() -> dict[str, Any]:
    schema = model_schema(ValidationReport)
    schema["title"] = "AFS Validation Report"
    return {"$schema": SCHEMA_DRAFT, **schema}


ARTIFACTS = {
    ELEMENTS_SCHEMA: elements_schema,
    VALIDATION_SCHEMA: validation_schema,
}


def render(build) -> str:
    return json.dumps(build(), ensure_ascii=False, indent=2, sort_keys=True) + "\n"


def stale_artifacts(out_dir: Path) -> list[str]:
    """Names of artifacts in `out_dir` that are missing or differ from what would be generated."""
    stale = []
    for name, build in ARTIFACTS.items():
        path = out_dir / name
        if not path.exists() or path.read_text(encoding="utf-8") != render(build):
            stale.append(name)
    return stale


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate JSON Schemas for afs-parse output.")
    parser.add_argument("--out-dir", type=Path, default=REPO_ROOT / "schemas", help="Default: schemas/")
    parser.add_argument("--check", action="store_true", help="Only verify existing artifacts; exit 1 if stale.")
    args = parser.parse_args()
    out_dir = args.out_dir.resolve()

    if args.check:
        stale = stale_artifacts(out_dir)
        if stale:
            print(f"Schema artifacts out of date: {', '.join(stale)}")
            print("Regenerate with: python3 scripts/generate_json_schemas.py")
            raise SystemExit(1)
        print(f"Schema artifacts are up to date in {out_dir}.")
        return

    out_dir.mkdir(parents=True, exist_ok=True)
    for name, build in ARTIFACTS.items():
        (out_dir / name).write_text(render(build), encoding="utf-8")
    print(f"Wrote {len(ARTIFACTS)} schema artifacts to {out_dir}.")


if __name__ == "__main__":
    main()
