"""Tests for the schema generator's write and check modes."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
GENERATOR = REPO_ROOT / "scripts" / "generate_json_schemas.py"
SCHEMA_FILES = ("afs-elements.schema.json", "afs-validation.schema.json")


def _run_generator(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(GENERATOR), *args],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        check=False,
    )


def test_generator_writes_all_artifacts(tmp_path: Path) -> None:
    generated_dir = tmp_path / "schemas"

    result = _run_generator("--out-dir", str(generated_dir))

    assert result.returncode == 0, result.stdout + result.stderr
    assert sorted(p.name for p in generated_dir.iterdir()) == sorted(SCHEMA_FILES)


def test_check_mode_fails_when_artifacts_are_missing(tmp_path: Path) -> None:
    result = _run_generator("--check", "--out-dir", str(tmp_path / "missing"))

    assert result.returncode == 1
    assert "Schema artifacts out of date" in result.stdout


def test_check_mode_fails_when_artifact_is_stale(tmp_path: Path) -> None:
    generated_dir = tmp_path / "schemas"
    assert _run_generator("--out-dir", str(generated_dir)).returncode == 0
    (generated_dir / SCHEMA_FILES[0]).write_text("{}\n", encoding="utf-8")

    result = _run_generator("--check", "--out-dir", str(generated_dir))

    assert result.returncode == 1
    assert SCHEMA_FILES[0] in result.stdout


def test_check_mode_passes_for_generated_artifacts(tmp_path: Path) -> None:
    generated_dir = tmp_path / "schemas"

    generate_result = _run_generator("--out-dir", str(generated_dir))
    assert generate_result.returncode == 0, generate_result.stdout + generate_result.stderr

    check_result = _run_generator("--check", "--out-dir", str(generated_dir))
    assert check_result.returncode == 0, check_result.stdout + check_result.stderr
