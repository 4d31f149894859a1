"""Label parsing and formatting for regulation codes, chapters, sections and appendices."""

from __future__ import annotations

import re

from afs_corpus.text_utils import normalize_text

REGULATION_URL_RE = re.compile(r"afs-(\d{4})(\d+)", re.IGNORECASE)
REGULATION_CODE_RE = re.compile(r"^AFS\s+(\d{4}):(\d+)$", re.IGNORECASE)
CHAPTER_HEADING_RE = re.compile(r"^(\d+)\s+kap\.?", re.IGNORECASE)
SECTION_SIGN_RE = re.compile(r"(\d+)\s*§")
SECTION_SIGN_ID_RE = re.compile(r"(\d+)§")
APPENDIX_TEXT_RE = re.compile(r"Bilaga\s+(\d+[A-Za-z]?|[A-Za-z])(?!\w)", re.IGNORECASE)
APPENDIX_ID_RE = re.compile(r"^bilaga[-_\s]*(\d+[A-Za-z]?|[A-Za-z])(?![A-Za-z0-9])", re.IGNORECASE)
TRANSITIONAL_ID_MARKER = "overgang"
TRANSITIONAL_TEXT_MARKER = "övergång"
APPENDIX_MARKER = "bilaga"

TRANSITIONAL_LABEL = "ÖB"
ADVISORY_LABEL = "AR"


def regulation_from_url(url: str | None) -> str | None:
    """Derive `AFS YYYY:N` from a source URL such as `.../afs-202310/`."""
    if not url:
        return None
    m = REGULATION_URL_RE.search(url)
    if not m:
        return None
    return format_regulation(int(m.group(1)), int(m.group(2)))


def format_regulation(year: int, number: int) -> str:
    return f"AFS {year}:{number}"


def parse_regulation_code(code: str | None) -> tuple[int, int] | None:
    """Split `AFS 2023:10` into `(2023, 10)`."""
    if not code:
        return None
    m = REGULATION_CODE_RE.match(normalize_text(code))
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def regulation_sort_key(code: str | None) -> tuple[int, int, str]:
    parsed = parse_regulation_code(code)
    if parsed is None:
        return (0, 0, code or "")
    return (parsed[0], parsed[1], "")


def chapter_from_heading(text: str | None) -> int | None:
    m = CHAPTER_HEADING_RE.match(normalize_text(text))
    return int(m.group(1)) if m else None


def section_from_sign(text: str | None, element_id: str | None = None) -> int | None:
    """Section number from a section-sign span's text, falling back to its id (`5§`)."""
    m = SECTION_SIGN_RE.search(normalize_text(text))
    if m:
        return int(m.group(1))
    if element_id:
        m = SECTION_SIGN_ID_RE.search(element_id)
        if m:
            return int(m.group(1))
    return None


def normalize_appendix_id(value: str | None) -> str | None:
    if value is None:
        return None
    value = normalize_text(value).replace(" ", "").upper()
    return value or None


def appendix_from_heading(text: str | None, element_id: str | None = None) -> str | None:
    """Appendix identifier from `Bilaga 2A` style heading text or a `bilaga-2a` id."""
    m = APPENDIX_TEXT_RE.search(normalize_text(text))
    if m:
        return normalize_appendix_id(m.group(1))
    if element_id:
        m = APPENDIX_ID_RE.match(element_id.strip())
        if m:
            return normalize_appendix_id(m.group(1))
    return None


def is_transitional_marker(text: str | None, element_id: str | None) -> bool:
    if element_id and TRANSITIONAL_ID_MARKER in element_id.lower():
        return True
    return TRANSITIONAL_TEXT_MARKER in normalize_text(text).lower()


def is_appendix_marker(text: str | None, element_id: str | None) -> bool:
    if element_id and element_id.strip().lower().startswith(APPENDIX_MARKER):
        return True
    return normalize_text(text).lower().startswith(APPENDIX_MARKER)


def appendix_sort_key(appendix: str) -> tuple[int, int, str]:
    """Natural ordering: numbered appendices first (1, 2, 2A, 10), then lettered ones."""
    m = re.match(r"^(\d+)(.*)$", appendix)
    if m:
        return (0, int(m.group(1)), m.group(2))
    return (1, 0, appendix)


def format_reference(
    regulation: str | None,
    *,
    chapter: int | None = None,
    section: int | None = None,
    appendix: str | None = None,
    is_transitional: bool = False,
    is_advisory: bool = False,
) -> str:
    """Render a human-readable reference, e.g. `AFS 2023:1, 3 kap., 5 §, AR`."""
    parts = [regulation or "AFS"]
    if is_transitional:
        parts.append(TRANSITIONAL_LABEL)
    elif appendix:
        parts.append(f"Bilaga {appendix}")
    else:
        if chapter is not None:
            parts.append(f"{chapter} kap.")
        if section is not None:
            parts.append(f"{section} §")
    if is_advisory:
        parts.append(ADVISORY_LABEL)
    return ", ".join(parts)


def reference_path(
    regulation: str | None,
    *,
    chapter: int | None = None,
    section: int | None = None,
    appendix: str | None = None,
    base_path: str = "/api/v1",
) -> str | None:
    """Canonical lookup path for a regulation unit, or None when not addressable."""
    parsed = parse_regulation_code(regulation)
    if parsed is None:
        return None
    year, number = parsed
    root = f"{base_path.rstrip('/')}/regulations/{year}/{number}"
    if appendix:
        return f"{root}/appendices/{appendix}"
    if section is None:
        return None
    if chapter is not None:
        return f"{root}/chapters/{chapter}/sections/{section}"
    return f"{root}/sections/{section}"
