"""Core data models for parsed regulation elements, lookups and validation reports."""

from dataclasses import MISSING, dataclass, field
from enum import Enum
from typing import Any, Optional


def schema_field(
    description: str,
    *,
    default: Any = MISSING,
    default_factory: Any = MISSING,
) -> Any:
    """Create a dataclass field with reusable JSON Schema metadata."""

    kwargs: dict[str, Any] = {"metadata": {"description": description}}
    if default is not MISSING:
        kwargs["default"] = default
    if default_factory is not MISSING:
        kwargs["default_factory"] = default_factory
    return field(**kwargs)


class Scope(str, Enum):
    """Structural scope an element belongs to."""

    SECTION = "section"
    APPENDIX = "appendix"
    TRANSITIONAL = "transitional"


@dataclass(frozen=True)
class Hierarchy:
    """Classified position of a node within a regulation.

    Exactly one scope applies. Appendix and transitional scopes never carry a
    chapter or section; transitional scope never carries an appendix. The
    advisory flag is orthogonal to the scope.
    """

    scope: Scope = Scope.SECTION
    chapter: Optional[int] = None
    section: Optional[int] = None
    appendix: Optional[str] = None
    is_general_recommendation: bool = False

    def __post_init__(self) -> None:
        if self.scope is Scope.SECTION and self.appendix is not None:
            raise ValueError("section-scoped hierarchy cannot name an appendix")
        if self.scope is Scope.APPENDIX:
            if not self.appendix:
                raise ValueError("appendix-scoped hierarchy requires an appendix identifier")
            if self.chapter is not None or self.section is not None:
                raise ValueError("appendix-scoped hierarchy cannot carry chapter or section")
        if self.scope is Scope.TRANSITIONAL and (
            self.chapter is not None or self.section is not None or self.appendix is not None
        ):
            raise ValueError("transitional hierarchy cannot carry chapter, section or appendix")

    @classmethod
    def in_section(
        cls, chapter: Optional[int], section: Optional[int], *, advisory: bool = False
    ) -> "Hierarchy":
        return cls(Scope.SECTION, chapter, section, None, advisory)

    @classmethod
    def in_appendix(cls, appendix: str, *, advisory: bool = False) -> "Hierarchy":
        return cls(Scope.APPENDIX, None, None, appendix, advisory)

    @classmethod
    def transitional(cls, *, advisory: bool = False) -> "Hierarchy":
        return cls(Scope.TRANSITIONAL, None, None, None, advisory)

    @property
    def is_transitional(self) -> bool:
        return self.scope is Scope.TRANSITIONAL


@dataclass
class ElementRecord:
    """One content element emitted by the structural parser for a scrape."""

    tag_name: str = schema_field("Lower-case HTML tag name of the persisted node, e.g. `p`.")
    text_content: str = schema_field(
        "Whitespace-normalized text of the node, inline formatting folded in."
    )
    html_snippet: str = schema_field("Outer HTML of the node, re-renderable on its own.")
    position_in_parent: int = schema_field(
        "Zero-based document-order emission index used for reconstruction ordering."
    )
    regulation: Optional[str] = schema_field(
        default=None,
        description="Regulation code derived from the source URL, e.g. `AFS 2023:1`.",
    )
    chapter: Optional[int] = schema_field(default=None, description="Owning chapter number (`N kap.`).")
    section: Optional[int] = schema_field(default=None, description="Owning section number (`N §`).")
    appendix: Optional[str] = schema_field(
        default=None,
        description="Appendix identifier for appendix content, e.g. `2A`.",
    )
    is_transitional: bool = schema_field(
        default=False,
        description="True for content under the transitional provisions heading.",
    )
    is_general_recommendation: bool = schema_field(
        default=False,
        description="True for advisory (general recommendation) content.",
    )
    element_class: Optional[str] = schema_field(
        default=None,
        description="Space-joined CSS classes of the source node.",
    )
    element_id: Optional[str] = schema_field(default=None, description="HTML `id` of the source node.")
    css_path: Optional[str] = schema_field(
        default=None,
        description="Structural CSS path from the document root, for diagnostics.",
    )

    @classmethod
    def from_hierarchy(cls, hierarchy: Hierarchy, **kwargs: Any) -> "ElementRecord":
        return cls(
            chapter=hierarchy.chapter,
            section=hierarchy.section,
            appendix=hierarchy.appendix,
            is_transitional=hierarchy.is_transitional,
            is_general_recommendation=hierarchy.is_general_recommendation,
            **kwargs,
        )


@dataclass
class ValidationReport:
    """Validation report describing parser integrity checks for one document."""

    source_url: str = schema_field("URL (or file path) of the document that produced this report.")
    counts_expected: dict[str, int] = schema_field(
        default_factory=dict,
        description="Expected structural counts inferred from source HTML markers.",
    )
    counts_parsed: dict[str, int] = schema_field(
        default_factory=dict,
        description="Actual counts derived from emitted elements.",
    )
    missing_sections: list[dict[str, object]] = schema_field(
        default_factory=list,
        description="Section markers in the source that no emitted element is tagged with.",
    )
    skipped_nodes: list[dict[str, object]] = schema_field(
        default_factory=list,
        description="Nodes that failed classification and were left out of the output.",
    )

    def is_valid(self) -> bool:
        return not self.missing_sections and not self.skipped_nodes


@dataclass(frozen=True)
class StoredElement:
    """Read-only view of a persisted element."""

    id: int
    scrape_id: int
    tag_name: str
    text_content: str
    html_snippet: str
    regulation: Optional[str]
    chapter: Optional[int]
    section: Optional[int]
    appendix: Optional[str]
    is_transitional: bool
    is_general_recommendation: bool
    position_in_parent: Optional[int]
    version: int
    current: bool
    element_class: Optional[str] = None
    element_id: Optional[str] = None
    css_path: Optional[str] = None


@dataclass
class SectionContent:
    """Reconstructed section split into normative and advisory HTML."""

    normative_html: str
    advisory_html: Optional[str] = None


@dataclass
class RegexMatch:
    matched_string: str
    count: int


@dataclass
class RegexSearchResult:
    """Aggregated regex matches sorted alphabetically by matched string."""

    results: list[RegexMatch] = field(default_factory=list)
    total_unique: int = 0
    total_occurrences: int = 0


@dataclass(frozen=True)
class ReferenceKey:
    """Structured form of `AFS <year>:<number>[, <c> kap.][, <s> §][, AR]`."""

    regulation: str
    chapter: Optional[int] = None
    section: Optional[int] = None
    is_advisory: bool = False


@dataclass
class ResolvedReference:
    key: ReferenceKey
    elements: list[StoredElement]
    html: str
    text: str
    prev_reference: Optional[str] = None
    next_reference: Optional[str] = None


@dataclass
class SearchHit:
    """Substring search result with its canonical lookup path."""

    element: StoredElement
    reference: str
    path: str


@dataclass
class RegulationSummary:
    code: str
    year: int
    number: int
    title: Optional[str] = None


@dataclass
class ChapterStructure:
    chapter: int
    sections: list[int] = field(default_factory=list)


@dataclass
class RegulationStructure:
    """Table of contents for one regulation."""

    regulation: str
    chapters: list[ChapterStructure] = field(default_factory=list)
    sections_without_chapter: list[int] = field(default_factory=list)
    appendices: list[str] = field(default_factory=list)
    has_transitional: bool = False

    def is_empty(self) -> bool:
        return (
            not self.chapters
            and not self.sections_without_chapter
            and not self.appendices
            and not self.has_transitional
        )
