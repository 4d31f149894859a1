"""Inline regression tests for element selection and hierarchy classification."""

from __future__ import annotations

import pytest

from afs_corpus.models import Hierarchy, Scope
from afs_corpus.parser.engine import AFSParser
from afs_corpus.parser.hierarchy import HierarchyIndex

from conftest import SAMPLE_HTML, SOURCE_URL


def _parse(html: str, source_url: str = SOURCE_URL):
    return AFSParser(source_url).parse(html)


def _by_text(elements):
    return {e.text_content: e for e in elements}


def test_sample_page_elements_in_document_order() -> None:
    elements = _parse(SAMPLE_HTML)

    assert [e.tag_name for e in elements] == [
        "h2", "p", "h4", "p", "p", "h2", "p", "td", "h2", "li", "h2", "p", "h3", "p",
    ]
    assert [e.position_in_parent for e in elements] == list(range(14))
    assert {e.regulation for e in elements} == {"AFS 2023:10"}


def test_section_content_takes_chapter_and_section_sign() -> None:
    by_text = _by_text(_parse(SAMPLE_HTML))

    first = by_text["1 § Dessa föreskrifter gäller alla arbetsgivare."]
    assert (first.chapter, first.section, first.is_general_recommendation) == (1, 1, False)

    second = by_text["2 § Arbetsgivaren ska undersöka risker."]
    assert (second.chapter, second.section) == (1, 2)

    cell = by_text["Gränsvärde 85 dB"]
    assert (cell.chapter, cell.section) == (2, 1)


def test_headings_take_hierarchy_of_following_content() -> None:
    by_text = _by_text(_parse(SAMPLE_HTML))

    chapter_heading = by_text["1 kap. Allmänna bestämmelser"]
    assert (chapter_heading.chapter, chapter_heading.section) == (1, 1)

    advice_heading = by_text["Allmänna råd"]
    assert (advice_heading.chapter, advice_heading.section) == (1, 1)
    assert advice_heading.is_general_recommendation is True


def test_general_recommendation_inherits_preceding_section() -> None:
    advice = _by_text(_parse(SAMPLE_HTML))["Arbetsgivaren bör dokumentera riskbedömningen."]

    assert (advice.chapter, advice.section) == (1, 1)
    assert advice.is_general_recommendation is True
    assert advice.is_transitional is False


def test_transitional_and_appendix_scopes_are_exclusive() -> None:
    elements = _parse(SAMPLE_HTML)
    by_text = _by_text(elements)

    transitional = by_text["Denna författning träder i kraft den 1 januari 2025."]
    assert transitional.is_transitional is True
    assert (transitional.chapter, transitional.section, transitional.appendix) == (None, None, None)

    appendix = by_text["Tabell över gränsvärden."]
    assert appendix.appendix == "2A"
    assert (appendix.chapter, appendix.section, appendix.is_transitional) == (None, None, False)

    for element in elements:
        if element.is_transitional:
            assert element.appendix is None and element.chapter is None and element.section is None
        if element.appendix is not None:
            assert element.chapter is None and element.section is None


def test_scripts_and_hidden_nodes_are_not_emitted() -> None:
    texts = [e.text_content for e in _parse(SAMPLE_HTML)]

    assert "Dold text" not in texts
    assert not any("tracking" in text for text in texts)


def test_inline_formatting_is_folded_into_snippet() -> None:
    second = _by_text(_parse(SAMPLE_HTML))["2 § Arbetsgivaren ska undersöka risker."]

    assert second.tag_name == "p"
    assert "<strong>risker</strong>" in second.html_snippet
    assert second.css_path == "div.provision > p"


def test_parse_is_idempotent_and_resets_state() -> None:
    parser = AFSParser(SOURCE_URL)

    first = parser.parse(SAMPLE_HTML)
    second = parser.parse(SAMPLE_HTML)

    assert first == second
    assert parser.validation.counts_parsed["elements"] == 14


def test_validation_counts_for_sample_page() -> None:
    parser = AFSParser(SOURCE_URL)
    parser.parse(SAMPLE_HTML)

    assert parser.validation.counts_expected == {
        "section_signs": 3,
        "appendices": 2,
        "general_recommendations": 1,
    }
    assert parser.validation.counts_parsed == {
        "elements": 14,
        "sections": 3,
        "appendices": 2,
        "advisory_elements": 2,
        "transitional_elements": 2,
    }
    assert parser.validation.is_valid()


def test_chapter_heading_bounds_section_lookup() -> None:
    html = """
    <div class="provision">
      <h2>1 kap. Inledning</h2>
      <p><span class="section-sign">4 §</span> Sista paragrafen.</p>
      <h2>2 kap. Nytt kapitel</h2>
      <p>Inledande text utan paragraf.</p>
    </div>
    """
    intro = _by_text(_parse(html))["Inledande text utan paragraf."]

    assert intro.chapter == 2
    assert intro.section is None


def test_identified_heading_without_marker_keeps_enclosing_scope() -> None:
    html = """
    <div class="provision">
      <h2 id="overgang">Övergångsbestämmelser</h2>
      <h3 id="ikrafttradande">Ikraftträdande</h3>
      <p>Föreskrifterna träder i kraft 2025.</p>
    </div>
    """
    elements = _parse(html)

    assert all(e.is_transitional for e in elements)


def test_unmarked_heading_is_not_a_boundary() -> None:
    html = """
    <div class="provision">
      <h2>Bilaga 3 Blanketter</h2>
      <h3>Blankett A</h3>
      <p>Fyll i blanketten.</p>
    </div>
    """
    form = _by_text(_parse(html))["Fyll i blanketten."]

    assert form.appendix == "3"


def test_appendix_identifier_from_id_and_advice_inside_appendix() -> None:
    html = """
    <div class="provision">
      <h2 id="bilaga-4b">Förteckning</h2>
      <p>Ämnen i förteckningen.</p>
      <div class="general-recommendation"><p>Råd om förteckningen.</p></div>
    </div>
    """
    by_text = _by_text(_parse(html))

    assert by_text["Ämnen i förteckningen."].appendix == "4B"
    advice = by_text["Råd om förteckningen."]
    assert advice.appendix == "4B"
    assert advice.is_general_recommendation is True


def test_standalone_section_sign_is_emitted_with_its_section() -> None:
    html = """
    <div class="provision">
      <div class="paragraph">
        <span class="section-sign">7 §</span>
        <p>Texten i paragrafen.</p>
      </div>
    </div>
    """
    elements = _parse(html)

    assert [(e.tag_name, e.section) for e in elements] == [("span", 7), ("p", 7)]


def test_body_is_used_when_provision_block_is_missing() -> None:
    elements = _parse("<html><body><p>Fristående text.</p></body></html>", "inline.html")

    assert len(elements) == 1
    assert elements[0].regulation is None
    assert (elements[0].chapter, elements[0].section) == (None, None)


def test_failing_node_is_reported_and_skipped(monkeypatch) -> None:
    original = HierarchyIndex.classify

    def _classify(self, node):
        if node.name == "td":
            raise ValueError("broken cell")
        return original(self, node)

    monkeypatch.setattr(HierarchyIndex, "classify", _classify)
    parser = AFSParser(SOURCE_URL)
    elements = parser.parse(SAMPLE_HTML)

    assert len(elements) == 13
    [skipped] = parser.validation.skipped_nodes
    assert skipped["tag"] == "td"
    assert skipped["error"] == "broken cell"
    assert skipped["css_path"].startswith("div.provision > table > ")
    assert not parser.validation.is_valid()


def test_hierarchy_rejects_mixed_scopes() -> None:
    with pytest.raises(ValueError):
        Hierarchy(Scope.APPENDIX, chapter=1, appendix="1")
    with pytest.raises(ValueError):
        Hierarchy(Scope.TRANSITIONAL, section=2)
    with pytest.raises(ValueError):
        Hierarchy(Scope.SECTION, appendix="1")

    advisory = Hierarchy.transitional(advisory=True)
    assert advisory.is_transitional and advisory.is_general_recommendation
