"""
Tests for the spaCy-backed Language Analyzer.

These run on spaCy's blank English pipeline with hand-built parses, so no
trained model is needed.
"""

import numpy as np
import pytest
import spacy
from spacy.tokens import Doc

from conftest import sentence
from eduai.agents.extraction_agent import DependencyTripleExtractor
from eduai.core.exceptions import AnalysisDegraded
from eduai.services.language_analyzer import SpacyLanguageAnalyzer

TWO_SENTENCES = "Plants absorb light. Osmosis is diffusion."


@pytest.fixture(scope="module")
def blank_nlp():
    return spacy.blank("en")


@pytest.fixture
def parsed_doc(blank_nlp):
    return Doc(
        blank_nlp.vocab,
        words=["Plants", "absorb", "light", ".", "Osmosis", "is", "diffusion", "."],
        heads=[1, 1, 1, 1, 5, 5, 5, 5],
        deps=["nsubj", "ROOT", "dobj", "punct", "nsubj", "ROOT", "attr", "punct"],
    )


@pytest.fixture
def analyzer(parsed_doc):
    return SpacyLanguageAnalyzer(nlp=lambda text: parsed_doc)


def test_heads_are_sentence_local(analyzer):
    first, second = analyzer.parse(TWO_SENTENCES)

    assert [t.index for t in second.tokens] == [0, 1, 2, 3]
    assert [t.head for t in second.tokens] == [1, 1, 1, 1]
    assert [t.text for t in second.roots()] == ["is"]
    assert [t.text for t in first.lefts(first.roots()[0])] == ["Plants"]


def test_triples_come_from_every_sentence(analyzer):
    triples = DependencyTripleExtractor(analyzer).extract(TWO_SENTENCES)

    assert [t.as_tuple() for t in triples] == [("Plants", "absorb", "light"), ("Osmosis", "is", "diffusion")]


def test_blank_text_is_not_parsed():
    def refuse(text):
        raise AssertionError("pipeline should not run")

    assert SpacyLanguageAnalyzer(nlp=refuse).parse("   ") == []


def test_missing_sentence_boundaries_degrade(blank_nlp):
    analyzer = SpacyLanguageAnalyzer(nlp=blank_nlp)

    with pytest.raises(AnalysisDegraded):
        analyzer.parse("Plants absorb light")


def test_embed_returns_float32_vector(blank_nlp):
    vector = SpacyLanguageAnalyzer(nlp=blank_nlp).embed("Plants absorb light")

    assert vector.dtype == np.float32
    assert vector.ndim == 1


def test_pipeline_errors_degrade():
    def crash(text):
        raise RuntimeError("pipeline crashed")

    analyzer = SpacyLanguageAnalyzer(nlp=crash)

    with pytest.raises(AnalysisDegraded):
        analyzer.parse("Plants absorb light")
    with pytest.raises(AnalysisDegraded):
        analyzer.embed("Plants absorb light")


def test_missing_model_degrades():
    analyzer = SpacyLanguageAnalyzer(model_name="eduai_no_such_model")

    with pytest.raises(AnalysisDegraded):
        analyzer.parse("Plants absorb light")


def test_missing_model_is_loaded_only_once(monkeypatch):
    calls = []

    def failing_load(name):
        calls.append(name)
        raise OSError(f"[E050] Can't find model '{name}'")

    monkeypatch.setattr(spacy, "load", failing_load)
    analyzer = SpacyLanguageAnalyzer(model_name="eduai_no_such_model")

    for call in (analyzer.parse, analyzer.embed, analyzer.parse):
        with pytest.raises(AnalysisDegraded):
            call("Plants absorb light")

    assert calls == ["eduai_no_such_model"]


def test_subtree_collects_descendants_in_order():
    parsed = sentence(
        ("Osmosis", "nsubj", 1), ("is", "ROOT", 1), ("the", "det", 3),
        ("diffusion", "attr", 1), ("of", "prep", 3), ("water", "pobj", 4),
    )

    assert [t.text for t in parsed.subtree(parsed.tokens[3])] == ["the", "diffusion", "of", "water"]
    assert len(parsed.subtree(parsed.tokens[1])) == 6
