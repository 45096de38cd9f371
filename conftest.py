"""
Shared fixtures and fake collaborators for the tutoring pipeline tests.

The fakes stand in for spaCy, the diagram renderer and the camera so the
tests run without models or devices.
"""

import string
import time
from typing import Dict, List, Optional

import numpy as np
import pytest

from eduai.agents.engagement_agent import EngagementMonitor
from eduai.agents.orchestrator import TutoringOrchestrator
from eduai.agents.response_agent import ResponseAgent
from eduai.core.config import settings
from eduai.core.exceptions import AnalysisDegraded, RenderFailure, SensorUnavailable
from eduai.models.pipeline import ConceptGraph
from eduai.services.language_analyzer import ParsedSentence, ParsedToken
from eduai.services.session_memory import SessionMemory


def sentence(*tokens) -> ParsedSentence:
    """
    Build a ParsedSentence from (text, dep, head[, pos[, lemma]]) tuples.

    The lemma defaults to the lowercased text.
    """
    parsed = []
    for i, (text, dep, head, *rest) in enumerate(tokens):
        pos = rest[0] if rest else ""
        lemma = rest[1] if len(rest) > 1 else text.lower()
        parsed.append(ParsedToken(index=i, text=text, lemma=lemma, dep=dep, head=head, pos=pos))
    return ParsedSentence(tokens=parsed)


def letter_vector(text: str) -> np.ndarray:
    """Deterministic 26-dim bag-of-letters embedding."""
    counts = np.zeros(len(string.ascii_lowercase), dtype=np.float32)
    for char in text.lower():
        if char in string.ascii_lowercase:
            counts[ord(char) - ord("a")] += 1
    return counts


class FakeAnalyzer:
    def __init__(
        self,
        parses: Optional[Dict[str, List[ParsedSentence]]] = None,
        fail_parse: bool = False,
        fail_embed: bool = False,
    ):
        self.parses = parses or {}
        self.fail_parse = fail_parse
        self.fail_embed = fail_embed
        self.embedded: List[str] = []

    def parse(self, text: str) -> List[ParsedSentence]:
        if self.fail_parse:
            raise AnalysisDegraded("Could not parse text: unsupported content")
        return self.parses.get(text, [])

    def embed(self, text: str) -> np.ndarray:
        if self.fail_embed:
            raise AnalysisDegraded("Could not embed text: model unavailable")
        self.embedded.append(text)
        return letter_vector(text)


class RecordingRenderer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def render(self, graph: ConceptGraph, title: str = "Concept Map"):
        self.calls.append((graph, title))
        if self.fail:
            raise RenderFailure("Could not render concept map: display unavailable")
        return f"/tmp/{title.lower().replace(' ', '_')}.png"


class StaticCapture:
    def __init__(self, frame="frame"):
        self.frame = frame

    def read_frame(self):
        return self.frame


class BrokenCapture:
    def read_frame(self):
        raise SensorUnavailable("Camera 0 could not be opened")


class SlowCapture:
    def __init__(self, delay: float = 2.0):
        self.delay = delay

    def read_frame(self):
        time.sleep(self.delay)
        return "late frame"


class StaticDetector:
    def __init__(self, label: Optional[str]):
        self.label = label

    def detect_emotion(self, frame):
        return self.label


class RaisingDetector:
    def detect_emotion(self, frame):
        raise RuntimeError("emotion model crashed")


@pytest.fixture(autouse=True)
def no_llm(monkeypatch):
    """Keep the response agent on its placeholder answer."""
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)


@pytest.fixture
def analyzer():
    return FakeAnalyzer()


@pytest.fixture
def memory():
    return SessionMemory(metric="cosine", threshold=0.2)


@pytest.fixture
def make_orchestrator(analyzer, memory):
    """Factory for orchestrators wired to fake collaborators."""

    def _make(**overrides) -> TutoringOrchestrator:
        options = {
            "memory": memory,
            "analyzer": analyzer,
            "renderer": None,
            "engagement_monitor": EngagementMonitor(),
            "response_agent": ResponseAgent(),
        }
        options.update(overrides)
        orchestrator = TutoringOrchestrator(**options)
        orchestrator.build_workflow()
        return orchestrator

    return _make
