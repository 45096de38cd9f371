"""
Language Analyzer collaborator.

Wraps the spaCy pipeline that supplies sentence boundaries, dependency
roles, part-of-speech tags and document vectors to the tutoring agents. The
agents only depend on the small `LanguageAnalyzer` protocol below, so tests
and alternative NLP backends can be swapped in freely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol
import logging
import threading

import numpy as np
import spacy

from eduai.core.config import settings
from eduai.core.exceptions import AnalysisDegraded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedToken:
    """One token of a parsed sentence. `head` is the sentence-local index of its head."""
    index: int
    text: str
    lemma: str
    dep: str
    head: int
    pos: str = ""


@dataclass
class ParsedSentence:
    tokens: List[ParsedToken] = field(default_factory=list)

    def roots(self) -> List[ParsedToken]:
        return [token for token in self.tokens if token.dep == "ROOT"]

    def lefts(self, head: ParsedToken) -> List[ParsedToken]:
        """Direct dependents appearing before `head`, in sentence order."""
        return [
            token for token in self.tokens
            if token.head == head.index and token.index < head.index
        ]

    def rights(self, head: ParsedToken) -> List[ParsedToken]:
        """Direct dependents appearing after `head`, in sentence order."""
        return [
            token for token in self.tokens
            if token.head == head.index and token.index > head.index
        ]

    def subtree(self, head: ParsedToken) -> List[ParsedToken]:
        """`head` and all of its descendants, in sentence order."""
        inside = {head.index}
        grew = True
        while grew:
            grew = False
            for token in self.tokens:
                if token.index not in inside and token.head in inside and token.head != token.index:
                    inside.add(token.index)
                    grew = True
        return [token for token in self.tokens if token.index in inside]


class LanguageAnalyzer(Protocol):
    def parse(self, text: str) -> List[ParsedSentence]:
        ...

    def embed(self, text: str) -> np.ndarray:
        ...


class SpacyLanguageAnalyzer:
    """
    spaCy-backed analyzer.

    The model is loaded on first use so that importing the package does not
    require the model to be installed. A model that fails to load is not
    retried; every later call raises the same AnalysisDegraded.
    """

    def __init__(self, model_name: Optional[str] = None, nlp: Optional[Callable[[str], Any]] = None):
        self.model_name = model_name or settings.SPACY_MODEL
        self._nlp = nlp
        self._load_error: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def nlp(self) -> Callable[[str], Any]:
        if self._nlp is None:
            with self._lock:
                if self._load_error is not None:
                    raise AnalysisDegraded(self._load_error)
                if self._nlp is None:
                    try:
                        self._nlp = spacy.load(self.model_name)
                    except OSError as e:
                        self._load_error = f"spaCy model '{self.model_name}' is not available: {e}"
                        logger.error(f"❌ {self._load_error}")
                        raise AnalysisDegraded(self._load_error) from e
                    logger.info(f"✅ Loaded spaCy model: {self.model_name}")
        return self._nlp

    def parse(self, text: str) -> List[ParsedSentence]:
        """
        Split `text` into sentences of dependency-annotated tokens.

        Raises:
            AnalysisDegraded: If the model is missing or cannot segment and parse the text
        """
        if not text or not text.strip():
            return []

        nlp = self.nlp
        try:
            doc = nlp(text)
            sentences = []
            for sent in doc.sents:
                offset = sent.start
                sentences.append(ParsedSentence(tokens=[
                    ParsedToken(
                        index=token.i - offset,
                        text=token.text,
                        lemma=token.lemma_,
                        dep=token.dep_,
                        head=token.head.i - offset,
                        pos=token.pos_,
                    )
                    for token in sent
                ]))
        except Exception as e:
            raise AnalysisDegraded(f"Could not parse text: {e}") from e
        return sentences

    def embed(self, text: str) -> np.ndarray:
        """
        Return the document vector for `text` as float32.

        Raises:
            AnalysisDegraded: If the model is missing or cannot process the text
        """
        nlp = self.nlp
        try:
            doc = nlp(text)
        except Exception as e:
            raise AnalysisDegraded(f"Could not embed text: {e}") from e
        return np.asarray(doc.vector, dtype=np.float32)
