"""
Phrase & Relation Extraction Agent.

Turns a learner's question into:
    - ranked key phrases (RAKE degree/frequency scoring, or TextRank key terms)
    - subject-predicate-object triples (dependency roots, or cue-verb statements)
    - a topic type ("process" when the question contains "how")

Both extraction steps are strategies behind small protocols so alternative
algorithms can be plugged in without touching the orchestrator. The defaults
are picked by PHRASE_STRATEGY and TRIPLE_STRATEGY.

Usage:
    agent = PhraseRelationExtractor(analyzer=SpacyLanguageAnalyzer())
    result = agent.analyze("How does osmosis move water across a membrane?")
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Protocol, Tuple
import logging
import re

import networkx as nx
from spacy.lang.en.stop_words import STOP_WORDS

from eduai.core.config import settings
from eduai.core.exceptions import AnalysisDegraded
from eduai.models.pipeline import AnalysisResult, TopicType, Triple
from eduai.services.language_analyzer import LanguageAnalyzer, ParsedSentence, ParsedToken

logger = logging.getLogger(__name__)


# Words, allowing inner apostrophes and hyphens, or single punctuation marks
TOKEN_PATTERN = re.compile(r"\w+(?:['’\-]\w+)*|[^\w\s]")

SUBJECT_DEPS = ("nsubj", "nsubjpass")
OBJECT_DEPS = ("dobj", "attr")
TEXTRANK_POS = ("NOUN", "PROPN", "ADJ")


class KeyPhraseStrategy(Protocol):
    def extract(self, text: str) -> List[str]:
        ...


class TripleStrategy(Protocol):
    def extract(self, text: str) -> List[Triple]:
        ...


# ============================================================================
# KEY PHRASES
# ============================================================================

class RakePhraseRanker:
    """
    Rapid Automatic Keyword Extraction.

    Candidate phrases are maximal runs of non-stopword tokens. Each word is
    scored by degree / frequency, where degree sums the lengths of the
    candidate phrases the word occurs in, and a phrase scores the sum of
    its word scores. Repeated candidates are kept as separate entries.
    """

    def __init__(self, stopwords: Optional[Iterable[str]] = None, max_phrases: Optional[int] = None):
        self.stopwords = frozenset(
            word.lower() for word in (stopwords if stopwords is not None else STOP_WORDS)
        )
        self.max_phrases = max_phrases if max_phrases is not None else settings.MAX_KEY_PHRASES

    def candidate_phrases(self, text: str) -> List[Tuple[str, ...]]:
        phrases: List[Tuple[str, ...]] = []
        current: List[str] = []
        for token in TOKEN_PATTERN.findall(text.lower()):
            is_word = token[0].isalnum() or token[0] == "_"
            if not is_word or token in self.stopwords:
                if current:
                    phrases.append(tuple(current))
                    current = []
                continue
            current.append(token)
        if current:
            phrases.append(tuple(current))
        return phrases

    @staticmethod
    def word_scores(phrases: List[Tuple[str, ...]]) -> Dict[str, float]:
        frequency: Dict[str, int] = defaultdict(int)
        degree: Dict[str, int] = defaultdict(int)
        for phrase in phrases:
            for word in phrase:
                frequency[word] += 1
                degree[word] += len(phrase)
        return {word: degree[word] / frequency[word] for word in frequency}

    def rank(self, text: str) -> List[Tuple[float, str]]:
        """All candidate phrases with their scores, best first."""
        phrases = self.candidate_phrases(text)
        scores = self.word_scores(phrases)
        ranked = [
            (sum(scores[word] for word in phrase), " ".join(phrase))
            for phrase in phrases
        ]
        # sorted() is stable, so equal scores keep first-occurrence order
        return sorted(ranked, key=lambda item: item[0], reverse=True)

    def extract(self, text: str) -> List[str]:
        return [phrase for _, phrase in self.rank(text)[:self.max_phrases]]


class TextRankPhraseRanker:
    """
    TextRank key terms over the parsed question.

    Content words (nouns, proper nouns and adjectives that are not stopwords)
    become nodes of a co-occurrence graph, linked when they appear within
    `window_size` content words of each other in a sentence. PageRank scores
    the words. A candidate term is a maximal run of adjacent content words
    and scores the sum of its word scores. Each term is returned once.
    """

    def __init__(
        self,
        analyzer: LanguageAnalyzer,
        stopwords: Optional[Iterable[str]] = None,
        max_phrases: Optional[int] = None,
        window_size: int = 2,
    ):
        self.analyzer = analyzer
        self.stopwords = frozenset(
            word.lower() for word in (stopwords if stopwords is not None else STOP_WORDS)
        )
        self.max_phrases = max_phrases if max_phrases is not None else settings.MAX_KEY_PHRASES
        self.window_size = window_size

    @staticmethod
    def normalize(token: ParsedToken) -> str:
        return (token.lemma or token.text).lower()

    def is_content_word(self, token: ParsedToken) -> bool:
        word = self.normalize(token)
        return token.pos in TEXTRANK_POS and word[:1].isalnum() and word not in self.stopwords

    def word_graph(self, sentences: List[ParsedSentence]) -> nx.Graph:
        graph = nx.Graph()
        for sentence in sentences:
            words = [self.normalize(t) for t in sentence.tokens if self.is_content_word(t)]
            graph.add_nodes_from(words)
            for i, word in enumerate(words):
                for other in words[i + 1:i + self.window_size]:
                    if other != word:
                        graph.add_edge(word, other)
        return graph

    def candidate_terms(self, sentences: List[ParsedSentence]) -> List[Tuple[str, ...]]:
        terms: List[Tuple[str, ...]] = []
        for sentence in sentences:
            run: List[str] = []
            for token in sentence.tokens:
                if self.is_content_word(token):
                    run.append(self.normalize(token))
                    continue
                if run:
                    terms.append(tuple(run))
                    run = []
            if run:
                terms.append(tuple(run))
        return terms

    def rank(self, text: str) -> List[Tuple[float, str]]:
        """Distinct candidate terms with their scores, best first."""
        sentences = self.analyzer.parse(text)
        graph = self.word_graph(sentences)
        if graph.number_of_nodes() == 0:
            return []

        scores = nx.pagerank(graph)
        ranked: List[Tuple[float, str]] = []
        seen = set()
        for term in self.candidate_terms(sentences):
            phrase = " ".join(term)
            if phrase in seen:
                continue
            seen.add(phrase)
            ranked.append((sum(scores[word] for word in term), phrase))
        return sorted(ranked, key=lambda item: item[0], reverse=True)

    def extract(self, text: str) -> List[str]:
        return [phrase for _, phrase in self.rank(text)[:self.max_phrases]]


# ============================================================================
# TRIPLES
# ============================================================================

class DependencyTripleExtractor:
    """
    One triple per clause root that has both a subject on its left and an
    object on its right.
    """

    def __init__(self, analyzer: LanguageAnalyzer):
        self.analyzer = analyzer

    @staticmethod
    def triples_from_sentence(sentence: ParsedSentence) -> List[Triple]:
        triples = []
        for root in sentence.roots():
            subjects = [t for t in sentence.lefts(root) if t.dep in SUBJECT_DEPS]
            objects = [t for t in sentence.rights(root) if t.dep in OBJECT_DEPS]
            if subjects and objects:
                triples.append(Triple(
                    subject=subjects[0].text,
                    predicate=root.text,
                    object=objects[0].text,
                ))
        return triples

    def extract(self, text: str) -> List[Triple]:
        triples: List[Triple] = []
        for sentence in self.analyzer.parse(text):
            triples.extend(self.triples_from_sentence(sentence))
        return triples


class CueStatementTripleExtractor:
    """
    Semistructured statements of the form "<subject> <cue verb> <fragment>".

    A statement is read off every cue verb (matched on lemma or surface form)
    that has a subject on its left. The object is the rest of the verb's
    subtree to its right, without punctuation, e.g.
    "Osmosis is the diffusion of water." -> (Osmosis, is, the diffusion of water)
    """

    def __init__(self, analyzer: LanguageAnalyzer, cue: Optional[str] = None, max_fragment_words: int = 20):
        self.analyzer = analyzer
        self.cue = (cue or settings.STATEMENT_CUE).lower()
        self.max_fragment_words = max_fragment_words

    def is_cue(self, token: ParsedToken) -> bool:
        return self.cue in (token.lemma.lower(), token.text.lower())

    def statements_from_sentence(self, sentence: ParsedSentence) -> List[Triple]:
        triples = []
        for verb in sentence.tokens:
            if not self.is_cue(verb):
                continue
            subjects = [t for t in sentence.lefts(verb) if t.dep in SUBJECT_DEPS]
            fragment = [
                t for t in sentence.subtree(verb)
                if t.index > verb.index and t.dep != "punct"
            ]
            if not subjects or not fragment or len(fragment) > self.max_fragment_words:
                continue
            triples.append(Triple(
                subject=subjects[0].text,
                predicate=verb.text,
                object=" ".join(t.text for t in fragment),
            ))
        return triples

    def extract(self, text: str) -> List[Triple]:
        triples: List[Triple] = []
        for sentence in self.analyzer.parse(text):
            triples.extend(self.statements_from_sentence(sentence))
        return triples


def create_phrase_strategy(analyzer: Optional[LanguageAnalyzer] = None, name: Optional[str] = None) -> KeyPhraseStrategy:
    """Key phrase strategy named by `name`, or by PHRASE_STRATEGY."""
    name = name or settings.PHRASE_STRATEGY
    if name == "rake":
        return RakePhraseRanker()
    if name == "textrank":
        if analyzer is None:
            raise ValueError("TextRank key terms need a language analyzer")
        return TextRankPhraseRanker(analyzer)
    raise ValueError(f"Unknown key phrase strategy '{name}'")


def create_triple_strategy(analyzer: LanguageAnalyzer, name: Optional[str] = None) -> TripleStrategy:
    """Triple strategy named by `name`, or by TRIPLE_STRATEGY."""
    name = name or settings.TRIPLE_STRATEGY
    if name == "dependency":
        return DependencyTripleExtractor(analyzer)
    if name == "cue":
        return CueStatementTripleExtractor(analyzer)
    raise ValueError(f"Unknown triple strategy '{name}'")


# ============================================================================
# EXTRACTION AGENT
# ============================================================================

def classify_topic(text: str) -> TopicType:
    # Substring match, so "show" and "however" count as well
    return TopicType.PROCESS if "how" in text.lower() else TopicType.THEORY


class PhraseRelationExtractor:
    """
    Runs the key-phrase and triple strategies over one utterance.

    A failing strategy never fails the analysis; its output is replaced with
    an empty list and the result is flagged as degraded.
    """

    def __init__(
        self,
        analyzer: Optional[LanguageAnalyzer] = None,
        phrase_strategy: Optional[KeyPhraseStrategy] = None,
        triple_strategy: Optional[TripleStrategy] = None,
    ):
        if triple_strategy is None:
            if analyzer is None:
                raise ValueError("Either an analyzer or a triple strategy is required")
            triple_strategy = create_triple_strategy(analyzer)

        self.phrase_strategy = phrase_strategy or create_phrase_strategy(analyzer)
        self.triple_strategy = triple_strategy

    def analyze(self, text: str) -> AnalysisResult:
        text = (text or "").strip()
        if not text:
            return AnalysisResult()

        warnings: List[str] = []

        try:
            key_phrases = list(self.phrase_strategy.extract(text))
        except Exception as e:
            logger.warning(f"⚠️ Key phrase extraction degraded: {e}")
            warnings.append(f"Key phrase extraction failed: {e}")
            key_phrases = []

        try:
            triples = list(self.triple_strategy.extract(text))
        except AnalysisDegraded as e:
            logger.warning(f"⚠️ Triple extraction degraded: {e}")
            warnings.append(str(e))
            triples = []
        except Exception as e:
            logger.warning(f"⚠️ Triple extraction failed: {e}")
            warnings.append(f"Triple extraction failed: {e}")
            triples = []

        topic_type = classify_topic(text)

        logger.info(
            f"🔍 Analysis: {len(key_phrases)} phrases, {len(triples)} triples, "
            f"topic={topic_type.value}"
        )

        return AnalysisResult(
            key_phrases=key_phrases,
            triples=triples,
            topic_type=topic_type,
            degraded=bool(warnings),
            warnings=warnings,
        )
