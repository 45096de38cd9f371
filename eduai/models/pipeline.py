"""
Pipeline Models for the Adaptive Tutoring Core.

This module defines the structured data that flows between the tutoring agents:
- Analysis output (key phrases, relation triples, topic type)
- The linear concept graph drawn for the learner
- The aggregated result of one pipeline run

All models are plain pydantic models so the HTTP layer can return them as-is.
"""

from enum import Enum
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field


# ============================================================================
# ANALYSIS MODELS
# ============================================================================

class TopicType(str, Enum):
    """Coarse classification of a question based on the word "how"."""
    PROCESS = "process"
    THEORY = "theory"


class Triple(BaseModel):
    """A subject-predicate-object relation taken from one clause."""
    subject: str
    predicate: str
    object: str

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.subject, self.predicate, self.object)


class AnalysisResult(BaseModel):
    """
    Output of the Phrase & Relation Extractor.

    `degraded` is set when one of the extraction strategies failed and its
    output was replaced by an empty result.
    """
    key_phrases: List[str] = Field(
        default_factory=list,
        description="Ranked key phrases, best first"
    )
    triples: List[Triple] = Field(default_factory=list)
    topic_type: TopicType = TopicType.THEORY
    degraded: bool = False
    warnings: List[str] = Field(default_factory=list)


# ============================================================================
# CONCEPT GRAPH
# ============================================================================

class ConceptGraph(BaseModel):
    """
    Path-shaped concept map over ranked key phrases.

    Node identity is the phrase text; edges point from the earlier-ranked
    phrase to the later-ranked one.
    """
    nodes: List[str] = Field(default_factory=list)
    edges: List[Tuple[str, str]] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.nodes


# ============================================================================
# PIPELINE RESULT
# ============================================================================

class PipelineResult(BaseModel):
    """Everything one tutoring pipeline run produced for the caller."""
    utterance: str
    key_phrases: List[str] = Field(default_factory=list)
    triples: List[Triple] = Field(default_factory=list)
    topic_type: TopicType
    concept_graph: ConceptGraph = Field(default_factory=ConceptGraph)
    diagram_path: Optional[str] = Field(
        default=None,
        description="Rendered concept diagram, when rendering is enabled"
    )
    similar_utterance: Optional[str] = Field(
        default=None,
        description="An earlier question from this session that reads the same"
    )
    engagement_score: float = Field(default=0.5, ge=0.0, le=1.0)
    emotion: Optional[str] = None
    response: str
    warnings: List[str] = Field(default_factory=list)
