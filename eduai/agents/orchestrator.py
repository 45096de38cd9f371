"""
Orchestrator for the Adaptive Tutoring Pipeline.

The orchestrator runs the tutoring agents for one learner question using
LangGraph's StateGraph. The state flows through the nodes in a fixed order;
each node absorbs its own collaborator failures into warnings, so the caller
always gets a PipelineResult unless the question is empty or the session
memory contract is broken.

Architecture:
    - StateGraph manages workflow
    - Each agent is a node in the graph
    - Session memory is injected, never global
    - The orchestrator itself keeps no per-call state

Workflow:

    normalize (outside the graph, rejects empty questions)
      ↓
    analyze → build_graph → recall_memory → assess_engagement → respond → END
                                  ↓ (memory contract violation)
                                 END
"""

from typing import TypedDict, Optional, Dict, Any, List
import logging

from langgraph.graph import StateGraph, END

from eduai.agents.adaptive_agent import engagement_band, shape_response
from eduai.agents.concept_graph import ConceptGraphBuilder, GraphRenderer, diagram_title
from eduai.agents.engagement_agent import (
    DEFAULT_ENGAGEMENT,
    EngagementMonitor,
    create_engagement_monitor,
)
from eduai.agents.extraction_agent import PhraseRelationExtractor
from eduai.agents.response_agent import ResponseAgent
from eduai.core.config import settings
from eduai.core.exceptions import InputError, MemoryContractViolation, RenderFailure
from eduai.models.pipeline import AnalysisResult, ConceptGraph, PipelineResult
from eduai.services.language_analyzer import LanguageAnalyzer, SpacyLanguageAnalyzer
from eduai.services.session_memory import SessionMemory

logger = logging.getLogger(__name__)


# ============================================================================
# STATE DEFINITION
# ============================================================================

class PipelineState(TypedDict):
    """
    Shared state that flows through all agents for one question.
    """
    # Inputs
    utterance: str
    emotion_label: Optional[str]
    memory: SessionMemory

    # Agent outputs
    analysis: Optional[AnalysisResult]
    concept_graph: Optional[ConceptGraph]
    diagram_path: Optional[str]
    similar_utterance: Optional[str]
    engagement_score: float
    emotion: Optional[str]
    response: Optional[str]

    # Error handling
    warnings: List[str]
    fatal: Optional[Exception]


def normalize_query(raw_text: Optional[str]) -> str:
    """
    Trim the learner's question.

    Raises:
        InputError: If nothing is left after trimming
    """
    if not isinstance(raw_text, str):
        raise InputError("Query must be a string")
    text = raw_text.strip()
    if not text:
        raise InputError("Query is empty")
    return text


# ============================================================================
# ORCHESTRATOR CLASS
# ============================================================================

class TutoringOrchestrator:
    """
    Central orchestrator for the tutoring agents.

    Responsibilities:
    - Sequence extraction, diagram, memory, engagement and response agents
    - Keep memory lookups ahead of memory writes
    - Turn collaborator failures into warnings
    - Assemble the PipelineResult
    """

    def __init__(
        self,
        memory: SessionMemory,
        analyzer: LanguageAnalyzer,
        extractor: Optional[PhraseRelationExtractor] = None,
        graph_builder: Optional[ConceptGraphBuilder] = None,
        renderer: Optional[GraphRenderer] = None,
        engagement_monitor: Optional[EngagementMonitor] = None,
        response_agent: Optional[ResponseAgent] = None,
    ):
        self.memory = memory
        self.analyzer = analyzer
        self.extractor = extractor or PhraseRelationExtractor(analyzer=analyzer)
        self.graph_builder = graph_builder or ConceptGraphBuilder()
        self.renderer = renderer
        self.engagement_monitor = engagement_monitor or EngagementMonitor()
        self.response_agent = response_agent or ResponseAgent()

        self.workflow: Optional[StateGraph] = None
        self.compiled_workflow = None

        logger.info("🎯 Orchestrator initialized")

    def build_workflow(self):
        """Build and compile the LangGraph StateGraph workflow."""
        workflow = StateGraph(PipelineState)

        workflow.add_node("analyze", self._analyze_node)
        workflow.add_node("build_graph", self._build_graph_node)
        workflow.add_node("recall_memory", self._recall_memory_node)
        workflow.add_node("assess_engagement", self._assess_engagement_node)
        workflow.add_node("respond", self._respond_node)

        workflow.set_entry_point("analyze")
        workflow.add_edge("analyze", "build_graph")
        workflow.add_edge("build_graph", "recall_memory")
        workflow.add_conditional_edges(
            "recall_memory",
            self._route_after_memory,
            {
                "continue": "assess_engagement",
                "abort": END
            }
        )
        workflow.add_edge("assess_engagement", "respond")
        workflow.add_edge("respond", END)

        self.workflow = workflow
        self.compiled_workflow = workflow.compile()

        logger.info("✅ Workflow built successfully")

    # ========================================================================
    # WORKFLOW NODES
    # ========================================================================

    def _analyze_node(self, state: PipelineState) -> Dict[str, Any]:
        analysis = self.extractor.analyze(state["utterance"])
        logger.debug(f"🔍 NLP output: {analysis.model_dump()}")
        return {
            "analysis": analysis,
            "warnings": [*state["warnings"], *analysis.warnings]
        }

    def _build_graph_node(self, state: PipelineState) -> Dict[str, Any]:
        analysis = state["analysis"]
        graph = self.graph_builder.build(analysis.key_phrases)
        update: Dict[str, Any] = {"concept_graph": graph}

        if self.renderer is None or graph.is_empty:
            return update

        try:
            path = self.renderer.render(graph, title=diagram_title(analysis.topic_type))
            update["diagram_path"] = str(path)
        except RenderFailure as e:
            logger.warning(f"⚠️ {e}")
            update["warnings"] = [*state["warnings"], str(e)]

        return update

    def _recall_memory_node(self, state: PipelineState) -> Dict[str, Any]:
        utterance = state["utterance"]

        try:
            embedding = self.analyzer.embed(utterance)
        except Exception as e:
            logger.warning(f"⚠️ Embedding failed, skipping session memory: {e}")
            return {"warnings": [*state["warnings"], f"Session memory skipped: {e}"]}

        try:
            similar = state["memory"].recall_and_store(utterance, embedding)
        except MemoryContractViolation as e:
            logger.error(f"❌ Session memory rejected embedding: {e}")
            return {"fatal": e}

        if similar:
            logger.info(f"🧠 You've asked something similar before: {similar}")
        return {"similar_utterance": similar}

    def _route_after_memory(self, state: PipelineState) -> str:
        return "abort" if state.get("fatal") is not None else "continue"

    def _assess_engagement_node(self, state: PipelineState) -> Dict[str, Any]:
        score, emotion = self.engagement_monitor.assess(state.get("emotion_label"))
        return {"engagement_score": score, "emotion": emotion}

    def _respond_node(self, state: PipelineState) -> Dict[str, Any]:
        base = self.response_agent.draft(state["utterance"], state["analysis"])
        engagement = state["engagement_score"]
        final = shape_response(base, engagement)
        logger.info(f"🤖 Response shaped as {engagement_band(engagement)}")
        return {"response": final}

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    def run_pipeline(
        self,
        raw_text: str,
        *,
        memory: Optional[SessionMemory] = None,
        emotion_label: Optional[str] = None
    ) -> PipelineResult:
        """
        Run all tutoring agents for one question.

        Args:
            raw_text: The learner's question
            memory: Session memory to use instead of the orchestrator's default
            emotion_label: Pre-computed emotion; skips the camera when given

        Returns:
            The aggregated PipelineResult

        Raises:
            InputError: If the question is empty after trimming
            MemoryContractViolation: If the embedding does not fit the session memory
        """
        if not self.compiled_workflow:
            raise RuntimeError("Workflow not built. Call build_workflow() first.")

        utterance = normalize_query(raw_text)

        logger.info(f"🚀 Running tutoring pipeline: {utterance[:80]!r}")

        initial_state: PipelineState = {
            "utterance": utterance,
            "emotion_label": emotion_label,
            "memory": memory if memory is not None else self.memory,
            "analysis": None,
            "concept_graph": None,
            "diagram_path": None,
            "similar_utterance": None,
            "engagement_score": DEFAULT_ENGAGEMENT,
            "emotion": None,
            "response": None,
            "warnings": [],
            "fatal": None
        }

        final_state = self.compiled_workflow.invoke(initial_state)

        if final_state.get("fatal") is not None:
            raise final_state["fatal"]

        analysis = final_state["analysis"]
        result = PipelineResult(
            utterance=utterance,
            key_phrases=analysis.key_phrases,
            triples=analysis.triples,
            topic_type=analysis.topic_type,
            concept_graph=final_state["concept_graph"] or ConceptGraph(),
            diagram_path=final_state.get("diagram_path"),
            similar_utterance=final_state.get("similar_utterance"),
            engagement_score=final_state["engagement_score"],
            emotion=final_state.get("emotion"),
            response=final_state["response"],
            warnings=final_state["warnings"]
        )

        logger.info(f"✅ Pipeline completed with {len(result.warnings)} warning(s)")
        return result


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def create_orchestrator(
    memory: Optional[SessionMemory] = None,
    analyzer: Optional[LanguageAnalyzer] = None,
    render_diagrams: Optional[bool] = None,
    **kwargs: Any
) -> TutoringOrchestrator:
    """
    Factory function to create and build an orchestrator from settings.

    Example:
        >>> orchestrator = create_orchestrator()
        >>> result = orchestrator.run_pipeline("How does photosynthesis work?")
    """
    if render_diagrams is None:
        render_diagrams = settings.RENDER_DIAGRAMS

    if render_diagrams and "renderer" not in kwargs:
        kwargs["renderer"] = GraphRenderer()
    if "engagement_monitor" not in kwargs:
        kwargs["engagement_monitor"] = create_engagement_monitor()

    orchestrator = TutoringOrchestrator(
        memory=memory if memory is not None else SessionMemory(),
        analyzer=analyzer or SpacyLanguageAnalyzer(),
        **kwargs
    )
    orchestrator.build_workflow()
    return orchestrator


# Global orchestrator instance (singleton pattern)
_orchestrator_instance: Optional[TutoringOrchestrator] = None


def get_orchestrator() -> TutoringOrchestrator:
    """
    Get or create the global orchestrator instance.

    This ensures we only compile the workflow once for performance.
    """
    global _orchestrator_instance

    if _orchestrator_instance is None:
        _orchestrator_instance = create_orchestrator()

    return _orchestrator_instance
