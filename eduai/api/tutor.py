"""
API endpoints for the tutoring pipeline.

The HTTP layer only transports questions and results; all decisions are made
by the orchestrator.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
import logging

from eduai.agents.orchestrator import TutoringOrchestrator, get_orchestrator
from eduai.core.exceptions import InputError
from eduai.models.pipeline import PipelineResult
from eduai.services.session_registry import SessionMemoryRegistry, get_session_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tutor", tags=["tutor"])


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class AskRequest(BaseModel):
    """A learner question."""
    query: str = Field(description="The learner's question")
    session_id: str = Field(default="default", description="Tutoring session the question belongs to")
    emotion: Optional[str] = Field(
        default=None,
        description="Emotion detected on the client; skips the server camera"
    )


class SessionHistoryResponse(BaseModel):
    session_id: str
    utterances: List[str]


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/ask", response_model=PipelineResult)
def ask(
    request: AskRequest,
    orchestrator: TutoringOrchestrator = Depends(get_orchestrator),
    registry: SessionMemoryRegistry = Depends(get_session_registry)
):
    """
    Answer a question with the full tutoring pipeline.

    Returns key phrases, relation triples, the concept graph, any similar
    earlier question from the same session, the engagement score and the
    shaped response.
    """
    logger.info(f"🎯 Ask request for session {request.session_id}")

    memory = registry.get(request.session_id)
    try:
        return orchestrator.run_pipeline(
            request.query,
            memory=memory,
            emotion_label=request.emotion
        )
    except InputError as e:
        raise HTTPException(
            status_code=422,
            detail=str(e)
        )


@router.get("/sessions/{session_id}/history", response_model=SessionHistoryResponse)
def session_history(
    session_id: str,
    registry: SessionMemoryRegistry = Depends(get_session_registry)
):
    """Questions stored for a session, oldest first."""
    memory = registry.find(session_id)
    if memory is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )
    return SessionHistoryResponse(session_id=session_id, utterances=list(memory.utterances()))
