"""
Response Drafting Agent.

Produces the base explanation that the Adaptive Teaching Agent later shapes.

Without a GEMINI_API_KEY the agent answers with a fixed placeholder. With a
key it asks Gemini for a short explanation that follows the topic type and
the extracted key phrases. LLM errors always fall back to the placeholder.
"""

from typing import Optional
import logging

from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from eduai.core.config import settings
from eduai.models.pipeline import AnalysisResult, TopicType

logger = logging.getLogger(__name__)


PLACEHOLDER_RESPONSE = "Here's your explanation based on the input."


# ============================================================================
# PROMPT TEMPLATES
# ============================================================================

PROCESS_TEMPLATE = """You are a patient teaching assistant.

**Student question:** {question}
**Key concepts:** {key_phrases}

The student is asking HOW something happens.
Explain it as a short ordered sequence of steps. Mention each key concept where it fits.

Your explanation (3-5 sentences):"""

THEORY_TEMPLATE = """You are a patient teaching assistant.

**Student question:** {question}
**Key concepts:** {key_phrases}

The student is asking about an idea or definition.
Explain what it is and how the key concepts relate to each other.

Your explanation (3-5 sentences):"""


class ResponseAgent:
    """Drafts the base answer for a question."""

    def __init__(self, llm: Optional[ChatGoogleGenerativeAI] = None):
        if llm is None and settings.GEMINI_API_KEY:
            llm = ChatGoogleGenerativeAI(
                model=settings.GEMINI_MODEL,
                google_api_key=settings.GEMINI_API_KEY,
                temperature=0.4,
                max_output_tokens=1024
            )
            logger.info(f"✅ ResponseAgent initialized with model: {settings.GEMINI_MODEL}")

        self.llm = llm
        self.templates = {
            TopicType.PROCESS: PROCESS_TEMPLATE,
            TopicType.THEORY: THEORY_TEMPLATE,
        }

    def draft(self, question: str, analysis: AnalysisResult) -> str:
        if self.llm is None:
            return PLACEHOLDER_RESPONSE

        prompt = ChatPromptTemplate.from_template(self.templates[analysis.topic_type])
        messages = prompt.format_messages(
            question=question,
            key_phrases=", ".join(analysis.key_phrases) or "none identified",
        )

        try:
            response = self.llm.invoke(messages)
            text = response.content.strip() if isinstance(response.content, str) else ""
        except Exception as e:
            logger.error(f"❌ Failed to draft response: {e}")
            return PLACEHOLDER_RESPONSE

        if not text:
            logger.warning("⚠️ LLM returned an empty explanation, using placeholder")
            return PLACEHOLDER_RESPONSE

        logger.info(f"✅ Drafted explanation ({len(text)} chars)")
        return text
