from pydantic_settings import BaseSettings
from typing import Literal, Optional

# Default acceptance thresholds per distance convention
DEFAULT_THRESHOLDS = {
    "cosine": 0.2,
    "l2": 0.1,
}


class Settings(BaseSettings):
    # NLP settings
    SPACY_MODEL: str = "en_core_web_sm"
    MAX_KEY_PHRASES: int = 5
    PHRASE_STRATEGY: Literal["rake", "textrank"] = "rake"
    TRIPLE_STRATEGY: Literal["dependency", "cue"] = "dependency"
    STATEMENT_CUE: str = "be"  # Matched against the verb's lemma or surface form

    # Session memory settings
    MEMORY_METRIC: Literal["cosine", "l2"] = "cosine"
    MEMORY_THRESHOLD: Optional[float] = None  # Falls back to the metric default
    EMBEDDING_DIM: Optional[int] = None  # Inferred from the first stored embedding

    # Concept diagram settings
    RENDER_DIAGRAMS: bool = True
    DIAGRAM_DIR: str = "diagrams"

    # Engagement monitor settings
    ENABLE_CAMERA: bool = False
    CAMERA_INDEX: int = 0
    CAPTURE_TIMEOUT_SECONDS: float = 5.0

    # AI Agent settings
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"

    # CORS settings
    FRONTEND_URL: str = "http://localhost:5173"

    # Deployment settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    WARM_START: bool = False  # Build the orchestrator at startup instead of on the first request

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() in ["production", "prod"]

    @property
    def memory_threshold(self) -> float:
        """Acceptance threshold for similar-question lookups."""
        if self.MEMORY_THRESHOLD is not None:
            return self.MEMORY_THRESHOLD
        return DEFAULT_THRESHOLDS[self.MEMORY_METRIC]

    @property
    def allowed_origins(self) -> list:
        """Get list of allowed CORS origins."""
        if self.is_production:
            return [self.FRONTEND_URL]
        return [
            self.FRONTEND_URL,
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000"
        ]

settings = Settings()
