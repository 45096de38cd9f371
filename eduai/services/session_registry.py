import logging
import threading
from typing import Dict, List, Optional

from eduai.services.session_memory import SessionMemory

logger = logging.getLogger(__name__)


class SessionMemoryRegistry:
    """
    Owns one SessionMemory per tutoring session.

    Memories are created on first use and live as long as the registry.
    """

    def __init__(self, metric: Optional[str] = None, threshold: Optional[float] = None):
        self.metric = metric
        self.threshold = threshold
        self._memories: Dict[str, SessionMemory] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> SessionMemory:
        """Get or create the memory for `session_id`."""
        with self._lock:
            memory = self._memories.get(session_id)
            if memory is None:
                memory = SessionMemory(metric=self.metric, threshold=self.threshold)
                self._memories[session_id] = memory
                logger.info(f"🆕 Created session memory for {session_id}")
            return memory

    def find(self, session_id: str) -> Optional[SessionMemory]:
        with self._lock:
            return self._memories.get(session_id)

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._memories)


# Global registry instance
session_registry = SessionMemoryRegistry()


def get_session_registry() -> SessionMemoryRegistry:
    """FastAPI dependency returning the process-wide registry."""
    return session_registry
