"""
Session Memory for the tutoring pipeline.

An append-only store of (utterance, embedding) records with exact
nearest-neighbor lookup. It answers "has the learner asked something like
this before?" for the current session.

Distance conventions:
    - cosine: 1 - cosine similarity (zero vectors have similarity 0)
    - l2:     squared Euclidean distance

A record matches only if its distance is strictly below the threshold.
Memory is unbounded; long-running sessions grow without eviction.
"""

from dataclasses import dataclass
from typing import Literal, Optional, Sequence, Tuple, Union
import logging
import threading

import numpy as np

from eduai.core.config import DEFAULT_THRESHOLDS, settings
from eduai.core.exceptions import MemoryContractViolation

logger = logging.getLogger(__name__)

Metric = Literal["cosine", "l2"]
EmbeddingLike = Union[np.ndarray, Sequence[float]]


@dataclass(frozen=True)
class MemoryRecord:
    utterance: str
    embedding: np.ndarray


class SessionMemory:
    """
    Thread-safe, append-only vector memory.

    All reads and writes go through one re-entrant lock, so a lookup never
    sees a half-appended record set.
    """

    def __init__(
        self,
        metric: Optional[Metric] = None,
        threshold: Optional[float] = None,
        dimension: Optional[int] = None,
    ):
        self.metric: Metric = metric or settings.MEMORY_METRIC
        if self.metric not in DEFAULT_THRESHOLDS:
            raise ValueError(f"Unsupported distance metric '{self.metric}'")

        if threshold is None:
            threshold = (
                settings.memory_threshold
                if self.metric == settings.MEMORY_METRIC
                else DEFAULT_THRESHOLDS[self.metric]
            )
        self.threshold = float(threshold)
        self.dimension = dimension if dimension is not None else settings.EMBEDDING_DIM

        self._utterances: list = []
        self._vectors: list = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._utterances)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, embedding: EmbeddingLike) -> np.ndarray:
        try:
            vector = np.asarray(embedding, dtype=np.float32)
        except (TypeError, ValueError) as e:
            raise MemoryContractViolation(f"Embedding is not numeric: {e}") from e

        if vector.ndim != 1 or vector.size == 0:
            raise MemoryContractViolation(
                f"Embedding must be a non-empty 1-D vector, got shape {vector.shape}"
            )
        if not np.all(np.isfinite(vector)):
            raise MemoryContractViolation("Embedding contains NaN or infinite values")
        if self.dimension is not None and vector.shape[0] != self.dimension:
            raise MemoryContractViolation(
                f"Embedding dimension {vector.shape[0]} does not match memory dimension {self.dimension}"
            )
        return vector

    # ------------------------------------------------------------------
    # Distances
    # ------------------------------------------------------------------

    def _distances(self, query: np.ndarray) -> np.ndarray:
        matrix = np.vstack(self._vectors).astype(np.float64)
        query = query.astype(np.float64)

        if self.metric == "l2":
            diff = matrix - query
            return np.einsum("ij,ij->i", diff, diff)

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        similarity = np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)
        return 1.0 - similarity

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def store(self, utterance: str, embedding: EmbeddingLike) -> None:
        """
        Append a record.

        Raises:
            MemoryContractViolation: If the embedding is malformed or has the wrong dimension
        """
        with self._lock:
            vector = self._validate(embedding)
            if self.dimension is None:
                self.dimension = int(vector.shape[0])
            self._utterances.append(str(utterance))
            self._vectors.append(vector.copy())
            logger.debug(f"Stored memory record #{len(self._utterances)}")

    def nearest(self, query_embedding: EmbeddingLike) -> Optional[Tuple[str, float]]:
        """Closest stored utterance and its distance, regardless of threshold."""
        with self._lock:
            if not self._utterances:
                return None
            query = self._validate(query_embedding)
            distances = self._distances(query)
            # argmin returns the first minimum, i.e. the earliest record on ties
            best = int(np.argmin(distances))
            return self._utterances[best], float(distances[best])

    def retrieve_similar(self, query_embedding: EmbeddingLike) -> Optional[str]:
        """
        Return the stored utterance nearest to `query_embedding` if its
        distance is strictly below the threshold, otherwise None.

        Raises:
            MemoryContractViolation: If the query embedding is malformed
        """
        match = self.nearest(query_embedding)
        if match is None:
            return None

        utterance, distance = match
        if distance < self.threshold:
            logger.info(f"🧠 Similar question found (distance {distance:.4f})")
            return utterance

        logger.debug(f"No similar question (best distance {distance:.4f} >= {self.threshold})")
        return None

    def recall_and_store(self, utterance: str, embedding: EmbeddingLike) -> Optional[str]:
        """
        Look up a similar earlier utterance, then store this one.

        Both steps run under the same lock, so the lookup only ever sees
        records stored before this call.
        """
        with self._lock:
            vector = self._validate(embedding)
            similar = self.retrieve_similar(vector)
            self.store(utterance, vector)
            return similar

    def records(self) -> Tuple[MemoryRecord, ...]:
        """Snapshot of all records in insertion order."""
        with self._lock:
            return tuple(
                MemoryRecord(utterance=u, embedding=v.copy())
                for u, v in zip(self._utterances, self._vectors)
            )

    def utterances(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._utterances)
