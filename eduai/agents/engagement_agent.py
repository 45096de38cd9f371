"""
Engagement Monitor Agent.

Maps the learner's facial emotion to an engagement score in [0, 1]:

    happy, surprise          -> 0.8
    neutral                  -> 0.5
    angry, disgust, fear, sad -> 0.2
    missing / unknown / error -> 0.5

The monitor is the failure boundary for the camera pipeline: a missing
camera, a slow detector or no detectable face all resolve to the neutral
score instead of an error.
"""

from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Optional, Tuple
import logging
import threading

from eduai.core.config import settings
from eduai.core.exceptions import SensorUnavailable
from eduai.services.vision import AffectDetector, CaptureSource

logger = logging.getLogger(__name__)


DEFAULT_ENGAGEMENT = 0.5

EMOTION_SCORES = {
    "happy": 0.8,
    "surprise": 0.8,
    "neutral": 0.5,
    "angry": 0.2,
    "disgust": 0.2,
    "fear": 0.2,
    "sad": 0.2,
}


def clamp_score(value: float) -> float:
    return min(1.0, max(0.0, value))


class EngagementClassifier:
    """Fixed lookup from emotion label to engagement score. Never raises."""

    def __init__(self, default: float = DEFAULT_ENGAGEMENT):
        self.default = clamp_score(default)

    def score(self, emotion_label: Optional[Any]) -> float:
        if not isinstance(emotion_label, str):
            return self.default
        label = emotion_label.strip().lower()
        return clamp_score(EMOTION_SCORES.get(label, self.default))


class EngagementMonitor:
    """
    Reads one frame, detects the dominant emotion and scores it.

    The capture + detection call runs in a worker thread and is abandoned
    after `timeout` seconds.
    """

    def __init__(
        self,
        capture: Optional[CaptureSource] = None,
        detector: Optional[AffectDetector] = None,
        classifier: Optional[EngagementClassifier] = None,
        timeout: Optional[float] = None,
    ):
        self.capture = capture
        self.detector = detector
        self.classifier = classifier or EngagementClassifier()
        self.timeout = settings.CAPTURE_TIMEOUT_SECONDS if timeout is None else timeout
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Optional[Future] = None
        self._lock = threading.Lock()

    @property
    def has_sensor(self) -> bool:
        return self.capture is not None and self.detector is not None

    def _capture_and_detect(self) -> Optional[str]:
        frame = self.capture.read_frame()
        return self.detector.detect_emotion(frame)

    def read_label(self) -> Optional[str]:
        """
        Dominant emotion from the camera, or None when it is unavailable.

        At most one capture runs at a time. While a timed-out capture is still
        running, later calls return None without touching the camera.
        """
        if not self.has_sensor:
            return None

        with self._lock:
            if self._pending is not None and not self._pending.done():
                logger.warning(f"⚠️ {SensorUnavailable.__name__}: previous capture still running")
                return None
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="engagement")
            self._pending = self._executor.submit(self._capture_and_detect)
            future = self._pending

        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.warning(f"⚠️ {SensorUnavailable.__name__}: no emotion within {self.timeout}s")
            return None
        except Exception as e:
            logger.warning(f"⚠️ {SensorUnavailable.__name__}: {e}")
            return None

    def close(self) -> None:
        """Stop the capture worker; a capture already running is not interrupted."""
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

    def assess(self, emotion_label: Optional[str] = None) -> Tuple[float, Optional[str]]:
        """
        Score engagement.

        Args:
            emotion_label: Pre-computed emotion from the client; skips the camera

        Returns:
            (engagement score, emotion label used)
        """
        label = emotion_label if emotion_label is not None else self.read_label()
        score = self.classifier.score(label)
        logger.info(f"📊 Engagement score: {score} (emotion={label})")
        return score, label


def create_engagement_monitor() -> EngagementMonitor:
    """Build the monitor from settings; the camera is only used when enabled."""
    if not settings.ENABLE_CAMERA:
        return EngagementMonitor()

    from eduai.services.vision import FerAffectDetector, OpenCVCaptureSource

    return EngagementMonitor(
        capture=OpenCVCaptureSource(),
        detector=FerAffectDetector(),
    )
