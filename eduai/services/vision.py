"""
Camera capture and facial emotion detection collaborators.

OpenCV and FER are optional ("vision" extra) and are imported when the
adapters are constructed, so servers without a camera never load them.
"""

from typing import Any, Optional, Protocol
import logging

from eduai.core.config import settings
from eduai.core.exceptions import SensorUnavailable

logger = logging.getLogger(__name__)


class CaptureSource(Protocol):
    def read_frame(self) -> Any:
        ...


class AffectDetector(Protocol):
    def detect_emotion(self, frame: Any) -> Optional[str]:
        ...


class OpenCVCaptureSource:
    """Grabs a single frame from a local camera, releasing the device after each read."""

    def __init__(self, camera_index: Optional[int] = None):
        import cv2

        self._cv2 = cv2
        self.camera_index = settings.CAMERA_INDEX if camera_index is None else camera_index

    def read_frame(self) -> Any:
        capture = self._cv2.VideoCapture(self.camera_index)
        try:
            if not capture.isOpened():
                raise SensorUnavailable(f"Camera {self.camera_index} could not be opened")
            ok, frame = capture.read()
            if not ok or frame is None:
                raise SensorUnavailable(f"Camera {self.camera_index} returned no frame")
            return frame
        finally:
            capture.release()


class FerAffectDetector:
    """Dominant facial emotion via the FER classifier."""

    def __init__(self, mtcnn: bool = False):
        from fer import FER

        self.detector = FER(mtcnn=mtcnn)

    def detect_emotion(self, frame: Any) -> Optional[str]:
        if frame is None:
            return None
        if not self.detector.detect_emotions(frame):
            logger.debug("No face detected in frame")
            return None
        emotion, _score = self.detector.top_emotion(frame)
        return emotion
