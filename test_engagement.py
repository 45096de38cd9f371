"""
Tests for the Engagement Monitor Agent and the Adaptive Teaching Agent.
"""

import threading
import time

import pytest

from conftest import BrokenCapture, RaisingDetector, SlowCapture, StaticCapture, StaticDetector
from eduai.agents.adaptive_agent import (
    ADVANCED_MARKER,
    SIMPLIFIED_MARKER,
    engagement_band,
    shape_response,
)
from eduai.agents.engagement_agent import EngagementClassifier, EngagementMonitor


# ============================================================================
# ENGAGEMENT CLASSIFIER
# ============================================================================

@pytest.mark.parametrize("label, expected", [
    ("happy", 0.8),
    ("surprise", 0.8),
    ("neutral", 0.5),
    ("angry", 0.2),
    ("sad", 0.2),
    ("fear", 0.2),
    ("disgust", 0.2),
    ("  Happy ", 0.8),
])
def test_known_labels(label, expected):
    assert EngagementClassifier().score(label) == expected


@pytest.mark.parametrize("label", [None, "", "banana", 42])
def test_missing_or_unknown_labels_default_to_neutral(label):
    assert EngagementClassifier().score(label) == 0.5


def test_default_is_clamped():
    assert EngagementClassifier(default=1.7).score(None) == 1.0


# ============================================================================
# ENGAGEMENT MONITOR
# ============================================================================

def test_monitor_without_sensor_is_neutral():
    assert EngagementMonitor().assess() == (0.5, None)


def test_monitor_reads_camera_emotion():
    monitor = EngagementMonitor(capture=StaticCapture(), detector=StaticDetector("happy"))

    assert monitor.assess() == (0.8, "happy")


def test_precomputed_label_skips_camera():
    monitor = EngagementMonitor(capture=BrokenCapture(), detector=StaticDetector("happy"))

    assert monitor.assess("sad") == (0.2, "sad")


def test_camera_error_defaults_to_neutral():
    monitor = EngagementMonitor(capture=BrokenCapture(), detector=StaticDetector("happy"))

    assert monitor.assess() == (0.5, None)


def test_detector_error_defaults_to_neutral():
    monitor = EngagementMonitor(capture=StaticCapture(), detector=RaisingDetector())

    assert monitor.assess() == (0.5, None)


def test_no_face_defaults_to_neutral():
    monitor = EngagementMonitor(capture=StaticCapture(), detector=StaticDetector(None))

    assert monitor.assess() == (0.5, None)


def test_slow_camera_times_out_to_neutral():
    monitor = EngagementMonitor(
        capture=SlowCapture(delay=2.0),
        detector=StaticDetector("happy"),
        timeout=0.1,
    )

    assert monitor.assess() == (0.5, None)


# ============================================================================
# ADAPTIVE RESPONSE POLICY
# ============================================================================

def test_boundaries_are_unchanged():
    assert shape_response("X", 0.4) == "X"
    assert shape_response("X", 0.7) == "X"
    assert shape_response("X", 0.5) == "X"


def test_low_engagement_simplifies():
    assert shape_response("X", 0.39) == "X" + SIMPLIFIED_MARKER
    assert shape_response("X", 0.0) == "X" + SIMPLIFIED_MARKER


def test_high_engagement_goes_deeper():
    assert shape_response("X", 0.71) == "X" + ADVANCED_MARKER
    assert shape_response("X", 1.0) == "X" + ADVANCED_MARKER


def test_markers_text():
    assert SIMPLIFIED_MARKER == "\n(Simplified with visual aid)"
    assert ADVANCED_MARKER == "\n(Advanced explanation with more depth)"


def test_engagement_band_names():
    assert [engagement_band(x) for x in (0.2, 0.5, 0.8)] == ["simplified", "standard", "advanced"]


class GatedCapture:
    """Blocks every read until the gate opens."""

    def __init__(self):
        self.gate = threading.Event()
        self.calls = 0

    def read_frame(self):
        self.calls += 1
        self.gate.wait(timeout=5)
        return "frame"


def test_repeated_timeouts_keep_a_single_capture_thread():
    capture = GatedCapture()
    monitor = EngagementMonitor(capture=capture, detector=StaticDetector("happy"), timeout=0.05)
    baseline = threading.active_count()

    results = [monitor.assess() for _ in range(5)]

    assert results == [(0.5, None)] * 5
    assert capture.calls == 1
    assert threading.active_count() <= baseline + 1

    capture.gate.set()
    monitor.close()


def test_camera_is_read_again_once_the_stuck_capture_finishes():
    capture = GatedCapture()
    monitor = EngagementMonitor(capture=capture, detector=StaticDetector("happy"), timeout=0.05)

    assert monitor.assess() == (0.5, None)
    capture.gate.set()

    result = (0.5, None)
    for _ in range(50):
        result = monitor.assess()
        if result[1] is not None:
            break
        time.sleep(0.05)

    assert result == (0.8, "happy")
    assert capture.calls == 2
    monitor.close()
