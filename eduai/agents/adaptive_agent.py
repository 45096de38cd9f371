"""
Adaptive Teaching Agent.

Adjusts the depth of an answer to the learner's engagement:

▸ engagement < 0.4  -> simplified explanation with a visual aid
▸ engagement > 0.7  -> advanced explanation with more depth
▸ otherwise         -> unchanged

Both bounds belong to the unchanged band.
"""

LOW_ENGAGEMENT = 0.4
HIGH_ENGAGEMENT = 0.7

SIMPLIFIED_MARKER = "\n(Simplified with visual aid)"
ADVANCED_MARKER = "\n(Advanced explanation with more depth)"


def shape_response(base_response: str, engagement: float) -> str:
    if engagement < LOW_ENGAGEMENT:
        return base_response + SIMPLIFIED_MARKER
    if engagement > HIGH_ENGAGEMENT:
        return base_response + ADVANCED_MARKER
    return base_response


def engagement_band(engagement: float) -> str:
    """Descriptive name of the band `engagement` falls in."""
    if engagement < LOW_ENGAGEMENT:
        return "simplified"
    if engagement > HIGH_ENGAGEMENT:
        return "advanced"
    return "standard"
