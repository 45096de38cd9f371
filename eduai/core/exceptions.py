"""
Error taxonomy for the tutoring pipeline.

Only InputError and MemoryContractViolation stop a pipeline run. The other
kinds are raised by collaborators and absorbed by the component that calls
them, ending up as warnings on the PipelineResult.
"""


class TutoringError(Exception):
    """Base class for all tutoring pipeline errors."""


class InputError(TutoringError):
    """The learner's query is empty or otherwise unusable."""


class AnalysisDegraded(TutoringError):
    """The language analyzer failed or returned nothing useful."""


class RenderFailure(TutoringError):
    """The concept diagram could not be drawn."""


class MemoryContractViolation(TutoringError):
    """An embedding does not match the shape the session memory expects."""


class SensorUnavailable(TutoringError):
    """Camera or affect detector failed, or did not answer in time."""
