from __future__ import annotations


class AcquisitionError(RuntimeError):
    """Base class for acquisition and persistence failures."""


class ExtractionFailure(AcquisitionError):
    """A single item's mandatory field could not be resolved. The item is skipped."""


class TransientHostFailure(AcquisitionError):
    """The host page did not render expected content in time."""


class PersistenceFailure(AcquisitionError):
    """A store write failed and was rolled back."""


class ProgressCorruption(AcquisitionError):
    """Persisted progress is missing required fields or malformed."""


class InvalidTransition(AcquisitionError):
    """Illegal progress status change."""


class QueueFull(AcquisitionError):
    """The serializer queue is at capacity."""
