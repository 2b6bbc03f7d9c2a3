"""
Notifier exceptions.

Fatal conditions are raised as ZonesafeError subclasses; recoverable ones
(transport failures, a single bad inference) are logged where they happen.
"""


class ZonesafeError(Exception):
    """Base class for notifier errors."""
    pass


class VideoSourceError(ZonesafeError):
    """Raised when the video source cannot be opened."""
    pass


class DetectorLoadError(ZonesafeError):
    """Raised when the person detection model cannot be loaded."""
    pass


class DetectorUnavailableError(ZonesafeError):
    """Raised when the detector keeps failing and is considered unusable."""
    pass
