"""Exception types raised across the package."""


class GestureLabError(Exception):
    """Base class for all gesturelab errors."""


class CameraError(GestureLabError):
    """The frame source could not be started or stopped."""


class ModelLoadError(GestureLabError):
    """The classifier could not be loaded from disk."""


class ModelNotReadyError(GestureLabError):
    """Inference was requested before a model was loaded."""


class EmptyDatasetError(GestureLabError):
    """Export was requested for a dataset with no samples."""
