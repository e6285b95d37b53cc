"""Camera frame acquisition."""
from .camera_manager import CameraManager, blank_frame

__all__ = ["CameraManager", "blank_frame"]
