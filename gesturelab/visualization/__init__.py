"""Overlay rendering and operator prompts."""
from .overlay import Overlay
from .prompt import ConsoleLabelPrompt

__all__ = ["Overlay", "ConsoleLabelPrompt"]
