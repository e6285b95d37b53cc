"""Labelled sequence storage and export."""
from .dataset import Dataset, DEFAULT_EXPORT_FILENAME

__all__ = ["Dataset", "DEFAULT_EXPORT_FILENAME"]
