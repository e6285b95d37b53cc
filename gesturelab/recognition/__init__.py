"""Sequence buffering, model loading and prediction strategies."""
from .sequence_buffer import RecordBuffer, PredictBuffer
from .model_service import ModelService, LabelTable, build_label_table
from .predictors import Predictor, SequencePredictor, CropPredictor, build_predictor

__all__ = [
    "RecordBuffer",
    "PredictBuffer",
    "ModelService",
    "LabelTable",
    "build_label_table",
    "Predictor",
    "SequencePredictor",
    "CropPredictor",
    "build_predictor",
]
