"""
Gesture Lab
===========

Webcam hand-gesture dataset capture and live recognition.

Modules:
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmarks and feature preparation
    - recognition: Sequence buffers, model service, predictor strategies
    - data: In-memory dataset and JSON export
    - core: Session state machine, events, shared types
    - visualization: Overlay and label prompt
    - utils: Config, logging, performance
"""

__version__ = "1.0.0"
