"""
Hybrid Sign Gesture Recognition
================================

Classifies a single 21-point hand pose into a closed set of sign
gestures using a rule-based finger-state classifier and a fixed-weight
MLP, arbitrated and threshold-gated into one result.

Modules:
    - core: domain types, errors, recognition pipeline
    - detection: landmark normalization and finger geometry
    - models: feature extraction, MLP inference, arbitration
    - recognition: rule classifier, template matcher, threshold gate
    - utils: configuration and logging
"""

__version__ = "1.0.0"

from .core.errors import ConfigurationError, SignRecognitionError
from .core.types import (
    GestureLabel,
    Handedness,
    HandObservation,
    LandmarkPoint,
    LandmarkSet,
    NormalizedLandmarkSet,
    RecognitionResult,
    ResultSource,
)
from .core.pipeline import SignRecognizer
from .models.gesture_net import NeuralClassifier, Scaler, WeightLayer

__all__ = [
    "ConfigurationError",
    "SignRecognitionError",
    "GestureLabel",
    "Handedness",
    "HandObservation",
    "LandmarkPoint",
    "LandmarkSet",
    "NormalizedLandmarkSet",
    "RecognitionResult",
    "ResultSource",
    "SignRecognizer",
    "NeuralClassifier",
    "Scaler",
    "WeightLayer",
]
