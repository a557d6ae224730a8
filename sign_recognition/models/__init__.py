"""
Feature extraction and neural classification.

Provides:
    - GestureFeatureExtractor: hands -> 126/63-dim landmark vector
    - PairwiseDistanceExtractor: hands -> 210-dim distance vector
    - NeuralClassifier: fixed-weight MLP inference
    - HybridClassifier: rule + network candidates with arbitration
"""

from .feature_extractor import GestureFeatureExtractor, PairwiseDistanceExtractor
from .gesture_net import NeuralClassifier
from .hybrid_classifier import HybridClassifier

__all__ = [
    "GestureFeatureExtractor",
    "PairwiseDistanceExtractor",
    "NeuralClassifier",
    "HybridClassifier",
]
