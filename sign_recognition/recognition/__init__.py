"""Gesture recognition module."""
from .gesture_classifier import RuleClassifier
from .template_matcher import TemplateMatcher
from .confidence_scorer import ThresholdGate

__all__ = [
    "RuleClassifier",
    "TemplateMatcher",
    "ThresholdGate",
]
