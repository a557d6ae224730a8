"""
Threshold gating for final recognition results.

A result survives only if the detector was confident the hand is there
and the classifier is confident about the gesture.
"""

import logging

from sign_recognition.core.errors import ConfigurationError
from sign_recognition.core.types import RecognitionResult, ResultSource

logger = logging.getLogger(__name__)

DEFAULT_DETECTION_THRESHOLD = 0.5
DEFAULT_RECOGNITION_THRESHOLD = 0.7


def validate_threshold(name: str, value) -> float:
    """Return ``value`` as a float in [0, 1] or raise ConfigurationError."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError("%s must be a number, got %r" % (name, value)) from None
    if not 0.0 <= value <= 1.0:
        logger.warning("Rejected %s=%r (outside [0, 1])", name, value)
        raise ConfigurationError("%s must be within [0, 1], got %r" % (name, value))
    return value


def gate(result: RecognitionResult, detection_confidence: float,
         detection_threshold: float, recognition_threshold: float) -> RecognitionResult:
    """Replace low-confidence results with the canonical "no gesture".

    Args:
        result: arbitrated classification result
        detection_confidence: landmark confidence from the external detector
        detection_threshold: minimum detector confidence
        recognition_threshold: minimum result confidence
    """
    if detection_confidence < detection_threshold:
        logger.debug("Gated: detection %.3f < %.3f", detection_confidence, detection_threshold)
        return RecognitionResult.none(ResultSource.NONE)
    if result.confidence < recognition_threshold:
        logger.debug("Gated: %s confidence %.3f < %.3f",
                     result.gesture, result.confidence, recognition_threshold)
        return RecognitionResult.none(ResultSource.NONE)
    return result


class ThresholdGate:
    """Holds the two runtime-adjustable thresholds and applies them."""

    def __init__(self, detection_threshold: float = DEFAULT_DETECTION_THRESHOLD,
                 recognition_threshold: float = DEFAULT_RECOGNITION_THRESHOLD):
        self._detection_threshold = validate_threshold("detection_threshold", detection_threshold)
        self._recognition_threshold = validate_threshold("recognition_threshold",
                                                         recognition_threshold)

    @property
    def detection_threshold(self) -> float:
        return self._detection_threshold

    @detection_threshold.setter
    def detection_threshold(self, value):
        self._detection_threshold = validate_threshold("detection_threshold", value)
        logger.info("Detection threshold set to %.2f", self._detection_threshold)

    @property
    def recognition_threshold(self) -> float:
        return self._recognition_threshold

    @recognition_threshold.setter
    def recognition_threshold(self, value):
        self._recognition_threshold = validate_threshold("recognition_threshold", value)
        logger.info("Recognition threshold set to %.2f", self._recognition_threshold)

    def gate(self, result: RecognitionResult, detection_confidence: float = 1.0) -> RecognitionResult:
        return gate(result, detection_confidence,
                    self._detection_threshold, self._recognition_threshold)

    @staticmethod
    def classify_confidence(confidence: float) -> str:
        """Classify confidence level for display.

        Returns:
            'high' (>=0.85), 'medium' (0.65-0.85), or 'low' (<0.65)
        """
        if confidence >= 0.85:
            return "high"
        elif confidence >= 0.65:
            return "medium"
        return "low"
