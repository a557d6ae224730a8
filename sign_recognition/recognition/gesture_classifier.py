"""
Rule-based gesture classifier using finger-extension geometry.

Each finger is reduced to an extended/curled flag from raw landmark
coordinates, and the resulting pattern is matched against a fixed,
ordered rule table. The first matching rule wins; its confidence is a
calibration constant, not a computed score.
"""

import logging
from typing import Dict, Optional

from sign_recognition.core.types import (
    GestureLabel, RecognitionResult, ResultSource, as_landmark_array,
)
from sign_recognition.detection.landmark_extractor import FINGER_NAMES, get_finger_states

logger = logging.getLogger(__name__)

# Ordered (extended fingers, label, confidence). Order is the tie-break.
GESTURE_RULES = (
    (frozenset({"index"}), GestureLabel.YES, 0.85),
    (frozenset(FINGER_NAMES), GestureLabel.HELLO, 0.80),
    (frozenset(), GestureLabel.THANKS, 0.75),
    (frozenset({"index", "middle"}), GestureLabel.V, 0.70),
    (frozenset({"index", "middle", "ring"}), GestureLabel.OK, 0.70),
    (frozenset({"thumb", "index", "pinky"}), GestureLabel.LOVE, 0.80),
)


class RuleClassifier:
    """Deterministic finger-state classifier.

    Operates on raw, unnormalized coordinates: only relative y (and, for
    the thumb, lateral x) comparisons are needed.

    Example:
        >>> classifier = RuleClassifier()
        >>> result = classifier.classify_by_rule(landmarks)
        >>> result.gesture, result.confidence
        ('hello', 0.8)
    """

    def __init__(self, rules=GESTURE_RULES):
        self._rules = tuple(rules)

    def finger_states(self, landmarks) -> Optional[Dict[str, bool]]:
        """Per-finger extension flags, or ``None`` for malformed input."""
        points = as_landmark_array(landmarks)
        if points is None:
            return None
        return get_finger_states(points)

    def classify_by_rule(self, landmarks) -> RecognitionResult:
        """Classify a hand from its finger pattern.

        Args:
            landmarks: LandmarkSet, (21, 3) array or sequence of 21 points

        Returns:
            RecognitionResult tagged with ResultSource.RULE; the "no
            gesture" result for input that is not exactly 21 landmarks or
            matches no rule.
        """
        fingers = self.finger_states(landmarks)
        if fingers is None:
            logger.debug("Rule classifier got malformed landmarks")
            return RecognitionResult.none(ResultSource.RULE)

        extended = frozenset(name for name, up in fingers.items() if up)
        for pattern, label, confidence in self._rules:
            if extended == pattern:
                logger.debug("Rule match %s for fingers %s", label.gesture, sorted(extended))
                return RecognitionResult(label, confidence, ResultSource.RULE)

        logger.debug("No rule for fingers %s", sorted(extended))
        return RecognitionResult.none(ResultSource.RULE)
