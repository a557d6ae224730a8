"""
HybridClassifier: rule and neural candidates with arbitration.

Priority order:
    1. Neural result, when its confidence reaches the recognition threshold
    2. Rule result, when it is more confident than the neural result
    3. Neural result otherwise (final gating happens downstream)

Geometrically unambiguous poses (fist, open palm, single finger) are
cheap and exact by rule; ambiguous poses are left to the network.
"""

import logging

from sign_recognition.core.types import (
    HandObservation, RecognitionResult, ResultSource,
)
from sign_recognition.models.feature_extractor import GestureFeatureExtractor
from sign_recognition.recognition.gesture_classifier import RuleClassifier

logger = logging.getLogger(__name__)


def arbitrate(rule_result: RecognitionResult, neural_result: RecognitionResult,
              recognition_threshold: float) -> RecognitionResult:
    """Pick the final answer from the two candidates."""
    if neural_result.confidence >= recognition_threshold:
        return neural_result
    if rule_result.confidence > neural_result.confidence:
        return rule_result
    return neural_result


class HybridClassifier:
    """Runs both classifiers on one frame and arbitrates.

    Usage::

        hybrid = HybridClassifier(RuleClassifier(), neural_classifier)
        result = hybrid.classify(hands, recognition_threshold=0.7)
    """

    def __init__(self, rule_classifier: RuleClassifier = None, neural_classifier=None,
                 feature_extractor=None):
        """
        Args:
            rule_classifier: RuleClassifier used on the primary hand
            neural_classifier: NeuralClassifier, or None for rules only
            feature_extractor: extractor whose feature_dim matches the
                               network input width
        """
        self._rule_classifier = rule_classifier or RuleClassifier()
        self._neural_classifier = neural_classifier
        self._feature_extractor = feature_extractor or GestureFeatureExtractor()

        if neural_classifier is not None:
            if self._feature_extractor.feature_dim != neural_classifier.input_dim:
                # Not fatal: every frame will fail closed on the neural side
                logger.warning(
                    "Feature width %d does not match network input %d",
                    self._feature_extractor.feature_dim, neural_classifier.input_dim,
                )
            logger.info("Hybrid classifier: rules + network (%d inputs)",
                        neural_classifier.input_dim)
        else:
            logger.info("Hybrid classifier: rules only (no network weights)")

    @property
    def neural_classifier(self):
        return self._neural_classifier

    @property
    def rule_classifier(self) -> RuleClassifier:
        return self._rule_classifier

    @property
    def feature_extractor(self):
        return self._feature_extractor

    # ------------------------------------------------------------------
    # Main classification API
    # ------------------------------------------------------------------

    def classify(self, hands, recognition_threshold: float) -> RecognitionResult:
        """Classify one frame.

        Args:
            hands: sequence of HandObservation; the first one is the
                   primary hand for the rule path
            recognition_threshold: confidence at which the network wins
                                   outright

        Returns:
            The arbitrated RecognitionResult (not yet gated)
        """
        if isinstance(hands, HandObservation):
            hands = [hands]
        hands = list(hands or [])
        if not hands:
            return RecognitionResult.none(ResultSource.NONE)

        rule_result = self._rule_classifier.classify_by_rule(hands[0].landmarks)
        neural_result = self._classify_neural(hands)

        result = arbitrate(rule_result, neural_result, recognition_threshold)
        logger.debug("rule=%r neural=%r -> %r", rule_result, neural_result, result)
        return result

    def _classify_neural(self, hands) -> RecognitionResult:
        """Run feature extraction and the network, failing closed."""
        if self._neural_classifier is None:
            return RecognitionResult.none(ResultSource.NEURAL)

        try:
            features = self._feature_extractor.extract(hands)
        except ValueError as e:
            logger.debug("Feature extraction failed: %s", e)
            return RecognitionResult.none(ResultSource.NEURAL)

        return self._neural_classifier.classify_by_network(features)
