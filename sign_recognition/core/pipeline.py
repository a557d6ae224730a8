"""
Recognition pipeline: landmarks in, one gated gesture result out.

Architecture:
    HandObservation(s) -> RuleClassifier (primary hand, raw landmarks)
                       -> LandmarkNormalizer -> FeatureExtractor
                          -> NeuralClassifier
    -> arbitrate() -> ThresholdGate -> RecognitionResult

Every call is a pure function of its input plus the read-only network
constants; the only runtime-mutable settings are the two thresholds and
the scaler, each replaced by a single assignment.
"""

import logging
from collections.abc import Mapping
from typing import Optional

import numpy as np

import sign_recognition
from sign_recognition.core.errors import ConfigurationError
from sign_recognition.core.types import (
    HandObservation, Handedness, LandmarkSet, RecognitionResult, ResultSource,
    finite_confidence,
)
from sign_recognition.models.feature_extractor import create_feature_extractor
from sign_recognition.models.gesture_net import NeuralClassifier
from sign_recognition.models.hybrid_classifier import HybridClassifier
from sign_recognition.recognition.confidence_scorer import (
    DEFAULT_DETECTION_THRESHOLD, DEFAULT_RECOGNITION_THRESHOLD, ThresholdGate,
)
from sign_recognition.recognition.gesture_classifier import RuleClassifier
from sign_recognition.recognition.template_matcher import DEFAULT_MAX_DISTANCE, TemplateMatcher
from sign_recognition.utils.logger import log_timing

logger = logging.getLogger(__name__)


def _coerce_hands(hands) -> list:
    """Accept a hand, a list of hands, or a bare 21-point landmark set."""
    if hands is None:
        return []
    if isinstance(hands, HandObservation):
        return [hands]
    if isinstance(hands, (LandmarkSet, np.ndarray)):
        return [HandObservation(hands)]

    try:
        items = list(hands)
    except TypeError:
        logger.debug("Unsupported hand container %s", type(hands).__name__)
        return []
    if not items:
        return []
    if all(isinstance(item, HandObservation) for item in items):
        return items
    if all(isinstance(item, Mapping) and "landmarks" in item for item in items):
        return [HandObservation.from_dict(item) for item in items]
    # Anything else is taken as the points of a single right hand
    return [HandObservation(items, Handedness.RIGHT)]


class SignRecognizer:
    """Hybrid sign recognizer facade.

    Usage::

        recognizer = SignRecognizer(NeuralClassifier.load("net.json"))
        result = recognizer.recognize(hands)
        print(result.to_json())
    """

    def __init__(
        self,
        neural_classifier: Optional[NeuralClassifier] = None,
        feature_extractor=None,
        detection_threshold: float = DEFAULT_DETECTION_THRESHOLD,
        recognition_threshold: float = DEFAULT_RECOGNITION_THRESHOLD,
        rule_classifier: Optional[RuleClassifier] = None,
        template_matcher: Optional[TemplateMatcher] = None,
    ):
        self._hybrid = HybridClassifier(
            rule_classifier=rule_classifier or RuleClassifier(),
            neural_classifier=neural_classifier,
            feature_extractor=feature_extractor or create_feature_extractor("two_hand"),
        )
        self._gate = ThresholdGate(detection_threshold, recognition_threshold)
        self._templates = template_matcher or TemplateMatcher()

        logger.info(
            "SignRecognizer %s initialized (detection=%.2f, recognition=%.2f)",
            self.version, self._gate.detection_threshold, self._gate.recognition_threshold,
        )

    @classmethod
    def from_config(cls, config) -> 'SignRecognizer':
        """Build from a Config instance or a plain nested dict."""
        get = config.get if hasattr(config, "get_section") else _dict_getter(config)

        extractor = create_feature_extractor(get("features.encoding", "two_hand"))

        neural = None
        weights_path = get("neural.weights_path")
        if weights_path:
            neural = NeuralClassifier.load(weights_path)
            labels = get("neural.labels")
            network_labels = [label.gesture for label in neural.labels]
            if labels and network_labels != [str(name).lower() for name in labels]:
                logger.warning("Network label order %s differs from configured %s",
                               network_labels, labels)

        return cls(
            neural_classifier=neural,
            feature_extractor=extractor,
            detection_threshold=get("recognition.detection_threshold",
                                    DEFAULT_DETECTION_THRESHOLD),
            recognition_threshold=get("recognition.recognition_threshold",
                                      DEFAULT_RECOGNITION_THRESHOLD),
            template_matcher=TemplateMatcher(get("templates.max_distance", DEFAULT_MAX_DISTANCE)),
        )

    # ------------------------------------------------------------------
    # Configuration surface
    # ------------------------------------------------------------------

    @property
    def version(self) -> str:
        return sign_recognition.__version__

    @property
    def detection_threshold(self) -> float:
        return self._gate.detection_threshold

    @property
    def recognition_threshold(self) -> float:
        return self._gate.recognition_threshold

    def set_detection_threshold(self, threshold: float):
        self._gate.detection_threshold = threshold

    def set_recognition_threshold(self, threshold: float):
        self._gate.recognition_threshold = threshold

    @property
    def neural_classifier(self) -> Optional[NeuralClassifier]:
        return self._hybrid.neural_classifier

    @property
    def rule_classifier(self) -> RuleClassifier:
        return self._hybrid.rule_classifier

    @property
    def template_matcher(self) -> TemplateMatcher:
        return self._templates

    def set_scaler(self, mean, scale):
        """Replace the network's standardization constants.

        Raises:
            ConfigurationError: if no network is loaded or lengths mismatch
        """
        neural = self._hybrid.neural_classifier
        if neural is None:
            raise ConfigurationError("No network loaded; cannot set a scaler")
        neural.set_scaler(mean, scale)

    # ------------------------------------------------------------------
    # Recognition
    # ------------------------------------------------------------------

    @log_timing
    def recognize(self, hands, detection_confidence: Optional[float] = None) -> RecognitionResult:
        """Recognize the gesture shown in one frame.

        Args:
            hands: HandObservation, list of them, dicts with a
                   ``landmarks`` key, or a bare 21-point landmark set
            detection_confidence: detector confidence; defaults to the
                                  primary hand's confidence

        Returns:
            Gated RecognitionResult
        """
        observations = _coerce_hands(hands)
        if not observations:
            return RecognitionResult.none(ResultSource.NONE)

        if detection_confidence is None:
            detection_confidence = observations[0].confidence
        detection_confidence = finite_confidence(detection_confidence)
        if detection_confidence is None:
            logger.debug("Detection confidence is not a finite number")
            return RecognitionResult.none(ResultSource.NONE)

        result = self._hybrid.classify(observations, self._gate.recognition_threshold)
        return self._gate.gate(result, detection_confidence)

    def recognize_flat(self, values) -> RecognitionResult:
        """Recognize a single hand given as 42 (x, y) or 63 (x, y, z) floats."""
        try:
            landmarks = LandmarkSet.from_flat(values)
        except (TypeError, ValueError) as e:
            logger.debug("Flat landmark buffer rejected: %s", e)
            return RecognitionResult.none(ResultSource.NONE)
        return self.recognize(HandObservation(landmarks))

    def recognize_json(self, values) -> str:
        """Flat-buffer recognition serialized as the output contract JSON."""
        return self.recognize_flat(values).to_json()

    def match_template(self, landmarks) -> RecognitionResult:
        """Nearest-template match. Not arbitrated and not gated."""
        return self._templates.match(landmarks)


def _dict_getter(data: dict):
    def get(key_path, default=None):
        value = data
        for key in key_path.split("."):
            if isinstance(value, Mapping) and key in value:
                value = value[key]
            else:
                return default
        return value
    return get
