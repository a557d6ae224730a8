"""
Tests for the end-to-end recognizer
===================================
"""

import json

import numpy as np
import pytest

import sign_recognition
from sign_recognition import (
    ConfigurationError, GestureLabel, HandObservation, LandmarkSet, ResultSource, SignRecognizer,
)
from sign_recognition.recognition.template_matcher import DEFAULT_TEMPLATES

from conftest import make_hand


@pytest.fixture
def recognizer():
    """Rules-only recognizer with default thresholds."""
    return SignRecognizer()


class TestRulesOnly:

    def test_index_finger_is_yes(self, recognizer, index_hand):
        result = recognizer.recognize(HandObservation(index_hand, confidence=0.9))
        assert result.to_dict() == {"gesture": "yes", "confidence": 0.85, "id": 3}

    def test_open_palm_is_hello(self, recognizer, open_hand):
        result = recognizer.recognize([HandObservation(open_hand)])
        assert result.label is GestureLabel.HELLO
        assert result.confidence == 0.80

    def test_bare_landmarks(self, recognizer, index_hand):
        assert recognizer.recognize(index_hand).label is GestureLabel.YES
        assert recognizer.recognize(LandmarkSet(index_hand)).label is GestureLabel.YES
        assert recognizer.recognize(index_hand.tolist()).label is GestureLabel.YES

    def test_hand_dicts(self, recognizer, index_hand):
        result = recognizer.recognize([
            {"landmarks": index_hand.tolist(), "handedness": "Right", "confidence": 0.95},
        ])
        assert result.label is GestureLabel.YES

    def test_v_passes_at_threshold(self, recognizer):
        result = recognizer.recognize(make_hand({"index", "middle"}))
        assert result.label is GestureLabel.V

    @pytest.mark.parametrize("hands", [None, [], 42])
    def test_no_hands(self, recognizer, hands):
        result = recognizer.recognize(hands)
        assert result.label is GestureLabel.NONE
        assert result.source is ResultSource.NONE

    def test_unmatched_pose(self, recognizer):
        assert recognizer.recognize(make_hand({"thumb"})).label is GestureLabel.NONE

    def test_wrong_landmark_count(self, recognizer):
        result = recognizer.recognize(make_hand({"index"})[:20])
        assert result.label is GestureLabel.NONE
        assert result.confidence == 0.0


class TestGating:

    def test_low_detection_confidence(self, recognizer, index_hand):
        assert recognizer.recognize(HandObservation(index_hand, confidence=0.3)).label \
            is GestureLabel.NONE

    def test_explicit_detection_confidence(self, recognizer, index_hand):
        hands = [HandObservation(index_hand, confidence=0.3)]
        assert recognizer.recognize(hands, detection_confidence=0.9).label is GestureLabel.YES

    @pytest.mark.parametrize("confidence", [None, "high", float("nan"), float("inf")])
    def test_unusable_detection_confidence(self, recognizer, index_hand, confidence):
        result = recognizer.recognize([
            {"landmarks": index_hand.tolist(), "confidence": confidence},
        ])
        assert result.label is GestureLabel.NONE
        assert result.source is ResultSource.NONE

    def test_unusable_explicit_detection_confidence(self, recognizer, index_hand):
        assert recognizer.recognize(HandObservation(index_hand, confidence=None)).label \
            is GestureLabel.NONE
        assert recognizer.recognize(index_hand, detection_confidence="0.9x").label \
            is GestureLabel.NONE

    def test_numeric_string_detection_confidence(self, recognizer, index_hand):
        result = recognizer.recognize([{"landmarks": index_hand.tolist(), "confidence": "0.9"}])
        assert result.label is GestureLabel.YES

    def test_non_finite_landmarks(self, recognizer):
        result = recognizer.recognize(np.full((21, 3), np.nan))
        assert result.label is GestureLabel.NONE
        assert result.confidence == 0.0

    def test_raised_recognition_threshold(self, recognizer):
        recognizer.set_recognition_threshold(0.8)
        assert recognizer.recognize(make_hand({"index", "middle"})).label is GestureLabel.NONE
        assert recognizer.recognize(make_hand({"index"})).label is GestureLabel.YES

    def test_raised_detection_threshold(self, recognizer, index_hand):
        recognizer.set_detection_threshold(0.95)
        assert recognizer.recognize(HandObservation(index_hand, confidence=0.9)).label \
            is GestureLabel.NONE

    def test_invalid_threshold_keeps_previous(self, recognizer):
        with pytest.raises(ConfigurationError):
            recognizer.set_recognition_threshold(1.5)
        assert recognizer.recognition_threshold == 0.7

    def test_invalid_threshold_at_construction(self):
        with pytest.raises(ConfigurationError):
            SignRecognizer(detection_threshold=-1.0)


class TestWithNetwork:

    def test_confident_network(self, confident_network, index_hand):
        result = SignRecognizer(neural_classifier=confident_network).recognize(index_hand)
        assert result.label is GestureLabel.LOVE
        assert result.source is ResultSource.NEURAL

    def test_unsure_network_below_threshold_is_gated(self, unsure_network):
        result = SignRecognizer(neural_classifier=unsure_network).recognize(make_hand({"thumb"}))
        assert result.label is GestureLabel.NONE

    def test_unsure_network_passes_lower_threshold(self, unsure_network):
        recognizer = SignRecognizer(neural_classifier=unsure_network, recognition_threshold=0.4)
        assert recognizer.recognize(make_hand({"thumb"})).label is GestureLabel.HELLO

    def test_set_scaler(self, confident_network):
        recognizer = SignRecognizer(neural_classifier=confident_network)
        recognizer.set_scaler(np.full(126, 0.5), np.full(126, 2.0))
        np.testing.assert_array_equal(recognizer.neural_classifier.scaler.scale, np.full(126, 2.0))

    def test_set_scaler_without_network(self, recognizer):
        with pytest.raises(ConfigurationError):
            recognizer.set_scaler(np.zeros(126), np.ones(126))


class TestFlatInput:

    def test_63_values(self, recognizer, index_hand):
        assert recognizer.recognize_flat(index_hand.ravel().tolist()).label is GestureLabel.YES

    def test_42_values(self, recognizer, open_hand):
        assert recognizer.recognize_flat(open_hand[:, :2].ravel()).label is GestureLabel.HELLO

    def test_wrong_length(self, recognizer):
        assert recognizer.recognize_flat([0.1, 0.2, 0.3]).label is GestureLabel.NONE

    def test_json_output(self, recognizer, index_hand):
        payload = json.loads(recognizer.recognize_json(index_hand.ravel()))
        assert payload == {"gesture": "yes", "confidence": 0.85, "id": 3}

    def test_json_no_gesture(self, recognizer):
        payload = json.loads(recognizer.recognize_json([]))
        assert payload == {"gesture": "none", "confidence": 0.0, "id": 0}


class TestTemplatesAndInfo:

    def test_match_template_is_not_gated(self):
        recognizer = SignRecognizer(recognition_threshold=1.0)
        hello = dict(DEFAULT_TEMPLATES)[GestureLabel.HELLO]
        result = recognizer.match_template(hello)
        assert result.label is GestureLabel.HELLO
        assert result.source is ResultSource.TEMPLATE

    def test_version(self, recognizer):
        assert recognizer.version == sign_recognition.__version__


class TestFromConfig:

    def test_from_dict(self):
        recognizer = SignRecognizer.from_config({
            "recognition": {"detection_threshold": 0.6, "recognition_threshold": 0.8},
        })
        assert recognizer.detection_threshold == 0.6
        assert recognizer.recognition_threshold == 0.8
        assert recognizer.neural_classifier is None

    def test_from_config_defaults(self, fresh_config):
        recognizer = SignRecognizer.from_config(fresh_config)
        assert recognizer.detection_threshold == 0.5
        assert recognizer.recognition_threshold == 0.7

    def test_loads_weights(self, tmp_path):
        path = tmp_path / "net.json"
        path.write_text(json.dumps({
            "layers": [{"weight": np.zeros((4, 126)).tolist(), "bias": [0.0, 3.0, 0.0, 0.0]}],
        }))
        recognizer = SignRecognizer.from_config({"neural": {"weights_path": str(path)}})
        assert recognizer.recognize(make_hand({"index"})).label is GestureLabel.LOVE

    def test_missing_weights(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SignRecognizer.from_config({"neural": {"weights_path": str(tmp_path / "x.json")}})

    def test_unknown_encoding(self):
        with pytest.raises(ConfigurationError):
            SignRecognizer.from_config({"features": {"encoding": "angles"}})
