"""
Tests for rule/network arbitration
==================================
"""

import logging

import numpy as np
import pytest

from sign_recognition.core.types import (
    GestureLabel, HandObservation, RecognitionResult, ResultSource,
)
from sign_recognition.models.feature_extractor import GestureFeatureExtractor
from sign_recognition.models.hybrid_classifier import HybridClassifier, arbitrate

from conftest import bias_network, make_hand


def rule(label, confidence):
    return RecognitionResult(label, confidence, ResultSource.RULE)


def neural(label, confidence):
    return RecognitionResult(label, confidence, ResultSource.NEURAL)


class TestArbitrate:

    def test_confident_network_wins(self):
        result = arbitrate(rule(GestureLabel.YES, 0.85), neural(GestureLabel.LOVE, 0.9), 0.7)
        assert result.label is GestureLabel.LOVE

    def test_network_at_threshold_wins(self):
        result = arbitrate(rule(GestureLabel.YES, 0.85), neural(GestureLabel.LOVE, 0.7), 0.7)
        assert result.label is GestureLabel.LOVE

    def test_stronger_rule_wins(self):
        result = arbitrate(rule(GestureLabel.YES, 0.85), neural(GestureLabel.LOVE, 0.6), 0.7)
        assert result.label is GestureLabel.YES
        assert result.source is ResultSource.RULE

    def test_equal_confidence_goes_to_network(self):
        result = arbitrate(rule(GestureLabel.V, 0.6), neural(GestureLabel.NICE, 0.6), 0.7)
        assert result.source is ResultSource.NEURAL

    def test_weak_network_beats_missing_rule(self):
        result = arbitrate(RecognitionResult.none(ResultSource.RULE),
                           neural(GestureLabel.HELLO, 0.4), 0.7)
        assert result.label is GestureLabel.HELLO


class TestHybridClassifier:

    def test_rules_only(self, index_hand):
        result = HybridClassifier().classify([HandObservation(index_hand)], 0.7)
        assert result.label is GestureLabel.YES
        assert result.source is ResultSource.RULE

    def test_confident_network_overrides_rule(self, index_hand, confident_network):
        hybrid = HybridClassifier(neural_classifier=confident_network)
        result = hybrid.classify([HandObservation(index_hand)], 0.7)
        assert result.label is GestureLabel.LOVE
        assert result.source is ResultSource.NEURAL

    def test_rule_beats_unsure_network(self, index_hand, unsure_network):
        hybrid = HybridClassifier(neural_classifier=unsure_network)
        result = hybrid.classify([HandObservation(index_hand)], 0.7)
        assert result.label is GestureLabel.YES

    def test_unsure_network_kept_when_no_rule(self, unsure_network):
        hybrid = HybridClassifier(neural_classifier=unsure_network)
        result = hybrid.classify([HandObservation(make_hand({"thumb"}))], 0.7)
        assert result.label is GestureLabel.HELLO
        assert result.confidence == pytest.approx(np.e / (np.e + 3))

    def test_rule_uses_primary_hand(self):
        hands = [HandObservation(make_hand({"index"}), "Left"),
                 HandObservation(make_hand(), "Right")]
        assert HybridClassifier().classify(hands, 0.7).label is GestureLabel.YES

    def test_empty_frame(self):
        result = HybridClassifier().classify([], 0.7)
        assert result.label is GestureLabel.NONE
        assert result.source is ResultSource.NONE

    def test_malformed_hand_fails_closed(self, confident_network):
        hybrid = HybridClassifier(neural_classifier=confident_network)
        result = hybrid.classify([HandObservation(make_hand()[:7])], 0.7)
        assert result.label is GestureLabel.NONE

    def test_width_mismatch_warns_and_fails_closed(self, index_hand, caplog):
        net = bias_network([0.0, 3.0, 0.0, 0.0], input_dim=63)
        with caplog.at_level(logging.WARNING):
            hybrid = HybridClassifier(neural_classifier=net,
                                      feature_extractor=GestureFeatureExtractor())
        assert "does not match" in caplog.text
        # Neural side returns "no gesture", so the rule answer stands
        assert hybrid.classify([HandObservation(index_hand)], 0.7).label is GestureLabel.YES
