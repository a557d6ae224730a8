"""
Feature extraction: normalized hand landmarks -> network input vector.

Feature layout (two-hand encoding, 126 dimensions):
    [0:63]    Left hand, 21 normalized (x, y, z) triples in landmark order
    [63:126]  Right hand, same layout

A hand that was not observed contributes 63 zeros in its slot. Slots are
assigned by the detector's handedness label, never by list position, so
the vector always lines up with the layout the network was trained on.

Alternative encodings:
    single_hand  63 dims, first observed hand only
    pairwise     210 dims, all i<j landmark distances of the first hand
"""

import logging
from typing import Sequence

import numpy as np

from sign_recognition.core.errors import ConfigurationError
from sign_recognition.core.types import (
    HAND_FEATURE_DIM, NUM_LANDMARKS, TWO_HAND_FEATURE_DIM,
    Handedness, HandObservation, NormalizedLandmarkSet,
)
from sign_recognition.detection.landmark_extractor import LandmarkNormalizer

logger = logging.getLogger(__name__)

PAIRWISE_FEATURE_DIM = NUM_LANDMARKS * (NUM_LANDMARKS - 1) // 2   # 210

_SLOTS = {Handedness.LEFT: 0, Handedness.RIGHT: 1}


def _as_observations(hands) -> list:
    if hands is None:
        return []
    if isinstance(hands, HandObservation):
        return [hands]
    return list(hands)


class GestureFeatureExtractor:
    """Concatenates normalized landmark coordinates into a fixed vector.

    With ``two_hands=True`` (the default) the vector is 126 wide with a
    left and a right slot; otherwise it is the 63-wide run of the first
    observed hand.
    """

    def __init__(self, two_hands: bool = True, normalizer: LandmarkNormalizer = None):
        self._two_hands = two_hands
        self._normalizer = normalizer or LandmarkNormalizer()
        self._feature_dim = TWO_HAND_FEATURE_DIM if two_hands else HAND_FEATURE_DIM

    @property
    def feature_dim(self) -> int:
        return self._feature_dim

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract_hand(self, landmarks) -> np.ndarray:
        """Normalize one hand and flatten it to 63 values.

        Args:
            landmarks: NormalizedLandmarkSet, or raw landmarks which are
                       normalized first.

        Raises:
            ValueError: if the hand does not have 21 landmarks
        """
        if not isinstance(landmarks, NormalizedLandmarkSet):
            landmarks = self._normalizer.normalize(landmarks)
        return landmarks.flatten()

    def extract(self, hands: Sequence[HandObservation]) -> np.ndarray:
        """Build the feature vector for one frame.

        Args:
            hands: HandObservation or sequence of them (zero, one or two)

        Returns:
            np.ndarray of shape (feature_dim,), dtype float64
        """
        observations = _as_observations(hands)
        features = np.zeros(self._feature_dim, dtype=np.float64)

        if not self._two_hands:
            if observations:
                features[:] = self.extract_hand(observations[0].landmarks)
            return features

        # Later hands with the same label overwrite earlier ones
        for hand in observations:
            slot = _SLOTS.get(Handedness.from_label(hand.handedness))
            if slot is None:
                logger.debug("Ignoring hand with handedness %r", hand.handedness)
                continue
            start = slot * HAND_FEATURE_DIM
            features[start:start + HAND_FEATURE_DIM] = self.extract_hand(hand.landmarks)

        return features

    def extract_batch(self, frames) -> np.ndarray:
        """Vectorised extraction for a batch of frames.

        Args:
            frames: sequence of per-frame hand lists

        Returns:
            np.ndarray of shape (N, feature_dim)
        """
        out = np.zeros((len(frames), self._feature_dim), dtype=np.float64)
        for i, hands in enumerate(frames):
            out[i] = self.extract(hands)
        return out


class PairwiseDistanceExtractor:
    """All 210 pairwise Euclidean distances between normalized landmarks.

    Distances are invariant to in-plane rotation, unlike the raw
    coordinate encoding. Only the first observed hand is used.
    """

    def __init__(self, normalizer: LandmarkNormalizer = None):
        self._normalizer = normalizer or LandmarkNormalizer()
        self._rows, self._cols = np.triu_indices(NUM_LANDMARKS, k=1)

    @property
    def feature_dim(self) -> int:
        return PAIRWISE_FEATURE_DIM

    def extract_hand(self, landmarks) -> np.ndarray:
        if not isinstance(landmarks, NormalizedLandmarkSet):
            landmarks = self._normalizer.normalize(landmarks)
        pts = landmarks.array
        diffs = pts[self._rows] - pts[self._cols]
        return np.linalg.norm(diffs, axis=1)

    def extract(self, hands: Sequence[HandObservation]) -> np.ndarray:
        observations = _as_observations(hands)
        if not observations:
            return np.zeros(PAIRWISE_FEATURE_DIM, dtype=np.float64)
        return self.extract_hand(observations[0].landmarks)

    def extract_batch(self, frames) -> np.ndarray:
        out = np.zeros((len(frames), PAIRWISE_FEATURE_DIM), dtype=np.float64)
        for i, hands in enumerate(frames):
            out[i] = self.extract(hands)
        return out


FEATURE_ENCODINGS = ("two_hand", "single_hand", "pairwise")


def create_feature_extractor(encoding: str = "two_hand"):
    """Build the extractor for a named encoding.

    Raises:
        ConfigurationError: for an unknown encoding name
    """
    if encoding == "two_hand":
        return GestureFeatureExtractor(two_hands=True)
    if encoding == "single_hand":
        return GestureFeatureExtractor(two_hands=False)
    if encoding == "pairwise":
        return PairwiseDistanceExtractor()
    raise ConfigurationError(
        "Unknown feature encoding %r (expected one of %s)"
        % (encoding, ", ".join(FEATURE_ENCODINGS))
    )
