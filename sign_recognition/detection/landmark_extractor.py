"""
21-point hand landmark normalization and finger-state geometry.

Provides the pose-invariant landmark representation fed to the feature
extractors, plus the per-finger extension tests the rule classifier
relies on.
"""

import logging
from typing import Dict

import numpy as np

from sign_recognition.core.types import (
    LandmarkSet, NormalizedLandmarkSet, as_landmark_array,
)

logger = logging.getLogger(__name__)

# MediaPipe hand landmark indices
WRIST = 0
THUMB_CMC = 1
THUMB_MCP = 2
THUMB_IP = 3
THUMB_TIP = 4
INDEX_MCP = 5
INDEX_PIP = 6
INDEX_DIP = 7
INDEX_TIP = 8
MIDDLE_MCP = 9
MIDDLE_PIP = 10
MIDDLE_DIP = 11
MIDDLE_TIP = 12
RING_MCP = 13
RING_PIP = 14
RING_DIP = 15
RING_TIP = 16
PINKY_MCP = 17
PINKY_PIP = 18
PINKY_DIP = 19
PINKY_TIP = 20

FINGER_NAMES = ("thumb", "index", "middle", "ring", "pinky")

# Non-thumb finger chains: (TIP, PIP, MCP)
FINGER_JOINTS = {
    "index":  (INDEX_TIP, INDEX_PIP, INDEX_MCP),
    "middle": (MIDDLE_TIP, MIDDLE_PIP, MIDDLE_MCP),
    "ring":   (RING_TIP, RING_PIP, RING_MCP),
    "pinky":  (PINKY_TIP, PINKY_PIP, PINKY_MCP),
}

# Wrist-to-middle-MCP is the reference bone for scale
REFERENCE_INDEX = MIDDLE_MCP
DEFAULT_EPSILON = 1e-6


class LandmarkNormalizer:
    """Removes hand translation and size from a landmark set.

    Points are shifted so the wrist is the origin, then divided by the
    wrist-to-middle-MCP distance. A reference distance at or below
    ``epsilon`` leaves the points unscaled. Rotation is not removed.
    """

    def __init__(self, epsilon: float = DEFAULT_EPSILON):
        self._epsilon = epsilon

    def normalize(self, landmarks) -> NormalizedLandmarkSet:
        """Convert a 21-point hand into its normalized representation.

        Args:
            landmarks: LandmarkSet or any (21, 3)-shaped landmark container

        Raises:
            ValueError: if the input is not a 21-point hand
        """
        if isinstance(landmarks, LandmarkSet):
            points = landmarks.array
        else:
            points = as_landmark_array(landmarks)
            if points is None:
                raise ValueError("normalize() needs exactly 21 landmarks")

        centred = points - points[WRIST]
        ref_dist = float(np.linalg.norm(centred[REFERENCE_INDEX]))
        if ref_dist > self._epsilon:
            scale = ref_dist
        else:
            logger.debug("Degenerate reference distance %.2e, leaving unscaled", ref_dist)
            scale = 1.0

        return NormalizedLandmarkSet(centred / scale, scale)


_default_normalizer = LandmarkNormalizer()


def normalize(landmarks) -> NormalizedLandmarkSet:
    """Normalize with the default epsilon."""
    return _default_normalizer.normalize(landmarks)


# =========================================================================
# Finger State Detection
# =========================================================================

def is_finger_extended(landmarks: np.ndarray, tip: int, pip: int, mcp: int) -> bool:
    """A finger is extended when tip, PIP and MCP rise strictly upward.

    Image y grows downward, so "up" means a smaller y.
    """
    return bool(landmarks[tip][1] < landmarks[pip][1] < landmarks[mcp][1])


def is_thumb_extended(landmarks: np.ndarray) -> bool:
    """Lateral test: thumb tip farther from the wrist in x than the IP joint.

    Assumes the palm faces the camera; not mirrored per hand.
    """
    wrist_x = landmarks[WRIST][0]
    return bool(abs(landmarks[THUMB_TIP][0] - wrist_x) > abs(landmarks[THUMB_IP][0] - wrist_x))


def get_finger_states(landmarks: np.ndarray) -> Dict[str, bool]:
    """Extension flags for all five fingers, thumb first.

    Works on raw or normalized coordinates alike; normalization keeps
    the y ordering and the lateral thumb distances' ordering.
    """
    states = {"thumb": is_thumb_extended(landmarks)}
    for finger, (tip, pip, mcp) in FINGER_JOINTS.items():
        states[finger] = is_finger_extended(landmarks, tip, pip, mcp)
    return states
