"""
Shared fixtures: synthetic hands and tiny fixed-weight networks.
"""

import numpy as np
import pytest

from sign_recognition.models.gesture_net import NeuralClassifier, WeightLayer
from sign_recognition.utils.config import Config

# Horizontal offset of each non-thumb finger from the wrist
_FINGER_DX = {"index": -0.06, "middle": 0.0, "ring": 0.06, "pinky": 0.12}


def make_hand(extended=(), wrist=(0.5, 0.8), scale=1.0) -> np.ndarray:
    """
    Create a (21, 3) hand with the given fingers extended.

    Image y grows downward, so extended fingers have tips above the PIP
    and MCP joints. The thumb is extended by moving its tip away from the
    wrist in x. ``scale`` and ``wrist`` stretch and move the whole hand
    without changing which fingers read as extended.

    Args:
        extended: names from thumb/index/middle/ring/pinky
    """
    extended = set(extended)
    offsets = [(0.0, 0.0, 0.0)]

    # Thumb: CMC, MCP, IP, TIP
    if "thumb" in extended:
        thumb = [(-0.05, -0.05), (-0.08, -0.08), (-0.10, -0.10), (-0.17, -0.12)]
    else:
        thumb = [(-0.05, -0.05), (-0.07, -0.08), (-0.08, -0.10), (-0.04, -0.12)]
    offsets += [(dx, dy, -0.01) for dx, dy in thumb]

    # Other fingers: MCP, PIP, DIP, TIP
    for finger, dx in _FINGER_DX.items():
        up = finger in extended
        for dy in (-0.20, -0.30, -0.38 if up else -0.22, -0.45 if up else -0.15):
            offsets.append((dx, dy, -0.02))

    points = np.array(offsets, dtype=np.float64) * scale
    points[:, 0] += wrist[0]
    points[:, 1] += wrist[1]
    return points


def bias_network(bias, input_dim=126) -> NeuralClassifier:
    """Single-layer network whose logits are ``bias`` for every input."""
    bias = np.asarray(bias, dtype=np.float64)
    return NeuralClassifier([WeightLayer(np.zeros((bias.size, input_dim)), bias)])


@pytest.fixture
def index_hand():
    return make_hand({"index"})


@pytest.fixture
def open_hand():
    return make_hand({"thumb", "index", "middle", "ring", "pinky"})


@pytest.fixture
def confident_network():
    """Always answers 'love' with confidence e^3 / (e^3 + 3) ~= 0.870."""
    return bias_network([0.0, 3.0, 0.0, 0.0])


@pytest.fixture
def unsure_network():
    """Always answers 'hello' with confidence e / (e + 3) ~= 0.475."""
    return bias_network([1.0, 0.0, 0.0, 0.0])


@pytest.fixture
def fresh_config():
    """A Config singleton holding only the bundled defaults."""
    Config.reset()
    config = Config()
    yield config
    Config.reset()
