"""
Shared domain types for the sign recognition engine.

Centralizes enums, landmark containers and the recognition result so that
every stage (normalizer, extractors, classifiers, gate) speaks the same
vocabulary without circular imports.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NamedTuple, Optional, Sequence

import numpy as np

NUM_LANDMARKS = 21
HAND_FEATURE_DIM = NUM_LANDMARKS * 3          # 63
TWO_HAND_FEATURE_DIM = 2 * HAND_FEATURE_DIM   # 126


# =============================================================================
# Gesture Labels
# =============================================================================

class GestureLabel(IntEnum):
    """Closed set of sign gestures. The value is the stable public id."""
    NONE = 0
    HELLO = 1
    THANKS = 2
    YES = 3
    V = 4
    OK = 5
    LOVE = 6
    NICE = 7

    @property
    def gesture(self) -> str:
        """Name used in the serialized output contract."""
        return self.name.lower()

    @classmethod
    def from_string(cls, name: str) -> 'GestureLabel':
        """Look up a label by its (case-insensitive) gesture name.

        Raises:
            ValueError: for names outside the label set
        """
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            raise ValueError("Unknown gesture label: %r" % (name,)) from None


class ResultSource(Enum):
    """Which classifier produced a result."""
    RULE = "rule"
    NEURAL = "neural"
    TEMPLATE = "template"
    NONE = "none"


class Handedness(Enum):
    """Handedness label attached by the external landmark detector."""
    LEFT = "Left"
    RIGHT = "Right"
    UNKNOWN = "Unknown"

    @classmethod
    def from_label(cls, label) -> 'Handedness':
        if isinstance(label, Handedness):
            return label
        text = str(label or "").strip().lower()
        if text == "left":
            return cls.LEFT
        if text == "right":
            return cls.RIGHT
        return cls.UNKNOWN


# =============================================================================
# Landmarks
# =============================================================================

class LandmarkPoint(NamedTuple):
    """A single landmark in image-normalized units."""
    x: float
    y: float
    z: float = 0.0


def _point_to_xyz(point) -> tuple:
    if isinstance(point, Mapping):
        return (point["x"], point["y"], point.get("z", 0.0) or 0.0)
    if hasattr(point, "x") and hasattr(point, "y"):
        return (point.x, point.y, getattr(point, "z", 0.0) or 0.0)
    values = tuple(point)
    if len(values) == 2:
        return (values[0], values[1], 0.0)
    if len(values) == 3:
        return values
    raise ValueError("Landmark must have 2 or 3 coordinates, got %d" % len(values))


def _coerce_points(points) -> np.ndarray:
    """Convert any supported landmark container to an (N, 3) float array."""
    if isinstance(points, (LandmarkSet, NormalizedLandmarkSet)):
        return points.array
    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim == 2 and arr.shape[1] == 2:
            arr = np.hstack([arr, np.zeros((arr.shape[0], 1))])
        if arr.ndim != 2 or arr.shape[1] != 3:
            raise ValueError("Expected (N, 3) landmarks, got %s" % str(arr.shape))
        return arr
    try:
        rows = [_point_to_xyz(p) for p in points]
        arr = np.array(rows, dtype=np.float64).reshape(len(rows), 3)
    except (TypeError, KeyError) as e:
        raise ValueError("Unsupported landmark container: %s" % e) from e
    return arr


def as_landmark_array(points) -> Optional[np.ndarray]:
    """Return a (21, 3) array for well-formed input, ``None`` otherwise.

    Used on the per-frame path so malformed input fails closed instead of
    raising.
    """
    if points is None:
        return None
    try:
        arr = _coerce_points(points)
    except ValueError:
        return None
    if arr.shape != (NUM_LANDMARKS, 3):
        return None
    if not np.all(np.isfinite(arr)):
        return None
    return arr


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, dtype=np.float64, copy=True)
    arr.flags.writeable = False
    return arr


class LandmarkSet:
    """Exactly 21 landmarks of one hand, wrist first.

    Indices 1-4/5-8/9-12/13-16/17-20 are thumb/index/middle/ring/pinky
    joints, proximal to distal. Immutable once built.
    """

    __slots__ = ("_array",)

    def __init__(self, points):
        arr = _coerce_points(points)
        if arr.shape != (NUM_LANDMARKS, 3):
            raise ValueError(
                "A landmark set needs exactly %d points, got %d"
                % (NUM_LANDMARKS, arr.shape[0])
            )
        self._array = _frozen(arr)

    @classmethod
    def from_flat(cls, values: Sequence[float]) -> 'LandmarkSet':
        """Build from 42 (x, y) or 63 (x, y, z) interleaved floats."""
        flat = np.asarray(values, dtype=np.float64).ravel()
        if flat.size == NUM_LANDMARKS * 2:
            return cls(flat.reshape(NUM_LANDMARKS, 2))
        if flat.size == NUM_LANDMARKS * 3:
            return cls(flat.reshape(NUM_LANDMARKS, 3))
        raise ValueError("Expected 42 or 63 values, got %d" % flat.size)

    @property
    def array(self) -> np.ndarray:
        """Read-only (21, 3) view."""
        return self._array

    @property
    def points(self) -> tuple:
        return tuple(LandmarkPoint(*map(float, row)) for row in self._array)

    def __len__(self):
        return NUM_LANDMARKS

    def __getitem__(self, index) -> LandmarkPoint:
        return LandmarkPoint(*map(float, self._array[index]))

    def __iter__(self):
        return iter(self.points)

    def __eq__(self, other):
        if not isinstance(other, LandmarkSet):
            return NotImplemented
        return bool(np.array_equal(self._array, other._array))

    def __repr__(self):
        wrist = self[0]
        return "LandmarkSet(wrist=(%.3f, %.3f, %.3f))" % wrist


class NormalizedLandmarkSet:
    """Wrist-relative landmarks divided by the wrist-to-middle-MCP length."""

    __slots__ = ("_array", "scale")

    def __init__(self, array: np.ndarray, scale: float):
        array = np.asarray(array, dtype=np.float64)
        if array.shape != (NUM_LANDMARKS, 3):
            raise ValueError("Expected (21, 3) landmarks, got %s" % str(array.shape))
        self._array = _frozen(array)
        self.scale = float(scale)

    @property
    def array(self) -> np.ndarray:
        return self._array

    def flatten(self) -> np.ndarray:
        """Landmark-ordered (x, y, z) run of length 63."""
        return self._array.reshape(-1).copy()

    def __len__(self):
        return NUM_LANDMARKS

    def __getitem__(self, index) -> LandmarkPoint:
        return LandmarkPoint(*map(float, self._array[index]))

    def __repr__(self):
        return "NormalizedLandmarkSet(scale=%.4f)" % self.scale


def finite_confidence(value) -> Optional[float]:
    """``value`` as a float, or ``None`` if it is not a finite number."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if np.isfinite(value) else None


@dataclass(frozen=True)
class HandObservation:
    """One detected hand as delivered by the external landmark detector.

    ``confidence`` is kept as supplied; the recognizer checks it per frame.
    """
    landmarks: object
    handedness: Handedness = Handedness.RIGHT
    confidence: float = 1.0

    @classmethod
    def from_dict(cls, data: Mapping) -> 'HandObservation':
        return cls(
            landmarks=data.get("landmarks", []),
            handedness=Handedness.from_label(data.get("handedness", "Right")),
            confidence=data.get("confidence", 1.0),
        )


# =============================================================================
# Recognition Result
# =============================================================================

@dataclass(frozen=True)
class RecognitionResult:
    """Outcome of one classification call. Never mutated after creation."""
    label: GestureLabel
    confidence: float
    source: ResultSource

    @property
    def id(self) -> int:
        return int(self.label.value)

    @property
    def gesture(self) -> str:
        return self.label.gesture

    @property
    def is_detected(self) -> bool:
        return self.label is not GestureLabel.NONE

    @staticmethod
    def none(source: ResultSource = ResultSource.NONE) -> 'RecognitionResult':
        """The canonical "no gesture" result."""
        return RecognitionResult(GestureLabel.NONE, 0.0, source)

    def to_dict(self) -> dict:
        """Stable output contract: gesture, confidence and id only."""
        return {
            "gesture": self.gesture,
            "confidence": float(self.confidence),
            "id": self.id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def __repr__(self):
        return "RecognitionResult(%s, id=%d, conf=%.2f, source=%s)" % (
            self.gesture, self.id, self.confidence, self.source.value)
