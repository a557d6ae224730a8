"""
Nearest-template gesture matching on 2-D landmark layouts.

Compares a hand against stored 21-point (x, y) templates by the mean
per-point distance. The closest template is accepted when that distance
is under ``max_distance``; confidence falls linearly from 1 at a perfect
match to 0 at the cut-off.
"""

import logging
from typing import List, Tuple

import numpy as np

from sign_recognition.core.errors import ConfigurationError
from sign_recognition.core.types import (
    NUM_LANDMARKS, GestureLabel, RecognitionResult, ResultSource, as_landmark_array,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE = 0.3

# Built-in layouts in image-normalized coordinates, wrist first
_HELLO_TEMPLATE = [
    (0.5, 0.3), (0.4, 0.25), (0.35, 0.2), (0.3, 0.15), (0.25, 0.1),
    (0.45, 0.1), (0.4, 0.05), (0.35, 0.02), (0.3, 0.0),
    (0.55, 0.1), (0.5, 0.05), (0.45, 0.02), (0.4, 0.0),
    (0.65, 0.1), (0.6, 0.05), (0.55, 0.02), (0.5, 0.0),
    (0.75, 0.15), (0.7, 0.1), (0.65, 0.07), (0.6, 0.05),
]

_THANKS_TEMPLATE = [
    (0.5, 0.4), (0.45, 0.35), (0.4, 0.3), (0.38, 0.25), (0.35, 0.2),
    (0.55, 0.3), (0.58, 0.25), (0.6, 0.23), (0.62, 0.2),
    (0.6, 0.3), (0.63, 0.25), (0.65, 0.23), (0.67, 0.2),
    (0.65, 0.32), (0.67, 0.28), (0.69, 0.25), (0.7, 0.22),
    (0.7, 0.35), (0.72, 0.32), (0.73, 0.29), (0.75, 0.26),
]

_YES_TEMPLATE = [
    (0.5, 0.4), (0.4, 0.35), (0.35, 0.32), (0.32, 0.28), (0.3, 0.25),
    (0.55, 0.3), (0.5, 0.2), (0.45, 0.1), (0.4, 0.0),
    (0.6, 0.32), (0.63, 0.28), (0.65, 0.26), (0.67, 0.24),
    (0.65, 0.35), (0.68, 0.32), (0.7, 0.29), (0.72, 0.26),
    (0.7, 0.38), (0.73, 0.35), (0.75, 0.32), (0.77, 0.29),
]

DEFAULT_TEMPLATES = (
    (GestureLabel.HELLO, _HELLO_TEMPLATE),
    (GestureLabel.THANKS, _THANKS_TEMPLATE),
    (GestureLabel.YES, _YES_TEMPLATE),
)


class TemplateMatcher:
    """Matches hands against a list of labelled 2-D templates."""

    def __init__(self, max_distance: float = DEFAULT_MAX_DISTANCE, templates=DEFAULT_TEMPLATES):
        if max_distance <= 0:
            raise ConfigurationError("max_distance must be positive, got %r" % max_distance)
        self._max_distance = float(max_distance)
        self._templates: List[Tuple[GestureLabel, np.ndarray]] = []
        for label, points in templates:
            self.add_template(label, points)

    @property
    def templates(self) -> tuple:
        return tuple(label for label, _ in self._templates)

    def add_template(self, label: GestureLabel, points):
        """Register a custom 21-point (x, y) template.

        Raises:
            ConfigurationError: if the template is not 21 points
        """
        arr = np.array(points, dtype=np.float64)
        if arr.ndim == 2 and arr.shape[1] == 3:
            arr = arr[:, :2]
        if arr.shape != (NUM_LANDMARKS, 2):
            raise ConfigurationError(
                "Template for %s must be 21 (x, y) points, got shape %s"
                % (GestureLabel(label).gesture, arr.shape)
            )
        arr.flags.writeable = False
        self._templates.append((GestureLabel(label), arr))
        logger.debug("Registered template %s", GestureLabel(label).gesture)

    @staticmethod
    def mean_distance(a: np.ndarray, b: np.ndarray) -> float:
        """Average 2-D Euclidean distance between corresponding points."""
        return float(np.mean(np.linalg.norm(a - b, axis=1)))

    def match(self, landmarks) -> RecognitionResult:
        """Return the closest template within range, else "no gesture"."""
        points = as_landmark_array(landmarks)
        if points is None or not self._templates:
            return RecognitionResult.none(ResultSource.TEMPLATE)

        xy = points[:, :2]
        distances = [self.mean_distance(xy, tpl) for _, tpl in self._templates]
        best = int(np.argmin(distances))
        best_distance = distances[best]

        if best_distance >= self._max_distance:
            logger.debug("Closest template at %.3f, outside %.3f", best_distance, self._max_distance)
            return RecognitionResult.none(ResultSource.TEMPLATE)

        label = self._templates[best][0]
        confidence = 1.0 - best_distance / self._max_distance
        return RecognitionResult(label, confidence, ResultSource.TEMPLATE)
