"""
GestureNet: fixed-weight MLP inference for gesture classification.

Architecture (canonical two-hand network):
    Input  : 126 features (from GestureFeatureExtractor), standardized
    FC1    : 128 units, ReLU
    FC2    : 64 units, ReLU
    Output : num_classes, linear (softmax applied for the confidence)

The number and width of hidden layers come from the supplied weight
tables; any chain of dense layers with matching shapes is accepted.
Weights are frozen at construction. There is no training path here.
"""

import json
import logging
import os
from typing import Optional, Sequence

import numpy as np

from sign_recognition.core.errors import ConfigurationError
from sign_recognition.core.types import GestureLabel, RecognitionResult, ResultSource

logger = logging.getLogger(__name__)

# Class index -> GestureLabel (must match training label order)
DEFAULT_CLASS_LABELS = (
    GestureLabel.HELLO,
    GestureLabel.LOVE,
    GestureLabel.NICE,
    GestureLabel.THANKS,
)


def _read_only(values, ndim: int, name: str) -> np.ndarray:
    try:
        arr = np.array(values, dtype=np.float64, copy=True)
    except (TypeError, ValueError) as e:
        raise ConfigurationError("%s is not numeric: %s" % (name, e)) from e
    if arr.ndim != ndim:
        raise ConfigurationError("%s must be %d-D, got shape %s" % (name, ndim, arr.shape))
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError("%s contains non-finite values" % name)
    arr.flags.writeable = False
    return arr


class WeightLayer:
    """Dense layer constants: weight (out x in) and bias (out,)."""

    __slots__ = ("weight", "bias")

    def __init__(self, weight, bias):
        self.weight = _read_only(weight, 2, "weight")
        self.bias = _read_only(bias, 1, "bias")
        if self.bias.shape[0] != self.weight.shape[0]:
            raise ConfigurationError(
                "Bias length %d does not match weight rows %d"
                % (self.bias.shape[0], self.weight.shape[0])
            )

    @property
    def input_dim(self) -> int:
        return self.weight.shape[1]

    @property
    def output_dim(self) -> int:
        return self.weight.shape[0]

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.weight @ x + self.bias

    def __repr__(self):
        return "WeightLayer(%d -> %d)" % (self.input_dim, self.output_dim)


class Scaler:
    """Per-feature standardization constants: (x - mean) / scale."""

    __slots__ = ("mean", "scale")

    def __init__(self, mean, scale):
        self.mean = _read_only(mean, 1, "scaler mean")
        self.scale = _read_only(scale, 1, "scaler scale")
        if self.mean.shape != self.scale.shape:
            raise ConfigurationError(
                "Scaler mean has %d entries but scale has %d"
                % (self.mean.shape[0], self.scale.shape[0])
            )
        zeros = np.flatnonzero(self.scale == 0.0)
        if zeros.size:
            raise ConfigurationError(
                "Scaler scale is zero at feature(s) %s" % zeros.tolist()
            )

    @classmethod
    def identity(cls, size: int) -> 'Scaler':
        return cls(np.zeros(size), np.ones(size))

    def __len__(self):
        return self.mean.shape[0]

    def transform(self, x: np.ndarray) -> np.ndarray:
        return (x - self.mean) / self.scale


def softmax(logits: np.ndarray) -> np.ndarray:
    """Numerically stable softmax over a 1-D logit vector."""
    shifted = logits - np.max(logits)
    exps = np.exp(shifted)
    return exps / np.sum(exps)


class NeuralClassifier:
    """Standardize-then-feed-forward classifier over fixed weight tables.

    Usage::

        net = NeuralClassifier(layers, Scaler(mean, scale))
        result = net.classify_by_network(features)

    Instances are read-only after construction apart from
    :meth:`set_scaler`, which swaps the whole scaler in one assignment,
    so a shared instance is safe to call from several threads.
    """

    def __init__(self, layers: Sequence[WeightLayer], scaler: Optional[Scaler] = None,
                 labels: Sequence[GestureLabel] = DEFAULT_CLASS_LABELS):
        layers = tuple(layers)
        if not layers:
            raise ConfigurationError("NeuralClassifier needs at least one layer")
        for k, (prev, nxt) in enumerate(zip(layers, layers[1:])):
            if prev.output_dim != nxt.input_dim:
                raise ConfigurationError(
                    "Layer %d outputs %d values but layer %d expects %d"
                    % (k, prev.output_dim, k + 1, nxt.input_dim)
                )

        labels = tuple(GestureLabel(label) for label in labels)
        if layers[-1].output_dim != len(labels):
            raise ConfigurationError(
                "Output layer has %d classes but the label table has %d"
                % (layers[-1].output_dim, len(labels))
            )

        self._layers = layers
        self._labels = labels
        self._input_dim = layers[0].input_dim
        if scaler is None:
            scaler = Scaler.identity(self._input_dim)
        self._check_scaler(scaler)
        self._scaler = scaler

        widths = [self._input_dim] + [layer.output_dim for layer in layers]
        logger.info("NeuralClassifier ready: %s", " -> ".join(map(str, widths)))

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def input_dim(self) -> int:
        return self._input_dim

    @property
    def num_classes(self) -> int:
        return len(self._labels)

    @property
    def labels(self) -> tuple:
        return self._labels

    @property
    def layers(self) -> tuple:
        return self._layers

    @property
    def scaler(self) -> Scaler:
        return self._scaler

    def _check_scaler(self, scaler: Scaler):
        if len(scaler) != self._input_dim:
            logger.warning("Rejected scaler of width %d (expected %d)",
                           len(scaler), self._input_dim)
            raise ConfigurationError(
                "Scaler has %d entries but the network expects %d features"
                % (len(scaler), self._input_dim)
            )

    def set_scaler(self, mean, scale):
        """Replace the standardization constants as a whole.

        Raises:
            ConfigurationError: on length mismatch or a zero scale entry;
                                the previous scaler stays in place.
        """
        scaler = Scaler(mean, scale)
        self._check_scaler(scaler)
        self._scaler = scaler
        logger.info("Scaler replaced (%d features)", len(scaler))

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def forward(self, features) -> np.ndarray:
        """Raw output logits for a feature vector of width ``input_dim``.

        Raises:
            ValueError: on a wrong-width input
        """
        x = np.asarray(features, dtype=np.float64)
        if x.shape != (self._input_dim,):
            raise ValueError("Expected %d features, got shape %s" % (self._input_dim, x.shape))

        h = self._scaler.transform(x)
        for layer in self._layers[:-1]:
            h = np.maximum(layer(h), 0.0)
        return self._layers[-1](h)

    def predict_proba(self, features) -> np.ndarray:
        """Softmax class probabilities, in label-table order."""
        return softmax(self.forward(features))

    def classify_by_network(self, features) -> RecognitionResult:
        """Classify one feature vector.

        Returns the canonical Neural "no gesture" result, without running
        inference, when the vector has the wrong width or is not finite.
        """
        try:
            x = np.asarray(features, dtype=np.float64)
        except (TypeError, ValueError):
            logger.debug("Feature vector is not numeric")
            return RecognitionResult.none(ResultSource.NEURAL)
        if x.shape != (self._input_dim,):
            logger.debug("Feature width %s != %d, skipping inference", x.shape, self._input_dim)
            return RecognitionResult.none(ResultSource.NEURAL)
        if not np.all(np.isfinite(x)):
            logger.debug("Non-finite features, skipping inference")
            return RecognitionResult.none(ResultSource.NEURAL)

        probs = self.predict_proba(x)
        class_idx = int(np.argmax(probs))   # first maximum wins ties
        return RecognitionResult(self._labels[class_idx], float(probs[class_idx]),
                                 ResultSource.NEURAL)

    # ------------------------------------------------------------------
    # Asset loading
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict) -> 'NeuralClassifier':
        """Build from a plain mapping, e.g. a parsed JSON asset.

        Expected keys::

            {"layers": [{"weight": [[...]], "bias": [...]}, ...],
             "scaler": {"mean": [...], "scale": [...]},      # optional
             "labels": ["hello", "love", "nice", "thanks"]}   # optional
        """
        try:
            layers = [WeightLayer(layer["weight"], layer["bias"]) for layer in data["layers"]]
        except (KeyError, TypeError) as e:
            raise ConfigurationError("Malformed layer table: %s" % e) from e

        scaler = None
        if data.get("scaler"):
            try:
                scaler = Scaler(data["scaler"]["mean"], data["scaler"]["scale"])
            except (KeyError, TypeError) as e:
                raise ConfigurationError("Malformed scaler: %s" % e) from e

        labels = DEFAULT_CLASS_LABELS
        if data.get("labels"):
            try:
                labels = [GestureLabel.from_string(name) for name in data["labels"]]
            except (TypeError, ValueError) as e:
                raise ConfigurationError("Malformed label table: %s" % e) from e

        return cls(layers, scaler=scaler, labels=labels)

    @classmethod
    def load(cls, path: str) -> 'NeuralClassifier':
        """Load weight tables from a ``.json`` or ``.npz`` file.

        ``.npz`` archives hold ``W0, b0, W1, b1, ...`` plus optional
        ``mean`` and ``scale`` arrays.

        Raises:
            FileNotFoundError: if ``path`` does not exist
            ConfigurationError: if the file is not a valid weight asset
        """
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise FileNotFoundError("Network weights not found: %s" % path)

        if path.endswith(".npz"):
            model = cls._load_npz(path)
        else:
            try:
                with open(path, "r") as f:
                    data = json.load(f)
            except ValueError as e:
                raise ConfigurationError("Weights file %s is not valid JSON: %s" % (path, e)) from e
            if not isinstance(data, dict):
                raise ConfigurationError("Weights file %s must hold a JSON object" % path)
            model = cls.from_dict(data)

        logger.info("Loaded network (%d classes) from %s", model.num_classes, path)
        return model

    @classmethod
    def _load_npz(cls, path: str) -> 'NeuralClassifier':
        try:
            archive = np.load(path)
        except (OSError, ValueError) as e:
            raise ConfigurationError("Cannot read weight archive %s: %s" % (path, e)) from e
        if not hasattr(archive, "files"):
            raise ConfigurationError("Weight archive %s is not an .npz file" % path)

        with archive:
            names = set(archive.files)
            layers = []
            k = 0
            while "W%d" % k in names:
                if "b%d" % k not in names:
                    raise ConfigurationError("Weight archive %s has W%d but no b%d" % (path, k, k))
                layers.append(WeightLayer(archive["W%d" % k], archive["b%d" % k]))
                k += 1
            scaler = None
            if "mean" in names and "scale" in names:
                scaler = Scaler(archive["mean"], archive["scale"])
        return cls(layers, scaler=scaler)
