#!/usr/bin/env python3
"""
Sign recognition command line entry point.

Reads hand landmarks from a JSON file and prints the recognized gesture
as JSON on stdout.

Usage:
    sign-recognize hand.json
    sign-recognize hand.json --weights models/net.json
    sign-recognize hand.json --recognition-threshold 0.6 --template
    sign-recognize hand.json --config my_config.yaml --log-level DEBUG

Landmark file formats:
    {"hands": [{"handedness": "Right", "confidence": 0.9,
                "landmarks": [[x, y, z], ...21 points]}]}
    [[x, y, z], ...21 points]                # single right hand
"""

import sys
import json
import time
import argparse
import logging

from sign_recognition.core.errors import ConfigurationError
from sign_recognition.core.pipeline import SignRecognizer
from sign_recognition.core.types import HandObservation
from sign_recognition.utils.config import Config
from sign_recognition.utils.logger import setup_logging, GestureLogger

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Hybrid sign gesture recognition from hand landmarks"
    )
    parser.add_argument(
        "landmarks", type=str,
        help="Path to a landmarks JSON file"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--weights", type=str, default=None,
        help="Network weights (.json or .npz); overrides neural.weights_path"
    )
    parser.add_argument(
        "--detection-threshold", type=float, default=None,
        help="Minimum detector confidence (0-1)"
    )
    parser.add_argument(
        "--recognition-threshold", type=float, default=None,
        help="Minimum gesture confidence (0-1)"
    )
    parser.add_argument(
        "--template", action="store_true",
        help="Also report the nearest-template match"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Include per-finger extension flags of the primary hand"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...)"
    )
    return parser.parse_args(argv)


def load_hands(path: str) -> list:
    """Parse a landmarks JSON file into HandObservation records."""
    with open(path, "r") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return [HandObservation.from_dict(hand) for hand in data.get("hands", [])]
    return [HandObservation(data)]


def _cli_overrides(args) -> dict:
    overrides = {}
    if args.weights:
        overrides.setdefault("neural", {})["weights_path"] = args.weights
    if args.detection_threshold is not None:
        overrides.setdefault("recognition", {})["detection_threshold"] = args.detection_threshold
    if args.recognition_threshold is not None:
        overrides.setdefault("recognition", {})["recognition_threshold"] = args.recognition_threshold
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    return overrides


def main(argv=None) -> int:
    args = parse_args(argv)

    # Load configuration
    config = Config()
    config.load(config_path=args.config)
    config.update(_cli_overrides(args))

    # Setup logging
    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    try:
        recognizer = SignRecognizer.from_config(config)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("Cannot build recognizer: %s", e)
        return 2

    try:
        hands = load_hands(args.landmarks)
    except (OSError, ValueError, AttributeError) as e:
        logger.error("Cannot read landmarks from %s: %s", args.landmarks, e)
        return 1

    start = time.perf_counter()
    result = recognizer.recognize(hands)
    latency_ms = (time.perf_counter() - start) * 1000
    GestureLogger().log_result(result, latency_ms)

    output = result.to_dict()
    if args.template and hands:
        output["template"] = recognizer.match_template(hands[0].landmarks).to_dict()
    if args.verbose and hands:
        output["fingers"] = recognizer.rule_classifier.finger_states(hands[0].landmarks)

    print(json.dumps(output))
    return 0


if __name__ == "__main__":
    sys.exit(main())
