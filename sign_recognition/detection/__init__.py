"""Landmark normalization and finger geometry."""
from .landmark_extractor import LandmarkNormalizer, get_finger_states, normalize

__all__ = ["LandmarkNormalizer", "get_finger_states", "normalize"]
