"""Configuration and logging utilities."""
from .config import Config
from .logger import setup_logging, GestureLogger, log_timing

__all__ = ["Config", "setup_logging", "GestureLogger", "log_timing"]
