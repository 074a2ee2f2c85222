"""Core utilities for Vent-AI"""

from vent_ai.core.config import Settings, get_settings
from vent_ai.core.logging import configure_logging, get_logger

__all__ = ["Settings", "get_settings", "configure_logging", "get_logger"]
