"""
Core module initialization.
Exports configuration and clock utilities.
"""

from queue_portal.core.config import get_settings, Settings, EnvironmentMode
from queue_portal.core.clock import Clock, FrozenClock

__all__ = ["get_settings", "Settings", "EnvironmentMode", "Clock", "FrozenClock"]
