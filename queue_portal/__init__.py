"""
                Restaurant Queue Portal

Captive-portal ordering backend: one order per device per day,
per-day queue numbers and a staff dashboard API.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
