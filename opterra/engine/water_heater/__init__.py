"""
Water heater forensic risk and lifecycle engine.

Covers tank (gas, electric), hybrid heat pump and tankless units.
"""

from .assessment import assess
from .normalizer import normalize

__all__ = ["assess", "normalize"]
