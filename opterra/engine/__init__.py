"""
Assessment engines.

Pure, synchronous computations: no I/O, no clock reads, no settings. The
routers and services layer wraps them with caching and collaborators.
"""

from .softener import assess_softener
from .water_heater import assess

__all__ = ["assess", "assess_softener"]
