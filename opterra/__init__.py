"""Opterra - forensic risk and lifecycle assessment for water heaters and softeners."""

__version__ = "0.1.0"
