"""API routers for all endpoints."""

from opterra.routers import assessment, softener, system

__all__ = [
    "assessment",
    "softener",
    "system",
]
