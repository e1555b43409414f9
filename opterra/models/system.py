"""System and operational models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SeedRunManifest(BaseModel):
    """
    Outcome of one price seeding run.

    Per-model lookup failures are collected in ``errors`` and never abort the
    run.
    """

    run_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    models_attempted: int = Field(default=0, ge=0)
    models_succeeded: int = Field(default=0, ge=0)
    errors: dict[str, str] = Field(default_factory=dict, description="model key -> error")
    status: str = Field(default="running", description="running | completed | partial | failed")
