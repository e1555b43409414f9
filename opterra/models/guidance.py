"""Guidance text models for the AI guidance collaborator."""

from typing import Optional

from pydantic import BaseModel, Field

from .enums import GuidanceSource, VerdictBadge
from .inputs import AssessmentInput


class GuidanceRequest(BaseModel):
    """Snapshot plus the finding to explain. Defaults to the verdict's own rule."""

    snapshot: AssessmentInput
    finding: Optional[str] = Field(default=None, description="Rule id to explain")


class Guidance(BaseModel):
    """Explanation and recommendation for one finding."""

    finding: str
    badge: VerdictBadge
    headline: str
    explanation: str
    recommendation: str
    source: GuidanceSource

    class Config:
        """Pydantic configuration."""

        frozen = True
