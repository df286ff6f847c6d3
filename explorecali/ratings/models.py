from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..db.models import MAX_SCORE, MIN_SCORE


class RatingDto(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    score: int = Field(..., ge=MIN_SCORE, le=MAX_SCORE)
    comment: str | None = Field(default=None, max_length=255)
    customer_id: int = Field(..., ge=1)


class RatingPatch(BaseModel):
    """PATCH body: fields left out keep their stored value."""

    score: int | None = Field(default=None, ge=MIN_SCORE, le=MAX_SCORE)
    comment: str | None = Field(default=None, max_length=255)
    customer_id: int = Field(..., ge=1)


class AverageScore(BaseModel):
    average: float
