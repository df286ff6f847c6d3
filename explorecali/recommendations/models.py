from __future__ import annotations

from pydantic import BaseModel, Field


class TourRecommendation(BaseModel):
    tour_id: int
    title: str
    average_score: float = Field(..., ge=0.0, le=5.0)
    review_count: int = Field(..., ge=1)
