from __future__ import annotations

import logging
from typing import Protocol

from ..errors import InvalidArgumentError
from ..ratings.repository import TourAggregate
from .models import TourRecommendation

logger = logging.getLogger(__name__)


class AggregateSource(Protocol):
    def fetch_top_aggregates(self, limit: int) -> list[TourAggregate]: ...

    def fetch_aggregates_excluding_customer(
        self, customer_id: int, limit: int,
    ) -> list[TourAggregate]: ...


def _check_limit(limit: int) -> None:
    # bool is an int subclass; True is not a page size
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise InvalidArgumentError(f"limit must be a positive integer, got {limit!r}")


def _to_recommendation(row: TourAggregate) -> TourRecommendation:
    return TourRecommendation(
        tour_id=row.tour_id,
        title=row.title,
        average_score=row.avg_score,
        review_count=row.review_count,
    )


class RecommendationService:
    """
    Turns ranked tour aggregates into recommendations.

    Ranking, exclusion and truncation all happen in the store query; the
    service validates the page size and maps rows one to one, keeping their
    order. Nothing is cached, so every call reflects the current ratings.
    Store errors are not caught here.
    """

    def __init__(self, repository: AggregateSource) -> None:
        self._repository = repository

    def recommend_top_n(self, limit: int) -> list[TourRecommendation]:
        _check_limit(limit)
        rows = self._repository.fetch_top_aggregates(limit)
        logger.debug("Top %d recommendation request returned %d tours", limit, len(rows))
        return [_to_recommendation(row) for row in rows]

    def recommend_for_customer(self, customer_id: int, limit: int) -> list[TourRecommendation]:
        _check_limit(limit)
        rows = self._repository.fetch_aggregates_excluding_customer(customer_id, limit)
        logger.debug(
            "Recommendation request for customer %s (limit %d) returned %d tours",
            customer_id, limit, len(rows),
        )
        return [_to_recommendation(row) for row in rows]
