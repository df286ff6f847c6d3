from __future__ import annotations

from typing import NamedTuple

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from ..db.models import Tour, TourRating


class TourAggregate(NamedTuple):
    tour_id: int
    title: str
    avg_score: float
    review_count: int


class TourRatingRepository:
    """
    Data access for ``TourRating`` rows.

    The two ``fetch_*aggregates`` queries group ratings by tour and rank the
    groups by average score (desc), review count (desc) and title (asc).
    Tours nobody rated never appear. Database errors propagate unchanged.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ── Single ratings ──────────────────────────────────────────────────

    def find_by_tour_id(self, tour_id: int) -> list[TourRating]:
        stmt = (
            select(TourRating)
            .where(TourRating.tour_id == tour_id)
            .order_by(TourRating.customer_id)
        )
        return list(self._session.scalars(stmt))

    def find_by_tour_id_and_customer_id(
        self, tour_id: int, customer_id: int,
    ) -> TourRating | None:
        stmt = select(TourRating).where(
            TourRating.tour_id == tour_id,
            TourRating.customer_id == customer_id,
        )
        return self._session.scalars(stmt).first()

    def add(self, rating: TourRating) -> TourRating:
        self._session.add(rating)
        return rating

    def delete(self, rating: TourRating) -> None:
        self._session.delete(rating)

    # ── Aggregates ──────────────────────────────────────────────────────

    def fetch_top_aggregates(self, limit: int) -> list[TourAggregate]:
        """Return at most *limit* rated tours, best first."""
        return self._fetch(_aggregate_query(limit))

    def fetch_aggregates_excluding_customer(
        self, customer_id: int, limit: int,
    ) -> list[TourAggregate]:
        """Like ``fetch_top_aggregates`` but skips tours *customer_id* already rated."""
        return self._fetch(_aggregate_query(limit, excluded_customer_id=customer_id))

    def _fetch(self, stmt: Select) -> list[TourAggregate]:
        return [
            TourAggregate(
                tour_id=row.tour_id,
                title=row.title,
                avg_score=float(row.avg_score),
                review_count=int(row.review_count),
            )
            for row in self._session.execute(stmt)
        ]


def _aggregate_query(limit: int, excluded_customer_id: int | None = None) -> Select:
    avg_score = func.avg(TourRating.score)
    review_count = func.count(TourRating.id)

    stmt = (
        select(
            Tour.id.label("tour_id"),
            Tour.title.label("title"),
            avg_score.label("avg_score"),
            review_count.label("review_count"),
        )
        .select_from(TourRating)
        .join(Tour, TourRating.tour_id == Tour.id)
    )

    if excluded_customer_id is not None:
        rated_by_customer = select(TourRating.tour_id).where(
            TourRating.customer_id == excluded_customer_id
        )
        stmt = stmt.where(TourRating.tour_id.not_in(rated_by_customer))

    return (
        stmt.group_by(Tour.id, Tour.title)
        .order_by(avg_score.desc(), review_count.desc(), Tour.title.asc())
        .limit(limit)
    )
