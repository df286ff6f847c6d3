from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db.models import MAX_SCORE, MIN_SCORE, TourRating
from ..errors import DuplicateRatingError, InvalidArgumentError, RatingNotFoundError
from ..tours.service import TourService
from .repository import TourRatingRepository

logger = logging.getLogger(__name__)


def _check_score(score: int) -> None:
    if not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidArgumentError(f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {score}")


class TourRatingService:
    """Rating CRUD. Every operation first checks the tour exists."""

    def __init__(
        self,
        session: Session,
        repository: TourRatingRepository | None = None,
        tours: TourService | None = None,
    ) -> None:
        self._session = session
        self._repository = repository or TourRatingRepository(session)
        self._tours = tours or TourService(session)

    def create_new(
        self, tour_id: int, customer_id: int, score: int, comment: str | None = None,
    ) -> TourRating:
        tour = self._tours.lookup(tour_id)
        _check_score(score)
        if self._repository.find_by_tour_id_and_customer_id(tour_id, customer_id) is not None:
            raise DuplicateRatingError(tour_id, customer_id)
        rating = self._repository.add(
            TourRating(tour=tour, customer_id=customer_id, score=score, comment=comment)
        )
        self._commit_new(tour_id, [customer_id])
        logger.info("Created rating tour_id=%s customer_id=%s score=%s", tour_id, customer_id, score)
        return rating

    def lookup_ratings(self, tour_id: int) -> list[TourRating]:
        self._tours.lookup(tour_id)
        return self._repository.find_by_tour_id(tour_id)

    def lookup_rating(self, tour_id: int, customer_id: int) -> TourRating:
        self._tours.lookup(tour_id)
        rating = self._repository.find_by_tour_id_and_customer_id(tour_id, customer_id)
        if rating is None:
            raise RatingNotFoundError(
                f"Tour-Rating pair for request ({tour_id} for customer {customer_id}) not found"
            )
        return rating

    def update(
        self, tour_id: int, customer_id: int, score: int, comment: str | None,
    ) -> TourRating:
        """Replace score and comment."""
        rating = self.lookup_rating(tour_id, customer_id)
        _check_score(score)
        rating.score = score
        rating.comment = comment
        self._session.commit()
        logger.info("Updated rating tour_id=%s customer_id=%s", tour_id, customer_id)
        return rating

    def update_some(
        self,
        tour_id: int,
        customer_id: int,
        score: int | None = None,
        comment: str | None = None,
    ) -> TourRating:
        """Change only the fields that are given."""
        rating = self.lookup_rating(tour_id, customer_id)
        if score is not None:
            _check_score(score)
            rating.score = score
        if comment is not None:
            rating.comment = comment
        self._session.commit()
        logger.info("Patched rating tour_id=%s customer_id=%s", tour_id, customer_id)
        return rating

    def delete(self, tour_id: int, customer_id: int) -> None:
        rating = self.lookup_rating(tour_id, customer_id)
        self._repository.delete(rating)
        self._session.commit()
        logger.info("Deleted rating tour_id=%s customer_id=%s", tour_id, customer_id)

    def get_average_score(self, tour_id: int) -> float:
        """Average score of a tour; a tour without ratings has no average."""
        ratings = self.lookup_ratings(tour_id)
        if not ratings:
            raise RatingNotFoundError(f"Tour has no ratings: {tour_id}")
        return sum(r.score for r in ratings) / len(ratings)

    def rate_many(self, tour_id: int, score: int, customer_ids: Iterable[int]) -> list[TourRating]:
        """Give the same score to a tour on behalf of several customers, all or nothing."""
        tour = self._tours.lookup(tour_id)
        _check_score(score)
        customer_ids = list(customer_ids)
        if len(set(customer_ids)) != len(customer_ids):
            raise InvalidArgumentError("Customer ids must be unique")

        ratings: list[TourRating] = []
        for customer_id in customer_ids:
            if self._repository.find_by_tour_id_and_customer_id(tour_id, customer_id) is not None:
                self._session.rollback()
                raise DuplicateRatingError(tour_id, customer_id)
            ratings.append(
                self._repository.add(TourRating(tour=tour, customer_id=customer_id, score=score))
            )
        self._commit_new(tour_id, customer_ids)
        logger.info(
            "Rated tour_id=%s with score=%s for %d customers", tour_id, score, len(ratings),
        )
        return ratings

    def _commit_new(self, tour_id: int, customer_ids: list[int]) -> None:
        """
        Commit freshly added ratings.

        A rating inserted by another request between the duplicate check and
        this commit trips the unique constraint; that is reported as a
        duplicate, any other integrity failure propagates.
        """
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            for customer_id in customer_ids:
                if self._repository.find_by_tour_id_and_customer_id(tour_id, customer_id) is not None:
                    raise DuplicateRatingError(tour_id, customer_id) from None
            raise
