from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import Tour
from ..errors import InvalidArgumentError, TourNotFoundError

logger = logging.getLogger(__name__)


class TourService:
    def __init__(self, session: Session) -> None:
        self._session = session

    def create(self, title: str, description: str | None = None) -> Tour:
        existing = self._session.scalars(select(Tour).where(Tour.title == title)).first()
        if existing is not None:
            raise InvalidArgumentError(f"Tour title already in use: {title}")
        tour = Tour(title=title, description=description)
        self._session.add(tour)
        self._session.commit()
        logger.info("Created tour id=%s title=%r", tour.id, tour.title)
        return tour

    def lookup(self, tour_id: int) -> Tour:
        """Return the tour or raise ``TourNotFoundError``."""
        tour = self._session.get(Tour, tour_id)
        if tour is None:
            raise TourNotFoundError(tour_id)
        return tour

    def list_all(self) -> list[Tour]:
        return list(self._session.scalars(select(Tour).order_by(Tour.id)))
