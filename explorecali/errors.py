"""
Service-level exceptions.

The HTTP layer maps these onto status codes; services and repositories never
raise ``HTTPException`` themselves.
"""
from __future__ import annotations


class ExploreCaliError(Exception):
    """Base class for errors raised by the tour ratings services."""


class TourNotFoundError(ExploreCaliError, LookupError):
    def __init__(self, tour_id: int) -> None:
        super().__init__(f"Tour does not exist: {tour_id}")
        self.tour_id = tour_id


class RatingNotFoundError(ExploreCaliError, LookupError):
    """No rating matches the requested tour (and customer)."""


class DuplicateRatingError(ExploreCaliError):
    def __init__(self, tour_id: int, customer_id: int) -> None:
        super().__init__(f"Customer {customer_id} has already rated tour {tour_id}")
        self.tour_id = tour_id
        self.customer_id = customer_id


class InvalidArgumentError(ExploreCaliError, ValueError):
    """A caller supplied a value outside the accepted range."""
