from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base

MIN_SCORE = 1
MAX_SCORE = 5


class Tour(Base):
    __tablename__ = "tour"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    ratings: Mapped[list[TourRating]] = relationship(
        back_populates="tour",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"Tour(id={self.id!r}, title={self.title!r})"


class TourRating(Base):
    """One customer's score (and optional comment) for one tour."""

    __tablename__ = "tour_rating"
    __table_args__ = (
        UniqueConstraint("tour_id", "customer_id", name="uq_tour_rating_tour_customer"),
        CheckConstraint(
            f"score >= {MIN_SCORE} AND score <= {MAX_SCORE}",
            name="ck_tour_rating_score",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tour_id: Mapped[int] = mapped_column(
        ForeignKey("tour.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(String(255), nullable=True)

    tour: Mapped[Tour] = relationship(back_populates="ratings")

    def __repr__(self) -> str:
        return (
            f"TourRating(tour_id={self.tour_id!r}, customer_id={self.customer_id!r}, "
            f"score={self.score!r})"
        )
