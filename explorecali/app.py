from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.middleware.sessions import SessionMiddleware

from .auth.dependencies import require_admin, require_user
from .auth.models import LoginRequest
from .auth.users import UserStore
from .config import DEFAULT_APP_CONFIG, AppConfig
from .db.database import Database, get_db
from .errors import (
    DuplicateRatingError,
    InvalidArgumentError,
    RatingNotFoundError,
    TourNotFoundError,
)
from .features.dependencies import require_feature
from .features.flags import RECOMMENDATIONS, TOUR_RATINGS
from .ratings.models import AverageScore, RatingDto, RatingPatch
from .ratings.repository import TourRatingRepository
from .ratings.service import TourRatingService
from .recommendations.engine import RecommendationService
from .recommendations.models import TourRecommendation
from .tours.models import TourOut, TourRequest
from .tours.service import TourService

logger = logging.getLogger(__name__)


# ── Service providers ───────────────────────────────────────────────────


def get_tour_service(db: Session = Depends(get_db)) -> TourService:
    return TourService(db)


def get_rating_service(db: Session = Depends(get_db)) -> TourRatingService:
    return TourRatingService(db)


def get_recommendation_service(db: Session = Depends(get_db)) -> RecommendationService:
    return RecommendationService(TourRatingRepository(db))


# ── Public endpoints ─────────────────────────────────────────────────────

public = APIRouter()


@public.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────

auth = APIRouter(prefix="/auth", tags=["auth"])


@auth.post("/login")
def login(body: LoginRequest, request: Request) -> dict:
    users: UserStore = request.app.state.users
    user = users.authenticate(body.username, body.password)
    if not user:
        logger.info("Failed login for %r", body.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@auth.post("/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@auth.get("/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Tours ────────────────────────────────────────────────────────────────

tours = APIRouter(prefix="/tours", tags=["tours"])


@tours.get("", response_model=list[TourOut])
def list_tours(
    user: dict = Depends(require_user),
    service: TourService = Depends(get_tour_service),
) -> list[TourOut]:
    logger.info("GET /tours")
    return [TourOut.model_validate(t) for t in service.list_all()]


@tours.get("/{tour_id}", response_model=TourOut)
def get_tour(
    tour_id: int,
    user: dict = Depends(require_user),
    service: TourService = Depends(get_tour_service),
) -> TourOut:
    logger.info("GET /tours/%s", tour_id)
    return TourOut.model_validate(service.lookup(tour_id))


@tours.post("", response_model=TourOut, status_code=201)
def create_tour(
    body: TourRequest,
    user: dict = Depends(require_admin),
    service: TourService = Depends(get_tour_service),
) -> TourOut:
    logger.info("POST /tours body=%s", body)
    return TourOut.model_validate(service.create(body.title, body.description))


# ── Tour ratings (reads: user, writes: admin) ────────────────────────────

ratings = APIRouter(
    prefix="/tours/{tour_id}/ratings",
    tags=["ratings"],
    dependencies=[Depends(require_feature(TOUR_RATINGS, "Tour ratings"))],
)


@ratings.get("", response_model=list[RatingDto])
def get_all_ratings_for_tour(
    tour_id: int,
    user: dict = Depends(require_user),
    service: TourRatingService = Depends(get_rating_service),
) -> list[RatingDto]:
    logger.info("GET /tours/%s/ratings", tour_id)
    return [RatingDto.model_validate(r) for r in service.lookup_ratings(tour_id)]


@ratings.get("/average", response_model=AverageScore)
def get_average(
    tour_id: int,
    user: dict = Depends(require_user),
    service: TourRatingService = Depends(get_rating_service),
) -> AverageScore:
    logger.info("GET /tours/%s/ratings/average", tour_id)
    return AverageScore(average=service.get_average_score(tour_id))


@ratings.post("", response_model=RatingDto, status_code=201)
def create_tour_rating(
    tour_id: int,
    body: RatingDto,
    user: dict = Depends(require_admin),
    service: TourRatingService = Depends(get_rating_service),
) -> RatingDto:
    logger.info("POST /tours/%s/ratings body=%s", tour_id, body)
    rating = service.create_new(tour_id, body.customer_id, body.score, body.comment)
    return RatingDto.model_validate(rating)


@ratings.put("", response_model=RatingDto)
def update_with_put(
    tour_id: int,
    body: RatingDto,
    user: dict = Depends(require_admin),
    service: TourRatingService = Depends(get_rating_service),
) -> RatingDto:
    logger.info("PUT /tours/%s/ratings body=%s", tour_id, body)
    rating = service.update(tour_id, body.customer_id, body.score, body.comment)
    return RatingDto.model_validate(rating)


@ratings.patch("", response_model=RatingDto)
def update_with_patch(
    tour_id: int,
    body: RatingPatch,
    user: dict = Depends(require_admin),
    service: TourRatingService = Depends(get_rating_service),
) -> RatingDto:
    logger.info("PATCH /tours/%s/ratings body=%s", tour_id, body)
    rating = service.update_some(tour_id, body.customer_id, body.score, body.comment)
    return RatingDto.model_validate(rating)


@ratings.delete("/{customer_id}", status_code=204)
def delete_rating(
    tour_id: int,
    customer_id: int,
    user: dict = Depends(require_admin),
    service: TourRatingService = Depends(get_rating_service),
) -> None:
    logger.info("DELETE /tours/%s/ratings/%s", tour_id, customer_id)
    service.delete(tour_id, customer_id)


@ratings.post("/batch", status_code=201)
def create_many_tour_ratings(
    tour_id: int,
    score: int = Query(..., ge=1, le=5),
    customers: list[int] = Body(..., min_length=1),
    user: dict = Depends(require_admin),
    service: TourRatingService = Depends(get_rating_service),
) -> dict:
    logger.info("POST /tours/%s/ratings/batch score=%s customers=%s", tour_id, score, customers)
    created = service.rate_many(tour_id, score, customers)
    return {"status": "created", "count": len(created)}


# ── Recommendations ──────────────────────────────────────────────────────

recommendations = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
    dependencies=[Depends(require_feature(RECOMMENDATIONS, "Recommendations"))],
)


@recommendations.get("/top", response_model=list[TourRecommendation])
def recommend_top(
    limit: int = Query(default=10, ge=1, le=50),
    user: dict = Depends(require_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[TourRecommendation]:
    logger.info("GET /recommendations/top limit=%s", limit)
    return service.recommend_top_n(limit)


@recommendations.get("/customers/{customer_id}", response_model=list[TourRecommendation])
def recommend_for_customer(
    customer_id: int,
    limit: int = Query(default=10, ge=1, le=50),
    user: dict = Depends(require_user),
    service: RecommendationService = Depends(get_recommendation_service),
) -> list[TourRecommendation]:
    logger.info("GET /recommendations/customers/%s limit=%s", customer_id, limit)
    return service.recommend_for_customer(customer_id, limit)


# ── Error mapping ────────────────────────────────────────────────────────


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TourNotFoundError)
    @app.exception_handler(RatingNotFoundError)
    async def not_found(request: Request, exc: LookupError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(DuplicateRatingError)
    async def conflict(request: Request, exc: DuplicateRatingError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(InvalidArgumentError)
    async def bad_request(request: Request, exc: InvalidArgumentError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def store_unavailable(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Data access failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=503, content={"detail": "Data store unavailable"})


# ── App factory ──────────────────────────────────────────────────────────


def create_app(config: AppConfig = DEFAULT_APP_CONFIG, users: UserStore | None = None) -> FastAPI:
    """Build the API around *config*; nothing is read from module globals."""
    app = FastAPI(title="Explore California Tour Ratings API", version="1.0.0")
    app.add_middleware(SessionMiddleware, secret_key=config.session_secret)

    app.state.config = config
    app.state.features = config.features
    app.state.users = users or UserStore()
    app.state.db = Database(config.database_url, echo=config.sql_echo)
    app.state.db.create_all()

    _register_exception_handlers(app)
    for router in (public, auth, tours, ratings, recommendations):
        app.include_router(router)
    return app
