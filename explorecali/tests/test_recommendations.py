from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from explorecali.app import create_app, get_recommendation_service
from explorecali.config import AppConfig
from explorecali.db.models import Tour, TourRating
from explorecali.errors import InvalidArgumentError
from explorecali.ratings.repository import TourAggregate
from explorecali.recommendations.engine import RecommendationService

app = create_app(AppConfig(database_url="sqlite://"))
client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "password"})


def _seed(tours: dict[int, tuple[str, dict[int, int]]]) -> None:
    app.state.db.reset()
    session = app.state.db.session()
    for tour_id, (title, scores) in tours.items():
        session.add(Tour(id=tour_id, title=title))
        for customer_id, score in scores.items():
            session.add(TourRating(tour_id=tour_id, customer_id=customer_id, score=score))
    session.commit()
    session.close()


def _scenario_a() -> None:
    _seed({
        1: ("Big Sur Retreat", {c: 4 for c in range(1, 9)}),
        2: ("In the Steps of John Muir", {1: 5}),
        3: ("Zion Day Trip", {1: 3, 2: 4, 3: 5}),
    })


# ── Engine against a mocked store ───────────────────────────────────────


def test_recommend_top_n_maps_rows_in_order():
    repo = MagicMock()
    repo.fetch_top_aggregates.return_value = [
        TourAggregate(2, "In the Steps of John Muir", 5.0, 1),
        TourAggregate(1, "Big Sur Retreat", 4.0, 8),
        TourAggregate(3, "Zion Day Trip", 4.0, 3),
    ]
    service = RecommendationService(repo)

    out = service.recommend_top_n(3)

    assert len(out) == 3
    assert out[0].tour_id == 2
    assert out[1].title == "Big Sur Retreat"
    assert out[2].average_score == 4.0
    assert out[2].review_count == 3
    repo.fetch_top_aggregates.assert_called_once_with(3)


def test_recommend_top_n_empty_is_ok():
    repo = MagicMock()
    repo.fetch_top_aggregates.return_value = []

    assert RecommendationService(repo).recommend_top_n(5) == []
    repo.fetch_top_aggregates.assert_called_once_with(5)


def test_recommend_for_customer_maps_rows_in_order():
    repo = MagicMock()
    repo.fetch_aggregates_excluding_customer.return_value = [
        TourAggregate(10, "Coastal Bike Ride", 4.7, 44),
        TourAggregate(11, "Wine Country Day Trip", 4.6, 62),
    ]

    out = RecommendationService(repo).recommend_for_customer(123, 2)

    assert [r.tour_id for r in out] == [10, 11]
    repo.fetch_aggregates_excluding_customer.assert_called_once_with(123, 2)


def test_engine_does_not_resort_rows():
    repo = MagicMock()
    repo.fetch_top_aggregates.return_value = [
        TourAggregate(1, "Zion Day Trip", 3.0, 1),
        TourAggregate(2, "Big Sur Retreat", 5.0, 9),
    ]

    out = RecommendationService(repo).recommend_top_n(2)

    assert [r.tour_id for r in out] == [1, 2]


@pytest.mark.parametrize("limit", [0, -1, True, 2.5, "3", None])
def test_invalid_limit_rejected_before_store(limit):
    repo = MagicMock()
    service = RecommendationService(repo)

    with pytest.raises(InvalidArgumentError):
        service.recommend_top_n(limit)
    with pytest.raises(InvalidArgumentError):
        service.recommend_for_customer(1, limit)

    repo.fetch_top_aggregates.assert_not_called()
    repo.fetch_aggregates_excluding_customer.assert_not_called()


def test_store_failure_propagates_unchanged():
    repo = MagicMock()
    failure = OperationalError("SELECT", {}, Exception("database is locked"))
    repo.fetch_top_aggregates.side_effect = failure

    with pytest.raises(OperationalError) as excinfo:
        RecommendationService(repo).recommend_top_n(3)

    assert excinfo.value is failure


# ── HTTP endpoints over a real store ────────────────────────────────────


def test_top_requires_login():
    c = TestClient(app)
    assert c.get("/recommendations/top").status_code == 401


def test_top_scenario_a_order():
    _scenario_a()
    _login_user(client)
    resp = client.get("/recommendations/top", params={"limit": 3})
    assert resp.status_code == 200
    assert [r["title"] for r in resp.json()] == [
        "In the Steps of John Muir",
        "Big Sur Retreat",
        "Zion Day Trip",
    ]
    assert resp.json()[1] == {
        "tour_id": 1,
        "title": "Big Sur Retreat",
        "average_score": 4.0,
        "review_count": 8,
    }


def test_top_limit_one_returns_best_tour():
    _scenario_a()
    _login_user(client)
    resp = client.get("/recommendations/top", params={"limit": 1})
    assert [r["tour_id"] for r in resp.json()] == [2]


def test_top_is_idempotent():
    _scenario_a()
    _login_user(client)
    first = client.get("/recommendations/top", params={"limit": 3}).json()
    second = client.get("/recommendations/top", params={"limit": 3}).json()
    assert first == second


def test_top_empty_store_returns_empty_list():
    _seed({})
    _login_user(client)
    resp = client.get("/recommendations/top", params={"limit": 5})
    assert resp.status_code == 200
    assert resp.json() == []


def test_top_rejects_bad_limit():
    _login_user(client)
    assert client.get("/recommendations/top", params={"limit": 0}).status_code == 422
    assert client.get("/recommendations/top", params={"limit": 51}).status_code == 422


def test_customer_scenario_b():
    _seed({
        2: ("Big Sur Retreat", {123: 5, 1: 5}),
        3: ("Zion Day Trip", {123: 5, 2: 5}),
        10: ("Coastal Bike Ride", {1: 5, 2: 5, 3: 4}),
        11: ("Wine Country Day Trip", {4: 5, 5: 4, 6: 5, 7: 4, 8: 5}),
        12: ("Hot Springs Hike", {9: 2}),
    })
    _login_user(client)
    resp = client.get("/recommendations/customers/123", params={"limit": 2})
    assert resp.status_code == 200
    assert [r["tour_id"] for r in resp.json()] == [10, 11]


def test_customer_never_sees_rated_tours():
    _scenario_a()
    _login_user(client)
    resp = client.get("/recommendations/customers/1", params={"limit": 10})
    assert resp.json() == []

    resp = client.get("/recommendations/customers/5", params={"limit": 10})
    assert [r["tour_id"] for r in resp.json()] == [2, 3]


def test_unknown_customer_gets_top_list():
    _scenario_a()
    _login_user(client)
    personal = client.get("/recommendations/customers/4242", params={"limit": 3}).json()
    top = client.get("/recommendations/top", params={"limit": 3}).json()
    assert personal == top


def test_store_failure_answers_service_unavailable():
    repo = MagicMock()
    repo.fetch_top_aggregates.side_effect = OperationalError(
        "SELECT", {}, Exception("unable to open database file"),
    )
    app.dependency_overrides[get_recommendation_service] = lambda: RecommendationService(repo)
    try:
        c = TestClient(app, raise_server_exceptions=False)
        _login_user(c)
        resp = c.get("/recommendations/top", params={"limit": 3})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 503
    assert resp.json() == {"detail": "Data store unavailable"}
