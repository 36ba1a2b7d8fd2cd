import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker

from app import config
from app.main import app
from app.database import Base, get_db
from app.models import Cinema, Movie


engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


client = TestClient(app)
ADMIN = {"X-Admin-Token": config.ADMIN_TOKEN}


@pytest.fixture(autouse=True)
def setup_db_schema():
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


# ======================================================
# MOVIES
# ======================================================

def test_add_movie():
    res = client.post("/movies", json={
        "title": "Avatar",
        "genre": "Action",
        "duration": 162,
        "rating": "PG-13",
    }, headers=ADMIN)
    assert res.status_code == 201
    movie = res.json()["movie"]
    assert movie["id"] == 1
    assert movie["status"] == "now-showing"
    assert movie["is_active"] is True


def test_add_movie_invalid_duration():
    res = client.post("/movies", json={"title": "Short", "duration": 0}, headers=ADMIN)
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_add_movie_requires_admin():
    res = client.post("/movies", json={"title": "Avatar", "duration": 162})
    assert res.status_code == 401


def test_get_movies_hides_inactive():
    db = TestingSessionLocal()
    db.add_all([
        Movie(title="Showing", duration=100, is_active=True),
        Movie(title="Archived", duration=100, is_active=False),
    ])
    db.commit()
    db.close()

    res = client.get("/movies")
    assert res.status_code == 200
    assert [m["title"] for m in res.json()["movies"]] == ["Showing"]


# ======================================================
# CINEMAS & SCREENS
# ======================================================

def test_add_cinema_and_screens():
    res = client.post("/cinemas", json={
        "name": "Downtown",
        "location": "Main St",
        "default_price": 75000,
    }, headers=ADMIN)
    assert res.status_code == 201
    cinema_id = res.json()["cinema"]["id"]

    res = client.post(f"/cinemas/{cinema_id}/screens",
                      json={"name": "Screen 1", "rows": 8, "cols": 12}, headers=ADMIN)
    assert res.status_code == 201
    assert res.json()["screen"]["total_seats"] == 96

    res = client.get(f"/cinemas/{cinema_id}/screens")
    assert res.json()["count"] == 1
    assert res.json()["screens"][0]["name"] == "Screen 1"

    assert client.get("/cinemas").json()["count"] == 1


def test_add_screen_unknown_cinema():
    res = client.post("/cinemas/42/screens", json={"name": "Screen 1", "rows": 8, "cols": 12}, headers=ADMIN)
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Cinema not found"}


def test_screens_of_inactive_cinema():
    db = TestingSessionLocal()
    db.add(Cinema(name="Closed", default_price=50000, is_active=False))
    db.commit()
    db.close()

    assert client.get("/cinemas/1/screens").status_code == 404


def test_home():
    res = client.get("/")
    assert res.status_code == 200
    assert res.json()["success"] is True
