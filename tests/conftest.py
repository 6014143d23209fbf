from datetime import timedelta
from itertools import count

import pytest
from fastapi.testclient import TestClient

from config import Settings
from db import Database
from lifecycle import FoodLifecycle
from main import create_app
from models import Food, Role, User, utcnow
from routers.auth import hash_password

_emails = count(1)


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        SWEEP_EXPIRED_ON_STARTUP=False,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def database(settings):
    database = Database(settings.DATABASE_URL)
    database.create_db_and_tables()
    yield database
    database.dispose()


@pytest.fixture
def session(database):
    with database.session() as session:
        yield session


@pytest.fixture
def lifecycle(session):
    return FoodLifecycle(session, timedelta(hours=24))


@pytest.fixture
def make_user(session):
    def _make_user(role: Role, name: str = None) -> User:
        n = next(_emails)
        user = User(
            name=name or f"{role.value}-{n}",
            email=f"{role.value}{n}@example.com",
            password_hash=hash_password("secret123"),
            address="1 Main St",
            description="test account",
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def register(app):
    """
    Register a user through the API and return (client, user_json).

    Each call gets its own TestClient so every user keeps their own
    session cookie.
    """

    def _register(role: str, name: str = None, email: str = None):
        n = next(_emails)
        client = TestClient(app)
        resp = client.post(
            "/register",
            json={
                "name": name or f"{role}-{n}",
                "email": email or f"{role}{n}@example.com",
                "password": "secret123",
                "address": "1 Main St",
                "description": "test account",
                "role": role,
            },
        )
        assert resp.status_code == 201, resp.text
        return client, resp.json()

    return _register


@pytest.fixture
def anonymous(app):
    return TestClient(app)


@pytest.fixture
def backdate(database):
    def _backdate(food_id: int, hours: float) -> None:
        with database.session() as session:
            food = session.get(Food, food_id)
            food.created_at = utcnow() - timedelta(hours=hours)
            session.add(food)
            session.commit()

    return _backdate


@pytest.fixture
def stored_food(database):
    def _stored_food(food_id: int) -> Food:
        with database.session() as session:
            food = session.get(Food, food_id)
            session.expunge(food)
            return food

    return _stored_food
