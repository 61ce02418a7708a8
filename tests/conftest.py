"""
Shared fixtures.

The service runs against an in-memory SQLite database (one shared connection),
Celery runs tasks eagerly with an in-memory broker and the Redis checkout lock
is replaced with an in-memory fake through FastAPI dependency overrides.
"""
import os

# must be set before anything from shopcart reads the settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["SECRET_KEY"] = "test-secret"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

import shopcart.data.models  # noqa: F401
from shopcart.api.deps import get_lock_service
from shopcart.celery_worker import celery_app
from shopcart.data.database import Base, SessionLocal, engine
from shopcart.data.models import ProductModel, UserModel, UserRole
from shopcart.main import app
from shopcart.utils.security import create_access_token, get_password_hash

celery_app.conf.task_always_eager = True


class FakeLockService:
    """In-memory stand-in for the Redis backed LockService."""

    def __init__(self):
        self.locks = {}

    def acquire_checkout_lock(self, cart_id: int, owner: str, ttl: int) -> bool:
        if cart_id in self.locks:
            return False
        self.locks[cart_id] = owner
        return True

    def release_checkout_lock(self, cart_id: int, owner: str) -> bool:
        if self.locks.get(cart_id) != owner:
            return False
        del self.locks[cart_id]
        return True


@pytest.fixture(autouse=True)
def database():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def client(lock_service):
    """TestClient with the Redis lock swapped for the in-memory fake."""
    app.dependency_overrides[get_lock_service] = lambda: lock_service

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make(username: str = "alice", password: str = "secret123", role: str = UserRole.USER.value) -> UserModel:
        user = UserModel(
            username=username,
            email=f"{username}@example.com",
            hashed_password=get_password_hash(password),
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(name: str = "Keyboard", price: str = "100.00", stock: int = 10) -> ProductModel:
        product = ProductModel(name=name, description=f"{name} description", price=Decimal(price), stock=stock)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: UserModel) -> dict:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers
