"""
Shared pytest fixtures: in-memory SQLite + FastAPI TestClient.
"""
import json
import pathlib

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wrapped.database import Base, get_db
from wrapped.models import OrderModel  # noqa: F401  register models
from wrapped.main import app

FIXTURES = pathlib.Path(__file__).resolve().parent.parent / "fixtures"

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def target_email() -> str:
    return (FIXTURES / "sample_final_receipt_target.eml").read_text(encoding="utf-8")


@pytest.fixture()
def bimi_email() -> str:
    return (FIXTURES / "sample_confirmation_bimi_poke.eml").read_text(encoding="utf-8")


@pytest.fixture()
def uber_email() -> str:
    return (FIXTURES / "rejected_other_platform.eml").read_text(encoding="utf-8")


@pytest.fixture()
def capture_payload() -> dict:
    return json.loads((FIXTURES / "sample_capture.json").read_text(encoding="utf-8"))
