from __future__ import annotations

from typing import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.crud.crud_watch_state import ProgressStore
from app.db.models_registry import Base
from app.db.session import build_engine, build_session_factory
from app.factory import create_app

SINTEL = "Sintel-blender-demo"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        LOG_DIR=str(tmp_path / "logs"),
        USER_FILE=str(tmp_path / "user.json"),
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Iterator[Session]:
    session = build_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db: Session) -> ProgressStore:
    return ProgressStore(db)


@pytest.fixture
def app(settings: Settings, engine: Engine):
    return create_app(settings, engine=engine, configure_logging=False)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
