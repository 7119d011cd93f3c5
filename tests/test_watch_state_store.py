from __future__ import annotations

import threading
from typing import List

import pytest
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError
from app.crud.crud_watch_state import ProgressStore
from app.db.models_registry import Base
from app.db.session import build_engine, build_session_factory
from app.models.watch_state import WatchState


def test_get_or_create_inserts_defaults(store: ProgressStore) -> None:
    state = store.get_or_create("u1", "Sintel-blender-demo", 888.0)

    assert state.user_id == "u1"
    assert state.video_id == "Sintel-blender-demo"
    assert state.intervals == []
    assert state.cursor_location == 0
    assert state.progress == 0
    assert state.duration == 888.0


def test_get_or_create_returns_existing_record(store: ProgressStore, db: Session) -> None:
    first = store.get_or_create("u1", "v", 100.0)
    second = store.get_or_create("u1", "v", 999.0)

    assert first.id == second.id
    assert second.duration == 100.0
    assert db.query(WatchState).count() == 1


def test_insert_if_absent_never_duplicates(store: ProgressStore, db: Session) -> None:
    values = {
        "user_id": "u1",
        "video_id": "v",
        "intervals": [],
        "cursor_location": 0.0,
        "progress": 0.0,
        "duration": 10.0,
    }
    assert store._insert_if_absent(values) is True
    assert store._insert_if_absent(dict(values, duration=20.0)) is False

    rows = db.query(WatchState).all()
    assert len(rows) == 1
    assert rows[0].duration == 10.0


def test_concurrent_first_access_creates_one_record(tmp_path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'progress.db'}")
    Base.metadata.create_all(bind=engine)
    factory = build_session_factory(engine)
    ids: List[int] = []
    errors: List[BaseException] = []
    barrier = threading.Barrier(5)

    def worker() -> None:
        session = factory()
        try:
            barrier.wait()
            ids.append(ProgressStore(session).get_or_create("u1", "v", 50.0).id)
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(set(ids)) == 1
    session = factory()
    try:
        assert session.query(WatchState).count() == 1
    finally:
        session.close()
        engine.dispose()


def test_save_replaces_fields(store: ProgressStore) -> None:
    store.get_or_create("u1", "v", 888.0)
    updated = store.save("u1", "v", {
        "intervals": [{"start": 0.0, "end": 100.0}],
        "cursor_location": 100.0,
        "progress": 11.26,
        "duration": 888.0,
    })

    assert updated.intervals == [{"start": 0.0, "end": 100.0}]
    assert updated.cursor_location == 100.0
    assert updated.progress == 11.26

    replaced = store.save("u1", "v", {"intervals": [{"start": 5.0, "end": 6.0}]})
    assert replaced.intervals == [{"start": 5.0, "end": 6.0}]
    assert replaced.cursor_location == 100.0


def test_save_without_record_raises_store_error(store: ProgressStore) -> None:
    with pytest.raises(StoreError):
        store.save("ghost", "v", {"progress": 1.0})


def test_storage_failure_is_reported_as_store_error(store: ProgressStore, engine) -> None:
    Base.metadata.drop_all(bind=engine)

    with pytest.raises(StoreError):
        store.get_or_create("u1", "v", 10.0)
