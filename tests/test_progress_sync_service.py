from __future__ import annotations

import pytest

from app.core.exceptions import MissingIdentityError, StoreError, VideoNotFoundError
from app.core.video_registry import VideoEntry, VideoRegistry
from app.crud.crud_watch_state import ProgressStore
from app.services.progress_sync_service import ProgressSyncService


@pytest.fixture
def registry() -> VideoRegistry:
    return VideoRegistry({
        "short": VideoEntry(url="http://example.com/short.mp4", duration=200.0),
        "broken": VideoEntry(url="http://example.com/broken.mp4", duration=0.0),
    })


@pytest.fixture
def service(registry: VideoRegistry, store: ProgressStore) -> ProgressSyncService:
    return ProgressSyncService(registry, store, gap_tolerance=30)


def test_open_video_defaults_to_anonymous_user(service: ProgressSyncService, store: ProgressStore) -> None:
    state = service.open_video(None, "short")

    assert state.url == "http://example.com/short.mp4"
    assert state.cursor_location == 0
    assert state.progress == 0
    assert state.intervals == []
    assert store.find("anonymous", "short") is not None


def test_open_video_unknown_name(service: ProgressSyncService) -> None:
    with pytest.raises(VideoNotFoundError):
        service.open_video("u1", "doesnotexist")
    with pytest.raises(VideoNotFoundError):
        service.open_video("u1", None)


def test_sync_requires_user(service: ProgressSyncService) -> None:
    with pytest.raises(MissingIdentityError):
        service.sync(None, "short", {"0": "10"}, 10)
    with pytest.raises(MissingIdentityError):
        service.sync("", "short", {"0": "10"}, 10)


def test_sync_merges_with_existing_intervals(service: ProgressSyncService) -> None:
    service.sync("u1", "short", {"0": "50"}, 50)
    result = service.sync("u1", "short", {"70": "100", "150": "160"}, 160)

    assert result.success is True
    assert result.intervals == [{"start": 0.0, "end": 100.0}, {"start": 150.0, "end": 160.0}]
    assert result.progress == 55.0
    assert result.cursor_location == 160


def test_sync_discards_malformed_segments(service: ProgressSyncService, store: ProgressStore) -> None:
    result = service.sync("u1", "short", {"abc": "xyz", "10": "5", "20": "40"}, 40)

    assert result.intervals == [{"start": 20.0, "end": 40.0}]
    assert store.find("u1", "short").intervals == [{"start": 20.0, "end": 40.0}]


def test_sync_keeps_cursor_when_missing(service: ProgressSyncService) -> None:
    service.sync("u1", "short", {}, 42)
    result = service.sync("u1", "short", {"0": "10"}, None)

    assert result.cursor_location == 42


def test_sync_progress_is_capped(service: ProgressSyncService) -> None:
    result = service.sync("u1", "short", {"0": "500"}, 500)
    assert result.progress == 100.0


def test_sync_with_non_positive_duration_falls_back_to_one(service: ProgressSyncService, store: ProgressStore) -> None:
    result = service.sync("u1", "broken", {"0": "0.5"}, 0.5)

    assert result.progress == 50.0
    assert store.find("u1", "broken").duration == 1.0


def test_store_failure_propagates(registry: VideoRegistry) -> None:
    class FailingStore:
        def get_or_create(self, user_id, video_id, duration):
            raise StoreError("disk on fire")

    service = ProgressSyncService(registry, FailingStore())
    with pytest.raises(StoreError):
        service.sync("u1", "short", {"0": "10"}, 10)
