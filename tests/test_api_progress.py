from __future__ import annotations

from fastapi.testclient import TestClient

from app.core.deps import get_progress_store
from app.core.exceptions import StoreError

SINTEL = "Sintel-blender-demo"


def test_first_open_returns_defaults(client: TestClient) -> None:
    response = client.get("/video", params={"videoName": SINTEL, "userId": "u1"})

    assert response.status_code == 200
    body = response.json()
    assert body["url"].endswith("Sintel.mp4")
    assert body["cursor_location"] == 0
    assert body["progress"] == 0
    assert body["intervals"] == []
    assert response.headers["X-Request-ID"].startswith("req_")


def test_sync_then_resume_scenario(client: TestClient) -> None:
    client.get("/video", params={"videoName": SINTEL, "userId": "u1"})

    sync = client.post("/progressionSync", json={
        "videoName": SINTEL,
        "userId": "u1",
        "gaps": {"0": "100"},
        "cursor_location": 100,
    })
    assert sync.status_code == 200
    assert sync.json() == {"success": True, "progress": 11.26, "cursor_location": 100}

    resumed = client.get("/video", params={"videoName": SINTEL, "userId": "u1"}).json()
    assert resumed["intervals"] == [{"start": 0, "end": 100}]
    assert resumed["cursor_location"] == 100
    assert resumed["progress"] == 11.26


def test_sync_accepts_browser_list_values(client: TestClient) -> None:
    response = client.post("/progressionSync", json={
        "videoName": SINTEL,
        "userId": 42,
        "gaps": {"10": [40]},
        "cursor_location": 40,
    })
    assert response.status_code == 200

    resumed = client.get("/video", params={"videoName": SINTEL, "userId": "42"}).json()
    assert resumed["intervals"] == [{"start": 10, "end": 40}]


def test_malformed_gaps_are_not_persisted(client: TestClient) -> None:
    response = client.post("/progressionSync", json={
        "videoName": SINTEL,
        "userId": "u2",
        "gaps": {"abc": "xyz", "10": "5"},
        "cursor_location": 10,
    })
    assert response.status_code == 200
    assert response.json()["progress"] == 0

    resumed = client.get("/video", params={"videoName": SINTEL, "userId": "u2"}).json()
    assert resumed["intervals"] == []
    assert resumed["cursor_location"] == 10


def test_users_are_isolated(client: TestClient) -> None:
    client.post("/progressionSync", json={
        "videoName": SINTEL, "userId": "a", "gaps": {"0": "50"}, "cursor_location": 50,
    })

    other = client.get("/video", params={"videoName": SINTEL, "userId": "b"}).json()
    assert other["intervals"] == []


def test_unknown_video_is_not_found(client: TestClient) -> None:
    assert client.get("/video", params={"videoName": "doesnotexist"}).status_code == 404
    assert client.get("/video").status_code == 404

    response = client.post("/progressionSync", json={
        "videoName": "doesnotexist", "userId": "u1", "gaps": {}, "cursor_location": 0,
    })
    assert response.status_code == 404


def test_sync_without_user_is_not_found(client: TestClient) -> None:
    response = client.post("/progressionSync", json={
        "videoName": SINTEL, "gaps": {"0": "10"}, "cursor_location": 10,
    })
    assert response.status_code == 404


def test_store_failure_is_server_error(app, client: TestClient) -> None:
    class FailingStore:
        def get_or_create(self, user_id, video_id, duration):
            raise StoreError("corrupted")

        def save(self, user_id, video_id, update):
            raise StoreError("corrupted")

    app.dependency_overrides[get_progress_store] = lambda: FailingStore()
    try:
        sync = client.post("/progressionSync", json={
            "videoName": SINTEL, "userId": "u1", "gaps": {"0": "10"}, "cursor_location": 10,
        })
        read = client.get("/video", params={"videoName": SINTEL, "userId": "u1"})
    finally:
        app.dependency_overrides.clear()

    assert sync.status_code == 500
    assert read.status_code == 500


def test_health_and_metrics(client: TestClient) -> None:
    health = client.get("/api/v1/health")
    assert health.status_code == 200
    assert health.json()["services"]["database"]["status"] == "healthy"
    assert SINTEL in health.json()["videos"]

    client.post("/progressionSync", json={
        "videoName": SINTEL, "userId": "u1", "gaps": {"0": "10"}, "cursor_location": 10,
    })
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "watchtrack_progress_syncs_total" in metrics.text
