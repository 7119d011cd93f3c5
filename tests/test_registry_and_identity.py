from __future__ import annotations

import json

import pytest

from app.core.exceptions import VideoNotFoundError
from app.core.identity import load_user_id
from app.core.video_registry import SINTEL_URL, VideoRegistry


def test_default_registry_has_sintel() -> None:
    registry = VideoRegistry.default()
    entry = registry.get("Sintel-blender-demo")

    assert entry.url == SINTEL_URL
    assert entry.duration == 888.0
    assert "Sintel-blender-demo" in registry
    assert "" not in registry


def test_unknown_video_raises() -> None:
    with pytest.raises(VideoNotFoundError):
        VideoRegistry.default().get("doesnotexist")


def test_registry_from_file(tmp_path, settings) -> None:
    path = tmp_path / "videos.json"
    path.write_text(json.dumps({
        "intro": {"url": "http://example.com/intro.mp4", "duration": 60},
        "outro": "http://example.com/outro.mp4",
    }), encoding="utf-8")
    settings.VIDEO_REGISTRY_FILE = str(path)

    registry = VideoRegistry.from_settings(settings)

    assert registry.names() == ["intro", "outro"]
    assert registry.get("intro").duration == 60.0
    assert registry.get("outro").duration == settings.DEFAULT_VIDEO_DURATION


def test_load_user_id(tmp_path) -> None:
    path = tmp_path / "user.json"
    path.write_text(json.dumps({"uid": 7}), encoding="utf-8")
    assert load_user_id(str(path)) == "7"


def test_load_user_id_missing_or_invalid(tmp_path) -> None:
    assert load_user_id(str(tmp_path / "missing.json")) is None

    path = tmp_path / "user.json"
    path.write_text("not json", encoding="utf-8")
    assert load_user_id(str(path)) is None

    path.write_text(json.dumps({"name": "x"}), encoding="utf-8")
    assert load_user_id(str(path)) is None
