# app/core/video_registry.py
"""
Registro estático de videos: nombre -> URL reproducible y duración de referencia.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from app.core.exceptions import VideoNotFoundError

logger = logging.getLogger(__name__)

SINTEL_URL = "http://commondatastorage.googleapis.com/gtv-videos-bucket/sample/Sintel.mp4"


@dataclass(frozen=True)
class VideoEntry:
    url: str
    duration: float


class VideoRegistry:
    def __init__(self, videos: Mapping[str, VideoEntry]):
        self._videos: Dict[str, VideoEntry] = dict(videos)

    def __contains__(self, name) -> bool:
        return bool(name) and name in self._videos

    def names(self):
        return sorted(self._videos)

    def get(self, name: Optional[str]) -> VideoEntry:
        if not name or name not in self._videos:
            raise VideoNotFoundError(name)
        return self._videos[name]

    @classmethod
    def default(cls, duration: float = 888.0) -> "VideoRegistry":
        # Puedes agregar más videos aquí con su URL y duración
        return cls({"Sintel-blender-demo": VideoEntry(url=SINTEL_URL, duration=duration)})

    @classmethod
    def from_file(cls, path: str, default_duration: float = 888.0) -> "VideoRegistry":
        """
        Carga el registro desde un JSON con la forma:
        {"nombre": {"url": "...", "duration": 888.0}} o {"nombre": "url"}.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        videos = {}
        for name, value in data.items():
            if isinstance(value, str):
                videos[name] = VideoEntry(url=value, duration=default_duration)
            else:
                videos[name] = VideoEntry(
                    url=value["url"],
                    duration=float(value.get("duration", default_duration)),
                )
        logger.info(f"Registro de videos cargado desde {path}: {len(videos)} videos")
        return cls(videos)

    @classmethod
    def from_settings(cls, settings) -> "VideoRegistry":
        if settings.VIDEO_REGISTRY_FILE:
            return cls.from_file(settings.VIDEO_REGISTRY_FILE, settings.DEFAULT_VIDEO_DURATION)
        return cls.default(settings.DEFAULT_VIDEO_DURATION)
