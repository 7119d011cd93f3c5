"""
Servicio de sincronización de progreso de video.

Recibe los segmentos vistos que reporta el reproductor, los fusiona con los
intervalos persistidos y recalcula el porcentaje visto.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from app.core.exceptions import MissingIdentityError, StoreError
from app.core.logging_config import get_progress_logger
from app.core.metrics import progress_syncs_total, segments_discarded_total
from app.core.video_registry import VideoRegistry
from app.crud.crud_watch_state import ProgressStore
from app.utils.intervals import (
    DEFAULT_GAP_TOLERANCE,
    covered_duration,
    from_records,
    merge_intervals,
    parse_segments,
    to_records,
)
from app.utils.progress import percent


@dataclass
class VideoState:
    url: str
    cursor_location: float
    progress: float
    intervals: List[Dict[str, float]] = field(default_factory=list)


@dataclass
class SyncResult:
    progress: float
    cursor_location: Optional[float]
    intervals: List[Dict[str, float]] = field(default_factory=list)
    success: bool = True


class ProgressSyncService:
    def __init__(
        self,
        registry: VideoRegistry,
        store: ProgressStore,
        gap_tolerance: float = DEFAULT_GAP_TOLERANCE,
        default_user_id: str = "anonymous",
    ):
        self.registry = registry
        self.store = store
        self.gap_tolerance = gap_tolerance
        self.default_user_id = default_user_id

    def open_video(self, user_id: Optional[str], video_name: Optional[str]) -> VideoState:
        """
        Ruta de lectura: abre o reanuda un video.
        Crea el estado por defecto si es el primer acceso del usuario.
        """
        video = self.registry.get(video_name)
        user_id = user_id or self.default_user_id

        state = self.store.get_or_create(user_id, video_name, video.duration)
        return VideoState(
            url=video.url,
            cursor_location=state.cursor_location,
            progress=state.progress,
            intervals=to_records(from_records(state.intervals)),
        )

    def sync(
        self,
        user_id: Optional[str],
        video_name: Optional[str],
        gaps: Mapping[str, Any],
        cursor_location: Optional[float] = None,
    ) -> SyncResult:
        """
        Fusiona los segmentos nuevos con los persistidos y guarda el resultado.

        - **user_id**: obligatorio, si falta se lanza MissingIdentityError
        - **video_name**: debe existir en el registro de videos
        - **gaps**: mapa {inicio: fin}; las entradas inválidas se descartan
        - **cursor_location**: última posición; si falta se conserva la guardada
        """
        logger = get_progress_logger(user_id, video_name)
        logger.info(f"Syncing progression for user={user_id}, video={video_name} {dict(gaps or {})}")

        try:
            if not user_id:
                raise MissingIdentityError()
            video = self.registry.get(video_name)

            state = self.store.get_or_create(user_id, video_name, video.duration)
            existing = from_records(state.intervals)

            incoming = parse_segments(gaps)
            discarded = len(gaps or {}) - len(incoming)
            if discarded:
                segments_discarded_total.inc(discarded)
                logger.info(f"Segmentos descartados por formato inválido: {discarded}")

            merged = merge_intervals(existing, incoming, self.gap_tolerance)

            duration = state.duration if state.duration and state.duration > 0 else 1.0
            progress = percent(covered_duration(merged), duration)
            if cursor_location is None:
                cursor_location = state.cursor_location

            self.store.save(user_id, video_name, {
                "intervals": to_records(merged),
                "cursor_location": cursor_location,
                "progress": progress,
                "duration": duration,
            })
        except StoreError:
            progress_syncs_total.labels(status="error").inc()
            raise
        except Exception:
            progress_syncs_total.labels(status="rejected").inc()
            raise

        progress_syncs_total.labels(status="success").inc()
        logger.info(
            f"Progreso sincronizado: intervals={len(merged)}, progress={progress}%",
            extra={"progress": progress},
        )
        return SyncResult(
            progress=progress,
            cursor_location=cursor_location,
            intervals=to_records(merged),
        )
