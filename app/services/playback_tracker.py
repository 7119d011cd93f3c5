"""
Rastreo de reproducción del lado del cliente.

El reproductor muestrea la posición periódicamente (p. ej. cada segundo). Cada
muestra se clasifica como continuación del segmento actual o como un salto
(seek). Al detectar un salto, el segmento anterior se envía al servidor sin
esperar la respuesta, y se abre uno nuevo en la posición actual.

Las entradas son explícitas (on_tick / on_session_end) para poder probar el
flujo con secuencias sintéticas de posiciones, sin temporizadores reales.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Set

from app.utils.intervals import (
    DEFAULT_GAP_TOLERANCE,
    Interval,
    from_records,
    merge_intervals,
    to_records,
)
from app.utils.progress import overlay_spans, progress_for

logger = logging.getLogger(__name__)

SegmentSender = Callable[[Optional[Interval], float], Awaitable[Any]]


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def resume_position(cursor_location: Optional[float], media_duration: Optional[float]) -> Optional[float]:
    """Posición a la que saltar al cargar los metadatos, o None si no aplica."""
    if cursor_location is None or media_duration is None or math.isnan(media_duration):
        return None
    if 0 < cursor_location < media_duration:
        return cursor_location
    return None


@dataclass
class Segment:
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start

    def freeze(self) -> Interval:
        return Interval(self.start, self.end)


class ContinuityTracker:
    """
    Clasifica cada posición observada como continua o discontinua.

    Es continua si round(t - última) <= round(velocidad) y t >= inicio del
    segmento actual; en ese caso solo se extiende el final del segmento.
    """

    def __init__(self, playback_rate: float = 1.0, gap_tolerance: float = DEFAULT_GAP_TOLERANCE):
        self.playback_rate = playback_rate
        self.gap_tolerance = gap_tolerance
        self.current_segment = Segment(0.0, 0.0)
        self.last_observed_time = 0.0
        self._segments: List[Segment] = []

    def seed(self, intervals: Iterable[Any], cursor: Optional[float] = None) -> None:
        """
        Carga los intervalos confirmados por el servidor como historial fijo.

        El segmento actual continúa el último intervalo solo si el cursor cae
        dentro de él (start <= cursor <= end); si no, empieza vacío en el
        cursor. Sin cursor se toma el final del último intervalo.
        """
        parsed = from_records(intervals)
        self._segments = [Segment(i.start, i.end) for i in parsed]
        last = parsed[-1] if parsed else None
        if cursor is None:
            cursor = last.end if last is not None else 0.0
        cursor = float(cursor)

        if last is not None and last.start <= cursor <= last.end:
            self.current_segment = Segment(last.start, cursor)
        else:
            self.current_segment = Segment(cursor, cursor)
        self.last_observed_time = cursor

    def is_continuous(self, position: float) -> bool:
        delta = position - self.last_observed_time
        return (
            _round_half_up(delta) <= _round_half_up(self.playback_rate)
            and position >= self.current_segment.start
        )

    def observe(self, position: float) -> Optional[Interval]:
        """
        Registra una muestra. Devuelve el segmento cerrado si hubo un salto
        y ese segmento acumuló duración; si no, None.
        """
        closed = None
        if self.is_continuous(position):
            self.current_segment.end = position
        else:
            previous = self.current_segment
            if previous.length > 0:
                self._segments.append(previous)
                closed = previous.freeze()
            self.current_segment = Segment(position, position)
        self.last_observed_time = position
        return closed

    def close(self) -> Optional[Interval]:
        segment = self.current_segment
        return segment.freeze() if segment.length > 0 else None

    def watched_intervals(self) -> List[Interval]:
        # El segmento actual nunca está en _segments: se fusiona aparte.
        segments = [*self._segments, self.current_segment]
        return merge_intervals([s.freeze() for s in segments], gap_tolerance=self.gap_tolerance)

    def percent_complete(self, duration: float) -> float:
        return progress_for(self.watched_intervals(), duration)

    def overlay(self, duration: float):
        return overlay_spans(self.watched_intervals(), duration)


class PlaybackSyncScheduler:
    """
    Une el rastreador con el envío al servidor.

    Los envíos se lanzan como tareas asyncio sin esperar su resultado: la UI se
    actualiza de inmediato y se reconcilia con el servidor en la siguiente
    lectura completa (apply_server_state).
    """

    def __init__(
        self,
        tracker: ContinuityTracker,
        push: SegmentSender,
        flush: Optional[SegmentSender] = None,
    ):
        self.tracker = tracker
        self._push = push
        self._flush = flush or push
        self._pending: Set[asyncio.Task] = set()
        self.cursor_location = 0.0
        self.closed = False

    def set_playback_rate(self, rate: float) -> None:
        self.tracker.playback_rate = rate

    def apply_server_state(self, intervals: Iterable[Any], cursor_location: Optional[float] = None) -> None:
        self.tracker.seed(intervals, cursor_location)
        self.cursor_location = self.tracker.last_observed_time

    def on_tick(self, position: float, paused: bool = False, seeking: bool = False) -> Optional[asyncio.Task]:
        if self.closed or paused or seeking:
            return None
        closed = self.tracker.observe(position)
        self.cursor_location = position
        if closed is None:
            return None
        return self._spawn(self._push, closed, position)

    def on_session_end(self, position: Optional[float] = None) -> Optional[asyncio.Task]:
        """
        Último envío al abandonar la página; sin reintentos posibles después.
        Se envía siempre, aunque no haya segmento, para guardar el cursor.
        """
        if self.closed:
            return None
        self.closed = True
        if position is not None:
            self.cursor_location = position
        segment = self.tracker.close()
        return self._spawn(self._flush, segment, self.cursor_location)

    def _spawn(self, sender: SegmentSender, segment: Optional[Interval], cursor: float) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(sender(segment, cursor))
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Failed to sync gaps: {error}")

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)


class PlaybackSession:
    """
    Sesión de reproducción de un video: lectura inicial, rastreo y envíos.
    """

    def __init__(self, client, playback_rate: float = 1.0, gap_tolerance: float = DEFAULT_GAP_TOLERANCE):
        self.client = client
        self.tracker = ContinuityTracker(playback_rate, gap_tolerance)
        self.scheduler = PlaybackSyncScheduler(self.tracker, client.push_segment, client.flush)
        self.url: Optional[str] = None
        self.server_progress = 0.0

    async def open(self, media_duration: Optional[float] = None) -> Optional[float]:
        """
        Carga el estado del servidor y devuelve la posición desde la que reanudar.
        """
        data = await self.client.fetch_video()
        self.url = data.get("url")
        self.server_progress = float(data.get("progress") or 0)
        cursor = float(data.get("cursor_location") or 0)
        self.scheduler.apply_server_state(data.get("intervals") or [], cursor)
        return resume_position(cursor, media_duration)

    def snapshot(self, duration: float) -> dict:
        intervals = self.tracker.watched_intervals()
        return {
            "percent_complete": progress_for(intervals, duration),
            "intervals": to_records(intervals),
            "cursor_location": self.scheduler.cursor_location,
        }
