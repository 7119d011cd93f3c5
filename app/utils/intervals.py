# app/utils/intervals.py
"""
Modelo de intervalos vistos de un video.

Un intervalo [start, end) representa un rango continuo de tiempo del video que
el usuario ya visualizó. Este módulo es compartido por el servicio (progreso
persistido) y por el rastreador de reproducción (overlay local), de modo que
ambos lados calculan la cobertura con el mismo algoritmo.
"""
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Union

from app.core.exceptions import IntervalValidationError

logger = logging.getLogger(__name__)

DEFAULT_GAP_TOLERANCE = 30.0

Number = Union[int, float, str]


@dataclass(frozen=True, order=True)
class Interval:
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start

    def to_dict(self) -> Dict[str, float]:
        return {"start": self.start, "end": self.end}


def _to_float(value: Any) -> float:
    # El reproductor web envía {start: [end]}, por eso se acepta una lista de un elemento.
    if isinstance(value, (list, tuple)):
        if len(value) != 1:
            raise IntervalValidationError(f"Valor no numérico: {value!r}")
        value = value[0]
    if isinstance(value, bool):
        raise IntervalValidationError(f"Valor no numérico: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise IntervalValidationError(f"Valor no numérico: {value!r}")
    if not math.isfinite(number):
        raise IntervalValidationError(f"Valor no finito: {value!r}")
    return number


def parse_interval(start: Any, end: Any) -> Interval:
    """
    Construye un Interval validado.

    Lanza IntervalValidationError si algún extremo no es un número finito,
    si start es negativo o si end <= start.
    """
    start_f = _to_float(start)
    end_f = _to_float(end)
    if start_f < 0:
        raise IntervalValidationError(f"Inicio negativo: {start_f}")
    if end_f <= start_f:
        raise IntervalValidationError(f"Intervalo vacío o invertido: {start_f} -> {end_f}")
    return Interval(start_f, end_f)


def parse_segments(segments: Mapping[Any, Any]) -> List[Interval]:
    """
    Convierte el mapa {inicio: fin} recibido del cliente en intervalos.
    Las entradas inválidas se descartan: la telemetría ruidosa no debe bloquear datos legítimos.
    """
    parsed = []
    for start, end in (segments or {}).items():
        try:
            parsed.append(parse_interval(start, end))
        except IntervalValidationError as e:
            logger.debug(f"Segmento descartado {start!r}: {end!r} ({e})")
    return parsed


def from_records(records: Iterable[Any]) -> List[Interval]:
    """Lee intervalos persistidos ({"start", "end"}), ignorando registros corruptos."""
    intervals = []
    for record in records or []:
        try:
            if isinstance(record, Interval):
                intervals.append(record)
            else:
                intervals.append(parse_interval(record["start"], record["end"]))
        except (IntervalValidationError, KeyError, TypeError) as e:
            logger.warning(f"Intervalo persistido inválido ignorado: {record!r} ({e})")
    return intervals


def to_records(intervals: Iterable[Interval]) -> List[Dict[str, float]]:
    return [interval.to_dict() for interval in intervals]


def _is_valid(interval: Interval) -> bool:
    return (
        math.isfinite(interval.start)
        and math.isfinite(interval.end)
        and interval.start >= 0
        and interval.end > interval.start
    )


def merge_intervals(
    existing: Iterable[Interval],
    incoming: Iterable[Interval] = (),
    gap_tolerance: float = DEFAULT_GAP_TOLERANCE,
) -> List[Interval]:
    """
    Fusiona dos colecciones de intervalos con tolerancia de hueco.

    Se concatenan ambas colecciones, se ordenan por inicio y se recorren una
    sola vez: si el siguiente intervalo empieza a gap_tolerance o menos del
    final acumulado, se extiende el acumulado; si no, se emite y se empieza
    uno nuevo. El resultado es ordenado y no depende del orden de entrada.
    """
    candidates = sorted(
        interval for interval in [*existing, *incoming] if _is_valid(interval)
    )
    if not candidates:
        return []

    merged = []
    acc_start, acc_end = candidates[0].start, candidates[0].end
    for interval in candidates[1:]:
        if interval.start - acc_end <= gap_tolerance:
            acc_end = max(acc_end, interval.end)
        else:
            merged.append(Interval(acc_start, acc_end))
            acc_start, acc_end = interval.start, interval.end
    merged.append(Interval(acc_start, acc_end))
    return merged


def covered_duration(intervals: Iterable[Interval]) -> float:
    return sum(interval.end - interval.start for interval in intervals)
