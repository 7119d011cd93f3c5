# app/utils/progress.py
from typing import Iterable, List, Tuple

from app.utils.intervals import Interval, covered_duration


def percent(covered: float, total: float) -> float:
    """
    Porcentaje visto, acotado a [0, 100] y redondeado a 2 decimales.
    Una duración total <= 0 se trata como 1 para no dividir entre cero.
    """
    if total <= 0:
        total = 1.0
    value = (covered / total) * 100
    return round(min(100.0, max(0.0, value)), 2)


def progress_for(intervals: Iterable[Interval], duration: float) -> float:
    return percent(covered_duration(intervals), duration)


def overlay_spans(intervals: Iterable[Interval], duration: float) -> List[Tuple[float, float]]:
    """
    Posición (left %, width %) de cada intervalo sobre la barra de progreso.
    """
    if duration <= 0:
        duration = 1.0
    return [
        ((interval.start / duration) * 100, ((interval.end - interval.start) / duration) * 100)
        for interval in intervals
    ]
