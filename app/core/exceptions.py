# app/core/exceptions.py
"""
Errores del dominio de progreso de video.

Cada error queda acotado a una sola petición; ninguno es fatal para el proceso.
"""


class ProgressError(Exception):
    """Error base del módulo de progreso."""


class NotFoundError(ProgressError):
    """Recurso o identidad inexistente. Se expone como 404, sin reintento."""


class VideoNotFoundError(NotFoundError):
    def __init__(self, video_name):
        self.video_name = video_name
        super().__init__(f"Video not found: {video_name!r}")


class MissingIdentityError(NotFoundError):
    def __init__(self):
        super().__init__("id not found")


class IntervalValidationError(ProgressError, ValueError):
    """Intervalo mal formado. Se descarta en silencio al sincronizar."""


class StoreError(ProgressError):
    """Fallo del almacenamiento subyacente (I/O, corrupción). Se expone como 500."""


class SyncNetworkError(ProgressError):
    """Fallo del envío cliente -> servidor. Se registra y se descarta."""
