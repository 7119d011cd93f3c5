import asyncio
import httpx
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from app.core.exceptions import SyncNetworkError
from app.core.identity import load_user_id
from app.utils.intervals import Interval

logger = logging.getLogger(__name__)


class ProgressSyncClient:
    """
    Cliente HTTP del reproductor para leer el estado de un video y enviar
    los segmentos vistos al servidor.

    Los envíos fallidos se reintentan con backoff exponencial acotado; si se
    agotan los intentos el segmento se registra y se descarta (no hay cola).
    """

    def __init__(
        self,
        base_url: str,
        video_name: str,
        user_id: Optional[str],
        timeout: float = 5.0,
        max_retries: int = 3,
        backoff_seconds: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self.video_name = video_name
        self.user_id = user_id
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.backoff_seconds = backoff_seconds
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, video_name: str, **kwargs) -> "ProgressSyncClient":
        return cls(
            base_url=settings.SYNC_BASE_URL,
            video_name=video_name,
            user_id=load_user_id(settings.USER_FILE),
            timeout=settings.SYNC_TIMEOUT_SECONDS,
            max_retries=settings.SYNC_MAX_RETRIES,
            backoff_seconds=settings.SYNC_BACKOFF_SECONDS,
            **kwargs
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def build_payload(self, segment: Optional[Interval], cursor_location: float) -> Dict[str, Any]:
        gaps = {}
        if segment is not None:
            gaps[str(segment.start)] = segment.end
        return {
            "videoName": self.video_name,
            "userId": self.user_id,
            "gaps": gaps,
            "cursor_location": cursor_location,
        }

    async def fetch_video(self) -> Dict[str, Any]:
        """
        Obtiene URL, cursor, progreso e intervalos del video.
        Lanza SyncNetworkError si la petición falla.
        """
        params = {"videoName": self.video_name}
        if self.user_id:
            params["userId"] = self.user_id
        try:
            async with self._client() as client:
                response = await client.get("/video", params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error fetching progression/video info: HTTP {e.response.status_code}")
            raise SyncNetworkError(f"Video fetch failed: HTTP {e.response.status_code}") from e
        except (httpx.RequestError, ValueError) as e:
            logger.error(f"Error fetching progression/video info: {str(e)}")
            raise SyncNetworkError(f"Video fetch failed: {str(e)}") from e

    async def _post_sync(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post("/progressionSync", json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise SyncNetworkError(f"HTTP {e.response.status_code}") from e
        except (httpx.RequestError, ValueError) as e:
            raise SyncNetworkError(str(e)) from e

    @staticmethod
    def _is_retryable(error: SyncNetworkError) -> bool:
        cause = error.__cause__
        if isinstance(cause, httpx.HTTPStatusError):
            return cause.response.status_code >= 500
        return isinstance(cause, httpx.RequestError)

    async def push_segment(self, segment: Optional[Interval], cursor_location: float) -> Optional[Dict[str, Any]]:
        """
        Envía un segmento visto. Devuelve la respuesta del servidor o None si
        el envío se descartó tras agotar los reintentos.
        """
        payload = self.build_payload(segment, cursor_location)
        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                result = await self._post_sync(payload)
                logger.info(f"Synced gaps: progress={result.get('progress')}")
                return result
            except SyncNetworkError as e:
                if not self._is_retryable(e) or attempt == attempts - 1:
                    logger.error(f"Failed to sync gaps after {attempt + 1} attempt(s): {str(e)}")
                    return None
                delay = self.backoff_seconds * (2 ** attempt)
                logger.warning(f"Sync attempt {attempt + 1}/{attempts} failed ({str(e)}), retrying in {delay}s")
                await self._sleep(delay)
        return None

    async def flush(self, segment: Optional[Interval], cursor_location: float) -> Optional[Dict[str, Any]]:
        """
        Envío final al cerrar la sesión: un solo intento, sin reintentos.
        """
        try:
            return await self._post_sync(self.build_payload(segment, cursor_location))
        except SyncNetworkError as e:
            logger.error(f"Failed to flush gaps on session end: {str(e)}")
            return None
