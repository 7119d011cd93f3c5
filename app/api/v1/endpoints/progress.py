# app/api/v1/endpoints/progress.py
"""
Endpoints de reanudación de video y sincronización de intervalos vistos.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
import logging

from app.core.deps import get_sync_service
from app.core.exceptions import NotFoundError, StoreError
from app.schemas.progress import ProgressSyncRequest, ProgressSyncResponse, VideoResponse
from app.services.progress_sync_service import ProgressSyncService

router = APIRouter()
logger = logging.getLogger('app.progress.api')


@router.get(
    "/video",
    response_model=VideoResponse,
    summary="Abrir o reanudar un video",
    description="Devuelve la URL del video, la última posición y los intervalos ya vistos."
)
def open_video(
    videoName: Optional[str] = Query(None, description="Identificador del video"),
    userId: Optional[str] = Query(None, description="Identificador opaco del usuario"),
    service: ProgressSyncService = Depends(get_sync_service)
):
    """
    Obtiene (o crea) el estado de visualización del usuario.

    - **videoName**: debe existir en el registro de videos
    - **userId**: si falta se usa "anonymous"
    """
    try:
        state = service.open_video(userId, videoName)
    except NotFoundError as e:
        logger.warning(f"Video no encontrado: video={videoName}, user={userId}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Video not found") from e
    except StoreError as e:
        logger.error(f"Error recuperando video: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving video"
        ) from e

    return VideoResponse(
        url=state.url,
        cursor_location=state.cursor_location,
        progress=state.progress,
        intervals=state.intervals,
    )


@router.post(
    "/progressionSync",
    response_model=ProgressSyncResponse,
    summary="Sincronizar segmentos vistos",
    description="Fusiona los segmentos reportados con los persistidos y recalcula el progreso."
)
def progression_sync(
    request: ProgressSyncRequest,
    service: ProgressSyncService = Depends(get_sync_service)
):
    """
    Registra los segmentos vistos y el cursor actual.

    - **videoName**: identificador del video
    - **userId**: identificador del usuario (obligatorio)
    - **gaps**: mapa {inicio: fin}
    - **cursor_location**: posición actual
    """
    try:
        result = service.sync(
            request.userId,
            request.videoName,
            request.gaps,
            request.cursor_location,
        )
    except NotFoundError as e:
        logger.warning(f"Sync rechazado: {str(e)}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except StoreError as e:
        logger.error(f"Error sincronizando progreso: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error syncing progression"
        ) from e

    return ProgressSyncResponse(
        success=result.success,
        progress=result.progress,
        cursor_location=result.cursor_location,
    )
