from dataclasses import dataclass
from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings
from app.core.video_registry import VideoRegistry
from app.crud.crud_watch_state import ProgressStore
from app.db.session import session_scope
from app.services.progress_sync_service import ProgressSyncService


@dataclass
class AppContext:
    """
    Configuración construida al arrancar y compartida por las dependencias.
    Se guarda en app.state para que las pruebas puedan sustituir sus piezas.
    """
    settings: Settings
    registry: VideoRegistry
    session_factory: sessionmaker


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_db(context: AppContext = Depends(get_context)) -> Iterator[Session]:
    """
    Dependencia para obtener una sesión de base de datos.
    Asegura que la sesión se cierre siempre después de la petición.
    """
    yield from session_scope(context.session_factory)


def get_progress_store(db: Session = Depends(get_db)) -> ProgressStore:
    return ProgressStore(db)


def get_sync_service(
    context: AppContext = Depends(get_context),
    store: ProgressStore = Depends(get_progress_store),
) -> ProgressSyncService:
    return ProgressSyncService(
        registry=context.registry,
        store=store,
        gap_tolerance=context.settings.GAP_TOLERANCE_SECONDS,
        default_user_id=context.settings.DEFAULT_USER_ID,
    )
