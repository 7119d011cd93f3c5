import logging
from typing import Any, Dict, Optional

from sqlalchemy import and_, insert as sa_insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StoreError
from app.models.watch_state import WatchState

logger = logging.getLogger(__name__)

SAVE_FIELDS = ("intervals", "cursor_location", "progress", "duration")

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ProgressStore:
    """
    Acceso a WatchState por la clave exacta (user_id, video_id).

    La creación es de un solo escritor: se delega en un INSERT ... ON CONFLICT
    DO NOTHING sobre la restricción única, de modo que accesos concurrentes a
    una clave nueva producen como máximo un registro por defecto.

    save() es un reemplazo completo "last write wins" sin token de versión:
    dos sincronizaciones simultáneas del mismo usuario/video pueden pisarse.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, user_id: str, video_id: str) -> Optional[WatchState]:
        return self.db.query(WatchState).filter(
            and_(
                WatchState.user_id == user_id,
                WatchState.video_id == video_id
            )
        ).first()

    def _insert_if_absent(self, values: Dict[str, Any]) -> bool:
        """Devuelve True solo si esta llamada insertó la fila."""
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is not None:
            stmt = insert(WatchState).values(**values).on_conflict_do_nothing(
                index_elements=["user_id", "video_id"]
            )
            result = self.db.execute(stmt)
            self.db.commit()
            return result.rowcount == 1

        # Otros motores: la restricción única decide quién gana.
        try:
            self.db.execute(sa_insert(WatchState).values(**values))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return False
        return True

    def get_or_create(self, user_id: str, video_id: str, duration: float) -> WatchState:
        """
        Obtiene el estado de visualización o lo crea con valores por defecto.
        """
        try:
            state = self.find(user_id, video_id)
            if state is not None:
                return state

            created = self._insert_if_absent({
                "user_id": user_id,
                "video_id": video_id,
                "intervals": [],
                "cursor_location": 0.0,
                "progress": 0.0,
                "duration": duration,
            })
            state = self.find(user_id, video_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error obteniendo progreso: user={user_id}, video={video_id}: {str(e)}")
            raise StoreError(f"Error al obtener el progreso: {str(e)}") from e

        if state is None:
            raise StoreError(f"No se pudo crear el progreso para user={user_id}, video={video_id}")

        if created:
            logger.info(f"Progreso creado: user={user_id}, video={video_id}")
        return state

    def save(self, user_id: str, video_id: str, update: Dict[str, Any]) -> WatchState:
        """
        Reemplaza los campos indicados (intervals, cursor_location, progress, duration)
        y devuelve el registro actualizado.
        """
        try:
            state = self.find(user_id, video_id)
            if state is None:
                raise StoreError(f"No existe progreso para user={user_id}, video={video_id}")

            for field in SAVE_FIELDS:
                if field in update:
                    setattr(state, field, update[field])

            self.db.commit()
            self.db.refresh(state)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error guardando progreso: user={user_id}, video={video_id}: {str(e)}")
            raise StoreError(f"Error al guardar el progreso: {str(e)}") from e

        logger.info(
            f"Progreso guardado: user={user_id}, video={video_id}, "
            f"intervals={len(state.intervals or [])}, progress={state.progress}"
        )
        return state
