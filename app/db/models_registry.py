# app/db/models_registry.py
# Este archivo importa todos los modelos para que Base.metadata los conozca
# antes de crear las tablas (arranque de la app y migraciones).

from app.db.base import Base
from app.models.watch_state import WatchState

__all__ = ["Base", "WatchState"]
