# app/core/config.py
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, computed_field


class Settings(BaseSettings):
    """
    Gestiona la configuración de la aplicación cargando variables de entorno.
    Utiliza Pydantic para la validación de tipos.
    """
    model_config = SettingsConfigDict(
        env_file=".env", env_ignore_case=True, extra="ignore"
    )

    # --- Base de datos ---
    # Si POSTGRES_SERVER está definido se usa PostgreSQL, si no SQLite local.
    DATABASE_URL: str = "sqlite:///./progression.db"
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_PORT: int = 5432

    # --- Progreso de video ---
    GAP_TOLERANCE_SECONDS: float = 30.0
    DEFAULT_USER_ID: str = "anonymous"
    DEFAULT_VIDEO_DURATION: float = 888.0
    VIDEO_REGISTRY_FILE: Optional[str] = None
    USER_FILE: str = "user.json"

    # --- Servidor ---
    PORT: int = 3000
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # --- Logging ---
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # --- Cliente de sincronización ---
    SYNC_BASE_URL: str = "http://localhost:3000"
    SYNC_TIMEOUT_SECONDS: float = 5.0
    SYNC_MAX_RETRIES: int = 3
    SYNC_BACKOFF_SECONDS: float = 0.5

    @computed_field
    @property
    def DATABASE_URI(self) -> str:
        """
        Genera la URI de conexión a la base de datos en formato SQLAlchemy.
        Pydantic validará que la URI construida sea correcta.
        """
        if not self.POSTGRES_SERVER:
            return self.DATABASE_URL
        dsn = PostgresDsn.build(
            scheme="postgresql+psycopg2",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_SERVER,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        )
        return str(dsn)


# Instancia única de la configuración que será usada en toda la aplicación.
settings = Settings()
