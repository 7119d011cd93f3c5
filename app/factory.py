# app/factory.py
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from app.api.v1.endpoints import health, metrics, progress
from app.core.config import Settings
from app.core.deps import AppContext
from app.core.logging_config import setup_logging
from app.core.video_registry import VideoRegistry
from app.db.models_registry import Base
from app.db.session import build_engine, build_session_factory
from middleware.request_logging import RequestLoggingMiddleware

logger = logging.getLogger('app')


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    registry: Optional[VideoRegistry] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Construye la aplicación a partir de una configuración explícita.
    Las pruebas pueden inyectar su propio engine y registro de videos.
    """
    settings = settings or Settings()
    if configure_logging:
        setup_logging(settings.LOG_DIR, settings.LOG_LEVEL)

    engine = engine or build_engine(settings.DATABASE_URI)
    Base.metadata.create_all(bind=engine)

    context = AppContext(
        settings=settings,
        registry=registry or VideoRegistry.from_settings(settings),
        session_factory=build_session_factory(engine),
    )

    app = FastAPI(
        title='Video Progress API',
        description='''
    ## Reanudación de video y progreso visto

    - **GET /video**: URL, última posición e intervalos vistos
    - **POST /progressionSync**: fusiona segmentos vistos y recalcula el progreso
    ''',
        version='1.0.0',
        openapi_url='/openapi.json',
        docs_url='/docs',
        redoc_url='/redoc'
    )
    app.state.context = context

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(progress.router, tags=['Video Progress'])
    app.include_router(health.router, prefix='/api/v1', tags=['Health Check'])
    app.include_router(metrics.router, tags=['Metrics'])

    logger.info(f"Video Progress API lista: videos={context.registry.names()}")
    return app
