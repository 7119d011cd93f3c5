import logging
import logging.config
import json
from datetime import datetime
from typing import Dict, Any
from pathlib import Path


# Campos de contexto que se copian del LogRecord al JSON si existen
CONTEXT_FIELDS = (
    "service",
    "endpoint",
    "method",
    "status_code",
    "response_time_ms",
    "request_id",
    "user_id",
    "video_id",
    "progress",
    "error_code",
)


class StructuredFormatter(logging.Formatter):
    """
    Formatter que genera logs en formato JSON estructurado
    para facilitar la integración con sistemas de monitoreo
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process": record.process,
            "thread": record.thread,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        # Agregar información de excepción si existe
        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def build_logging_config(log_dir: Path, level: str = "INFO") -> Dict[str, Any]:
    def rotating(filename: str, file_level: str, backups: int = 10) -> Dict[str, Any]:
        return {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "structured",
            "filename": str(log_dir / filename),
            "maxBytes": 10485760,  # 10MB
            "backupCount": backups,
            "level": file_level,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "simple": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "simple",
                "level": level,
                "stream": "ext://sys.stdout"
            },
            "file_all": rotating("app.log", level),
            "file_errors": rotating("errors.log", "ERROR"),
            "file_progress": rotating("progress.log", level, backups=5),
            "file_api": rotating("api.log", level),
        },
        "loggers": {
            "app": {
                "level": level,
                "handlers": ["console", "file_all", "file_errors"],
                "propagate": False
            },
            "app.progress": {
                "level": level,
                "handlers": ["console", "file_progress", "file_errors"],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": ["console", "file_api"],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": ["file_api"],
                "propagate": False
            },
            "fastapi": {
                "level": "INFO",
                "handlers": ["console", "file_api"],
                "propagate": False
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console", "file_all"]
        }
    }


def setup_logging(log_dir: str = "logs", level: str = "INFO") -> None:
    """
    Configura el sistema de logging con rotación y formato estructurado
    para integración con sistemas de monitoreo
    """
    # Crear directorio de logs si no existe
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(build_logging_config(path, level.upper()))

    logger = logging.getLogger("app")
    logger.info("Logging system initialized successfully")
    logger.info(f"Log files will be stored in: {path.absolute()}")


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter personalizado para agregar contexto adicional a los logs
    """

    def __init__(self, logger: logging.Logger, extra: Dict[str, Any] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        if self.extra:
            kwargs.setdefault('extra', {}).update(self.extra)

        return msg, kwargs


def get_progress_logger(user_id: str = None, video_id: str = None) -> LoggerAdapter:
    """
    Obtiene un logger para operaciones de progreso con el contexto usuario/video
    """
    base_logger = logging.getLogger("app.progress")
    extra = {"service": "progress"}
    if user_id is not None:
        extra["user_id"] = user_id
    if video_id is not None:
        extra["video_id"] = video_id
    return LoggerAdapter(base_logger, extra)


def log_api_request(logger: logging.Logger, method: str, endpoint: str,
                   status_code: int = None, response_time_ms: int = None,
                   **kwargs):
    """
    Registra información de una petición API con contexto estructurado

    Args:
        logger: Logger a usar
        method: Método HTTP
        endpoint: Endpoint accedido
        status_code: Código de respuesta HTTP
        response_time_ms: Tiempo de respuesta en millisegundos
        **kwargs: Información adicional
    """
    extra = {
        "method": method,
        "endpoint": endpoint,
        "service": "api"
    }

    if status_code:
        extra["status_code"] = status_code
    if response_time_ms is not None:
        extra["response_time_ms"] = response_time_ms

    extra.update(kwargs)

    if status_code and status_code >= 500:
        logger.error(f"API request failed: {method} {endpoint}", extra=extra)
    elif status_code and status_code >= 400:
        logger.warning(f"API request rejected: {method} {endpoint}", extra=extra)
    else:
        logger.info(f"API request: {method} {endpoint}", extra=extra)
