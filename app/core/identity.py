# app/core/identity.py
import json
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def load_user_id(path: str) -> Optional[str]:
    """
    Lee el identificador de usuario desde un archivo estático ({"uid": "..."}).
    Es un sustituto de autenticación real; el valor se trata como opaco.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Error loading UID from {path}: {e}")
        return None

    uid = data.get("uid") if isinstance(data, dict) else None
    if uid is None or uid == "":
        logger.error(f"El archivo {path} no contiene 'uid'")
        return None
    return str(uid)
