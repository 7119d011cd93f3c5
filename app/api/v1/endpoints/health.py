# app/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import text
from datetime import datetime, timezone

from app.core.deps import AppContext, get_context, get_db

router = APIRouter()


@router.get("/health", summary="Verifica el estado completo del servicio")
def check_health(
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context)
):
    """
    Endpoint de Health Check consolidado.
    Verifica que la API está activa y la conexión a base de datos.
    """
    health_status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": {"status": "unknown"},
        },
        "videos": context.registry.names(),
    }

    # Verificar conexión a base de datos
    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "healthy"}
    except Exception as e:
        health_status["services"]["database"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "unhealthy"
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
