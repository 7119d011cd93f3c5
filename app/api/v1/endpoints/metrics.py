from fastapi import APIRouter, Response
from prometheus_client import Gauge, generate_latest, CONTENT_TYPE_LATEST
import time

router = APIRouter()

# Métricas del sistema
system_uptime_seconds = Gauge(
    'watchtrack_uptime_seconds',
    'System uptime in seconds'
)

start_time = time.time()


@router.get("/metrics", include_in_schema=False)
def get_metrics():
    """
    Endpoint de métricas para Prometheus.
    No incluido en la documentación de la API.
    """
    # Actualizar uptime
    system_uptime_seconds.set(time.time() - start_time)

    # Generar métricas en formato Prometheus
    return Response(
        generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
