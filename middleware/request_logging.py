# MIDDLEWARE DE LOGGING DE PETICIONES
# Registra cada peticion con su duracion y estado, y alimenta las metricas de Prometheus

import time
import json
import uuid
import logging
from typing import Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging_config import log_api_request
from app.core.metrics import api_requests_total, api_request_duration_seconds


class RequestMetrics:
    def __init__(self):
        self.metrics = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'avg_response_time': 0.0,
        }

    def generate_request_id(self) -> str:
        return f'req_{uuid.uuid4().hex[:12]}'

    def record(self, status_code: int, elapsed_ms: float) -> None:
        total = self.metrics['total_requests'] + 1
        self.metrics['total_requests'] = total
        if status_code >= 500:
            self.metrics['failed_requests'] += 1
        else:
            self.metrics['successful_requests'] += 1
        avg = self.metrics['avg_response_time']
        self.metrics['avg_response_time'] = avg + (elapsed_ms - avg) / total


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, metrics: Optional[RequestMetrics] = None):
        super().__init__(app)
        self.metrics = metrics or RequestMetrics()
        self.logger = logging.getLogger('app.requests')

    async def dispatch(self, request: Request, call_next):
        request_id = self.metrics.generate_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(f'Unhandled error on {request.method} {path}', extra={'request_id': request_id})
            response = Response(
                content=json.dumps({'error': 'Internal server error', 'request_id': request_id}),
                status_code=500,
                media_type='application/json'
            )

        elapsed = time.perf_counter() - started
        elapsed_ms = round(elapsed * 1000, 2)
        self.metrics.record(response.status_code, elapsed_ms)
        api_requests_total.labels(method=request.method, endpoint=path, status=str(response.status_code)).inc()
        api_request_duration_seconds.labels(method=request.method, endpoint=path).observe(elapsed)
        log_api_request(
            self.logger,
            request.method,
            path,
            status_code=response.status_code,
            response_time_ms=elapsed_ms,
            request_id=request_id,
        )

        response.headers['X-Request-ID'] = request_id
        return response
