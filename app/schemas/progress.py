# app/schemas/progress.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IntervalSchema(BaseModel):
    """Rango de tiempo visto [start, end)."""
    start: float = Field(..., ge=0)
    end: float


class VideoResponse(BaseModel):
    """Respuesta al abrir/reanudar un video."""
    url: str = Field(..., description="URL reproducible del video")
    cursor_location: float = Field(..., description="Última posición reportada, para reanudar")
    progress: float = Field(..., ge=0, le=100, description="Porcentaje visto")
    intervals: List[IntervalSchema] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "url": "http://commondatastorage.googleapis.com/gtv-videos-bucket/sample/Sintel.mp4",
                "cursor_location": 100.0,
                "progress": 11.26,
                "intervals": [{"start": 0.0, "end": 100.0}]
            }
        }
    )


class ProgressSyncRequest(BaseModel):
    """
    Segmentos recién vistos más el cursor actual.
    gaps se valida entrada por entrada en el servicio: las inválidas se descartan.
    """
    videoName: Optional[str] = Field(None, description="Identificador del video")
    userId: Optional[str] = Field(None, description="Identificador opaco del usuario")
    gaps: Dict[str, Any] = Field(default_factory=dict, description="Mapa {inicio: fin} de segmentos vistos")
    cursor_location: Optional[float] = Field(None, description="Posición actual de reproducción")

    @field_validator("userId", "videoName", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        # user.json puede traer un uid numérico
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("gaps", mode="before")
    @classmethod
    def default_gaps(cls, value):
        return value if value is not None else {}

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "videoName": "Sintel-blender-demo",
                "userId": "u1",
                "gaps": {"0": "100"},
                "cursor_location": 100
            }
        }
    )


class ProgressSyncResponse(BaseModel):
    success: bool
    progress: float
    cursor_location: Optional[float]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "progress": 11.26,
                "cursor_location": 100
            }
        }
    )
