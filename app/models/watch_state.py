# app/models/watch_state.py
from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class WatchState(Base):
    """
    Estado de visualización de un usuario para un video.
    Los intervalos se guardan ya fusionados y ordenados por inicio.
    """
    __tablename__ = "watch_states"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    video_id = Column(String(255), nullable=False, index=True)
    intervals = Column(JSON, nullable=False, default=list)
    cursor_location = Column(Float, default=0.0, nullable=False)
    progress = Column(Float, default=0.0, nullable=False)
    duration = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('user_id', 'video_id', name='uq_watch_state_user_video'),
    )

    def __repr__(self):
        return f"<WatchState(user_id='{self.user_id}', video_id='{self.video_id}', progress={self.progress})>"
