from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from models.base_model import BaseModel, Base


class WatchHistory(BaseModel, Base):
    """One row per (user, video); watched_at is bumped on every re-watch."""
    __tablename__ = "watch_history"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    watched_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    video = relationship("Video")

    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_history_pair"),
    )
