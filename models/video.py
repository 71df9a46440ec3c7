from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


class Video(BaseModel, Base):
    __tablename__ = "videos"

    video_file = Column(String(512), nullable=False)
    thumbnail = Column(String(512), nullable=False)
    title = Column(String(150), nullable=False)
    description = Column(Text, nullable=False)  # <= 1000 chars (in schema)
    duration = Column(Float, nullable=False)
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)

    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    owner = relationship("User", back_populates="videos")
    comments = relationship("Comment", back_populates="video", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("duration > 0", name="ck_videos_duration_positive"),
        CheckConstraint("views >= 0", name="ck_videos_views_nonnegative"),
        Index("ix_videos_published_created", "is_published", "created_at"),
    )
