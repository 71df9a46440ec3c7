from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String
from sqlalchemy.types import Enum as SAEnum

from models.base_model import BaseModel, Base


class LikeType(str, Enum):
    VIDEO = "video"
    COMMENT = "comment"


class Like(BaseModel, Base):
    """A like (is_like=True) or dislike (is_like=False) on a video or one of its comments."""
    __tablename__ = "likes"

    like_type = Column(
        SAEnum(LikeType, name="like_type", native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    is_like = Column(Boolean, nullable=False, default=True)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=False)
    comment_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)
    liked_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(like_type = 'video' AND comment_id IS NULL) OR (like_type = 'comment' AND comment_id IS NOT NULL)",
            name="ck_likes_target",
        ),
        Index("ix_likes_video_type", "video_id", "like_type"),
        Index("ix_likes_comment", "comment_id"),
        Index("ix_likes_liked_by", "liked_by"),
    )
