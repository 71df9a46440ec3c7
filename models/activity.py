from sqlalchemy import Column, ForeignKey, String

from models.base_model import BaseModel, Base


class Activity(BaseModel, Base):
    """Audit trail of authenticated requests."""
    __tablename__ = "activities"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    method = Column(String(10), nullable=True)
    endpoint = Column(String(512), nullable=True)
    message = Column(String(255), nullable=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
