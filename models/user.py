from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"

    # username and email are stored trimmed + lowercased (see UserCreateSchema)
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    fullname = Column(String(255), nullable=False, index=True)
    avatar = Column(String(512), nullable=False)
    cover = Column(String(512), nullable=True, default="")
    password_hash = Column(String(255), nullable=False)
    # The single outstanding refresh token; issuing a new one overwrites it
    refresh_token = Column(Text, nullable=True)

    videos = relationship("Video", back_populates="owner", passive_deletes=True)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User {self.username}>"
