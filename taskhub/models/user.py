import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from taskhub.database import Base
from taskhub.models.enums import Role
from taskhub.utils.time import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash, never serialized
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    avatar = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    projects = relationship("Project", back_populates="owner", passive_deletes=True)
    comments = relationship("Comment", back_populates="author", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
