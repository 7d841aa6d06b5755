import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from taskhub.database import Base
from taskhub.models.enums import ProjectStatus
from taskhub.utils.time import utcnow

DEFAULT_COLOR = "#6366f1"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(7), nullable=False, default=DEFAULT_COLOR)
    icon = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.ACTIVE.value, index=True)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    owner = relationship("User", back_populates="projects")
    # Deletion is left to ON DELETE CASCADE in the database
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)
