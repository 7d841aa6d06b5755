import uuid
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from taskhub.database import Base
from taskhub.models.task import task_tags
from taskhub.utils.time import utcnow

DEFAULT_TAG_COLOR = "#6366f1"


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), unique=True, nullable=False)  # global, not per-user
    color = Column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    tasks = relationship("Task", secondary=task_tags, back_populates="tags", passive_deletes=True)
