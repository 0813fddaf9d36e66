"""Todo model."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import Priority
from src.models.mixins import TimestampMixin


class Todo(Base, TimestampMixin):
    """Todo owned by exactly one user."""

    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    completed = Column(Boolean, default=False, nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    priority = Column(String(10), default=Priority.MEDIUM.value, nullable=False)
    due_date = Column(Date, nullable=True)

    # Relationships
    owner = relationship("User", back_populates="todos")
