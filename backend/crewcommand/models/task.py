"""Task model"""

import enum
from sqlalchemy import Column, String, Text, Date, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class TaskStatus(str, enum.Enum):
    """Task lifecycle status"""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"


class Task(BaseModel):
    """
    A unit of work, usually at a job site.
    Required headcount is tracked per trade.
    """

    __tablename__ = "tasks"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    job_site_id = Column(
        Uuid(as_uuid=True), ForeignKey("job_sites.id"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    required_operators = Column(Integer, default=0, nullable=False)
    required_laborers = Column(Integer, default=0, nullable=False)
    required_carpenters = Column(Integer, default=0, nullable=False)
    required_masons = Column(Integer, default=0, nullable=False)
    status = Column(String(50), default=TaskStatus.PLANNED.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True)

    # Relationships
    assignments = relationship("Assignment", back_populates="task", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Task(id={self.id}, name={self.name}, status={self.status})>"
