"""Assignment model"""

import enum
from sqlalchemy import Column, String, Date, Numeric, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class AssignmentStatus(str, enum.Enum):
    """Assignment status"""
    ASSIGNED = "assigned"
    COMPLETED = "completed"
    REASSIGNED = "reassigned"


class Assignment(BaseModel):
    """
    Binds a worker to a task on one calendar date.
    A worker holds at most one assignment per date; reassignment replaces the row.
    """

    __tablename__ = "assignments"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    job_site_id = Column(
        Uuid(as_uuid=True), ForeignKey("job_sites.id"), nullable=True, index=True
    )
    task_id = Column(
        Uuid(as_uuid=True), ForeignKey("tasks.id"), nullable=False, index=True
    )
    worker_id = Column(
        Uuid(as_uuid=True), ForeignKey("workers.id"), nullable=False, index=True
    )
    assigned_date = Column(Date, nullable=False, index=True)
    status = Column(String(50), default=AssignmentStatus.ASSIGNED.value, nullable=False)
    hours_worked = Column(Numeric(5, 2), nullable=True)
    assigned_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True)

    # Relationships
    task = relationship("Task", back_populates="assignments")
    worker = relationship("Worker", back_populates="assignments")

    def __repr__(self):
        return (
            f"<Assignment(id={self.id}, worker_id={self.worker_id}, "
            f"task_id={self.task_id}, assigned_date={self.assigned_date})>"
        )
