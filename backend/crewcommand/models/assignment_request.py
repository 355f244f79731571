"""Assignment request model"""

import enum
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid
from crewcommand.models.base import BaseModel


class RequestStatus(str, enum.Enum):
    """Review status of a reassignment proposal"""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class AssignmentRequest(BaseModel):
    """
    A pending reassignment proposal, typically raised by a foreman,
    awaiting superintendent or admin review.
    """

    __tablename__ = "assignment_requests"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    job_site_id = Column(
        Uuid(as_uuid=True), ForeignKey("job_sites.id"), nullable=True, index=True
    )
    worker_id = Column(
        Uuid(as_uuid=True), ForeignKey("workers.id"), nullable=False, index=True
    )
    from_task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id"), nullable=True)
    to_task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id"), nullable=False)
    requested_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(50), default=RequestStatus.PENDING.value, nullable=False, index=True)
    reviewed_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<AssignmentRequest(id={self.id}, worker_id={self.worker_id}, "
            f"status={self.status})>"
        )
