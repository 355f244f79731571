"""Worker model"""

import enum
from sqlalchemy import Column, String, Text, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class WorkerRole(str, enum.Enum):
    """Trade of a field laborer"""
    OPERATOR = "operator"
    LABORER = "laborer"
    CARPENTER = "carpenter"
    MASON = "mason"


class WorkerStatus(str, enum.Enum):
    """Worker availability"""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Worker(BaseModel):
    """
    A field laborer who is scheduled onto tasks.
    Workers are not necessarily system users; user_id links one when they are.
    """

    __tablename__ = "workers"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    job_site_id = Column(
        Uuid(as_uuid=True), ForeignKey("job_sites.id"), nullable=True, index=True
    )  # null means unassigned
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True, index=True
    )
    name = Column(String(255), nullable=False)
    role = Column(String(50), default=WorkerRole.LABORER.value, nullable=False)
    skills = Column(JSON, default=list, nullable=False)
    phone = Column(String(50), nullable=True)
    status = Column(String(50), default=WorkerStatus.ACTIVE.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="workers")
    assignments = relationship("Assignment", back_populates="worker", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Worker(id={self.id}, name={self.name}, status={self.status})>"
