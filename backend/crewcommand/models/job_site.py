"""Job site model"""

import enum
from sqlalchemy import Column, String, Text, Date, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class JobSiteStatus(str, enum.Enum):
    """Job site lifecycle status"""
    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


class JobSite(BaseModel):
    """
    A work location owned by one organization.
    Site-scoped roles are granted per job site through JobSiteAssignment.
    """

    __tablename__ = "job_sites"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(
        String(50), default=JobSiteStatus.ACTIVE.value, nullable=False, index=True
    )
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="job_sites")
    assignments = relationship("JobSiteAssignment", back_populates="job_site")

    def __repr__(self):
        return f"<JobSite(id={self.id}, name={self.name}, status={self.status})>"
