"""Job site assignment model"""

import enum
from sqlalchemy import Column, String, Date, Boolean, ForeignKey, Index, Uuid, text
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class SiteRole(str, enum.Enum):
    """Role granted on one job site only"""
    SUPERINTENDENT = "superintendent"
    ENGINEER = "engineer"
    ENGINEER_AS_SUPERINTENDENT = "engineer_as_superintendent"
    FOREMAN = "foreman"
    WORKER = "worker"


class JobSiteAssignment(BaseModel):
    """
    Binds a user profile to a job site with a site-scoped role.
    At most one active row per (user, job site); older rows are kept
    deactivated with an end date.
    """

    __tablename__ = "job_site_assignments"
    __table_args__ = (
        Index(
            "idx_job_site_assignments_unique_active",
            "user_id",
            "job_site_id",
            unique=True,
            postgresql_where=text("is_active = true"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    user_id = Column(
        Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=False, index=True
    )
    job_site_id = Column(
        Uuid(as_uuid=True), ForeignKey("job_sites.id"), nullable=False, index=True
    )
    role = Column(String(50), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    assigned_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True)

    # Relationships
    user = relationship("UserProfile", back_populates="job_site_assignments", foreign_keys=[user_id])
    job_site = relationship("JobSite", back_populates="assignments")

    def __repr__(self):
        return (
            f"<JobSiteAssignment(id={self.id}, user_id={self.user_id}, "
            f"job_site_id={self.job_site_id}, role={self.role}, is_active={self.is_active})>"
        )
