"""User profile model"""

import enum
from sqlalchemy import Column, String, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class BaseRole(str, enum.Enum):
    """Organization-wide role, independent of any job site"""
    ADMIN = "admin"
    SUPERINTENDENT = "superintendent"
    ENGINEER = "engineer"
    FOREMAN = "foreman"
    WORKER = "worker"


class UserProfile(BaseModel):
    """
    A person who can log in.
    Belongs to exactly one organization and is never hard-deleted.
    """

    __tablename__ = "user_profiles"

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    base_role = Column(
        String(50), default=BaseRole.WORKER.value, nullable=False, index=True
    )  # admin, superintendent, engineer, foreman, worker
    phone = Column(String(50), nullable=True)
    password_hash = Column(String(255), nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="users")
    job_site_assignments = relationship(
        "JobSiteAssignment",
        back_populates="user",
        foreign_keys="JobSiteAssignment.user_id",
    )

    def __repr__(self):
        return f"<UserProfile(id={self.id}, email={self.email}, base_role={self.base_role})>"
