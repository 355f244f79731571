"""Organization model"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from crewcommand.models.base import BaseModel


class Organization(BaseModel):
    """
    Organization model representing a construction company.
    The tenant boundary: every other entity references it directly.
    """

    __tablename__ = "organizations"

    name = Column(String(255), unique=True, nullable=False)
    slug = Column(String(255), unique=True, nullable=True)
    address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)

    # Relationships
    users = relationship("UserProfile", back_populates="organization", cascade="all, delete-orphan")
    job_sites = relationship("JobSite", back_populates="organization", cascade="all, delete-orphan")
    workers = relationship("Worker", back_populates="organization", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Organization(id={self.id}, name={self.name})>"
