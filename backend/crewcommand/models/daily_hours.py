"""Daily hours model"""

import enum
from sqlalchemy import Column, String, Text, Date, Numeric, ForeignKey, UniqueConstraint, Uuid
from crewcommand.models.base import BaseModel


class DailyHoursStatus(str, enum.Enum):
    """What a worker did on a given day"""
    WORKED = "worked"
    OFF = "off"
    TRANSFERRED = "transferred"


class DailyHours(BaseModel):
    """Hours logged for one worker on one day"""

    __tablename__ = "daily_hours"
    __table_args__ = (
        UniqueConstraint("organization_id", "worker_id", "log_date", name="uq_daily_hours_worker_date"),
    )

    organization_id = Column(
        Uuid(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True
    )
    job_site_id = Column(
        Uuid(as_uuid=True), ForeignKey("job_sites.id"), nullable=True, index=True
    )
    worker_id = Column(
        Uuid(as_uuid=True), ForeignKey("workers.id"), nullable=False, index=True
    )
    log_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), default=DailyHoursStatus.WORKED.value, nullable=False)
    hours_worked = Column(Numeric(5, 2), default=8.0, nullable=False)
    task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id"), nullable=True)
    transferred_to_task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id"), nullable=True)
    notes = Column(Text, nullable=True)
    logged_by = Column(Uuid(as_uuid=True), ForeignKey("user_profiles.id"), nullable=True)

    def __repr__(self):
        return f"<DailyHours(worker_id={self.worker_id}, log_date={self.log_date}, status={self.status})>"
