"""SQLAlchemy models backing the roster, schedule, series store and duration history."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Employee(Base):
    """Crew member with title, skills and certifications."""

    __tablename__ = "employees"

    employee_id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    job_title = Column(String(100), nullable=True)  # e.g. "Lead Climber", "Certified Arborist"
    status = Column(String(20), nullable=False, default="Active")

    # Normalized [{"id": ..., "label": ...}] lists
    skills = Column(JSON, nullable=True)
    certifications = Column(JSON, nullable=True)

    pay_rate = Column(Float, nullable=True)
    performance_rating = Column(Float, nullable=True)  # 0-5 scale, null if untracked

    crew_slots = relationship("JobCrewMember", back_populates="employee")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee(id={self.employee_id}, name='{self.name}', title='{self.job_title}')>"


class Job(Base):
    """A scheduled job on a single day."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    description = Column(String(255), nullable=True)
    service_type = Column(String(50), nullable=True)
    scheduled_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    status = Column(String(20), nullable=False, default="Scheduled")  # Scheduled, In Progress, Completed, Cancelled

    estimated_hours = Column(Float, nullable=True)
    hazard_level = Column(String(20), nullable=True)
    tree_height_ft = Column(Float, nullable=True)
    trunk_diameter_in = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    crew = relationship("JobCrewMember", back_populates="job", cascade="all, delete-orphan")
    reservations = relationship("EquipmentReservation", back_populates="job")

    @property
    def crew_member_ids(self) -> list:
        return [slot.employee_id for slot in self.crew]

    def __repr__(self) -> str:
        return f"<Job(id={self.id}, date={self.scheduled_date}, status='{self.status}')>"


class JobCrewMember(Base):
    """Employee assigned to a job."""

    __tablename__ = "job_crew_members"

    job_id = Column(Integer, ForeignKey("jobs.id"), primary_key=True)
    employee_id = Column(Integer, ForeignKey("employees.employee_id"), primary_key=True)

    job = relationship("Job", back_populates="crew")
    employee = relationship("Employee", back_populates="crew_slots")


class Equipment(Base):
    """A bookable piece of equipment (chipper, bucket truck, crane...)."""

    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)

    reservations = relationship("EquipmentReservation", back_populates="equipment")

    def __repr__(self) -> str:
        return f"<Equipment(id={self.id}, name='{self.name}')>"


class EquipmentReservation(Base):
    """Equipment booked for a job on one day."""

    __tablename__ = "equipment_reservations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    equipment_id = Column(Integer, ForeignKey("equipment.id"), nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False)
    usage_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    equipment = relationship("Equipment", back_populates="reservations")
    job = relationship("Job", back_populates="reservations")

    def __repr__(self) -> str:
        return f"<EquipmentReservation(equipment={self.equipment_id}, job={self.job_id}, date={self.usage_date})>"


class JobSeries(Base):
    """Recurring job definition: a recurrence rule plus a job template."""

    __tablename__ = "job_series"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    service_type = Column(String(50), nullable=True)

    recurrence_pattern = Column(String(20), nullable=False)  # daily, weekly, monthly, quarterly, yearly
    recurrence_interval = Column(Integer, nullable=False, default=1)
    recurrence_day_of_week = Column(Integer, nullable=True)  # 0 = Sunday
    recurrence_day_of_month = Column(Integer, nullable=True)
    recurrence_month = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    default_crew = Column(JSON, nullable=True)  # list of employee ids
    estimated_duration_hours = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    occurrences = relationship(
        "SeriesOccurrence", back_populates="series", order_by="SeriesOccurrence.scheduled_date"
    )

    def __repr__(self) -> str:
        return f"<JobSeries(id={self.id}, name='{self.name}', pattern='{self.recurrence_pattern}')>"


class SeriesOccurrence(Base):
    """One dated visit of a series. Never deleted; status records what happened."""

    __tablename__ = "series_occurrences"
    __table_args__ = (UniqueConstraint("series_id", "scheduled_date", name="uq_series_occurrence_date"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    series_id = Column(Integer, ForeignKey("job_series.id"), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="scheduled")  # scheduled, skipped, cancelled, created
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)

    series = relationship("JobSeries", back_populates="occurrences")
    job = relationship("Job")

    def __repr__(self) -> str:
        return f"<SeriesOccurrence(series={self.series_id}, date={self.scheduled_date}, status='{self.status}')>"


class DurationRecord(Base):
    """Actual hours of a completed job, the input to historical duration samples."""

    __tablename__ = "duration_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=True)
    service_type = Column(String(50), nullable=False)
    size_bucket = Column(String(20), nullable=False, default="medium")
    hazard_level = Column(String(20), nullable=False, default="Medium")
    crew_size = Column(Integer, nullable=False, default=3)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, nullable=False)
    variance_percentage = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    recorded_at = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self) -> str:
        return f"<DurationRecord(job={self.job_id}, service='{self.service_type}', actual={self.actual_hours})>"
