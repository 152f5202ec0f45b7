"""CSV import utilities to load data into database."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from arbor_scheduler.domain.models import (
    DurationRecord,
    Employee,
    Equipment,
    EquipmentReservation,
    Job,
    JobCrewMember,
    JobSeries,
)
from arbor_scheduler.domain.types import normalize_hazard, normalize_skills
from arbor_scheduler.errors import ValidationError
from arbor_scheduler.services.duration import size_bucket
from arbor_scheduler.services.timeplan import to_time


def _read(csv_path: str | Path, required: List[str]) -> pd.DataFrame:
    df = pd.read_csv(csv_path)

    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()

    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValidationError(f"{csv_path}: missing column(s) {', '.join(missing)}")
    return df


def _value(row: pd.Series, column: str) -> Any:
    value = row.get(column)
    if value is None or (not isinstance(value, (list, dict)) and pd.isna(value)):
        return None
    return value


def _float(row: pd.Series, column: str) -> Optional[float]:
    value = _value(row, column)
    return float(value) if value is not None else None


def _int(row: pd.Series, column: str) -> Optional[int]:
    value = _value(row, column)
    return int(value) if value is not None else None


def _str(row: pd.Series, column: str) -> Optional[str]:
    value = _value(row, column)
    return str(value).strip() if value is not None else None


def _date(row: pd.Series, column: str):
    value = _value(row, column)
    return pd.Timestamp(value).date() if value is not None else None


def _id_list(value: Any) -> List[int]:
    """Parse a ``;``-separated list of ids ("3;7;12")."""
    if value is None:
        return []
    return [int(float(part)) for part in str(value).split(";") if part.strip()]


def _skill_json(value: Any) -> list:
    return [{"id": s.identifier, "label": s.label} for s in normalize_skills(value)]


def import_employees_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import employees from CSV into database.

    Skills and certifications are ``;``-separated labels; they are stored
    normalized as ``[{"id", "label"}]`` lists.

    Args:
        session: Database session
        csv_path: Path to employees CSV

    Returns:
        Number of employees imported
    """
    df = _read(csv_path, ["employee_id", "first_name", "last_name"])

    employees = []
    for _, row in df.iterrows():
        emp = Employee(
            employee_id=int(row["employee_id"]),
            first_name=str(row["first_name"]),
            last_name=str(row["last_name"]),
            job_title=_str(row, "job_title"),
            status=_str(row, "status") or "Active",
            skills=_skill_json(_value(row, "skills")),
            certifications=_skill_json(_value(row, "certifications")),
            pay_rate=_float(row, "pay_rate"),
            performance_rating=_float(row, "performance_rating"),
        )
        employees.append(emp)

    session.add_all(employees)
    session.commit()

    print(f"[INFO] Imported {len(employees)} employees from {csv_path}")
    return len(employees)


def import_jobs_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import scheduled jobs from CSV into database.

    The optional ``crew`` column holds ``;``-separated employee ids.

    Returns:
        Number of jobs imported
    """
    df = _read(csv_path, ["scheduled_date"])

    jobs = []
    for _, row in df.iterrows():
        job = Job(
            id=_int(row, "id"),
            description=_str(row, "description"),
            service_type=(_str(row, "service_type") or "").lower() or None,
            scheduled_date=_date(row, "scheduled_date"),
            start_time=to_time(_str(row, "start_time")),
            end_time=to_time(_str(row, "end_time")),
            status=_str(row, "status") or "Scheduled",
            estimated_hours=_float(row, "estimated_hours"),
            hazard_level=normalize_hazard(_str(row, "hazard_level")),
            tree_height_ft=_float(row, "tree_height_ft"),
            trunk_diameter_in=_float(row, "trunk_diameter_in"),
            notes=_str(row, "notes"),
        )
        job.crew = [JobCrewMember(employee_id=emp_id) for emp_id in _id_list(_value(row, "crew"))]
        jobs.append(job)

    session.add_all(jobs)
    session.commit()

    print(f"[INFO] Imported {len(jobs)} jobs from {csv_path}")
    return len(jobs)


def import_equipment_csv(session: Session, csv_path: str | Path) -> int:
    """Import equipment from CSV into database."""
    df = _read(csv_path, ["id", "name"])

    items = [Equipment(id=int(row["id"]), name=str(row["name"])) for _, row in df.iterrows()]
    session.add_all(items)
    session.commit()

    print(f"[INFO] Imported {len(items)} equipment items from {csv_path}")
    return len(items)


def import_reservations_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import equipment reservations from CSV into database.

    ``usage_date`` defaults to the job's scheduled date when blank.
    """
    df = _read(csv_path, ["equipment_id", "job_id"])

    reservations = []
    for _, row in df.iterrows():
        job_id = int(row["job_id"])
        usage_date = _date(row, "usage_date")
        if usage_date is None:
            job = session.get(Job, job_id)
            if job is None:
                raise ValidationError(f"{csv_path}: reservation references unknown job {job_id}")
            usage_date = job.scheduled_date
        reservations.append(
            EquipmentReservation(
                equipment_id=int(row["equipment_id"]),
                job_id=job_id,
                usage_date=usage_date,
                start_time=to_time(_str(row, "start_time")),
                end_time=to_time(_str(row, "end_time")),
            )
        )

    session.add_all(reservations)
    session.commit()

    print(f"[INFO] Imported {len(reservations)} equipment reservations from {csv_path}")
    return len(reservations)


def import_series_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import recurring series definitions from CSV into database.

    Returns:
        Number of series imported
    """
    df = _read(csv_path, ["name", "recurrence_pattern"])

    series = []
    for _, row in df.iterrows():
        series.append(
            JobSeries(
                id=_int(row, "id"),
                name=str(row["name"]),
                service_type=(_str(row, "service_type") or "").lower() or None,
                recurrence_pattern=str(row["recurrence_pattern"]).strip().lower(),
                recurrence_interval=_int(row, "recurrence_interval") or 1,
                recurrence_day_of_week=_int(row, "recurrence_day_of_week"),
                recurrence_day_of_month=_int(row, "recurrence_day_of_month"),
                recurrence_month=_int(row, "recurrence_month"),
                start_date=_date(row, "start_date"),
                end_date=_date(row, "end_date"),
                default_crew=_id_list(_value(row, "default_crew")),
                estimated_duration_hours=_float(row, "estimated_duration_hours"),
                notes=_str(row, "notes"),
            )
        )

    session.add_all(series)
    session.commit()

    print(f"[INFO] Imported {len(series)} recurring series from {csv_path}")
    return len(series)


def import_duration_records_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import completed-job durations from CSV into database.

    When ``size_bucket`` is blank it is derived from ``tree_height_ft`` and
    ``trunk_diameter_in``. Rows without ``actual_hours`` are dropped.

    Returns:
        Number of duration records imported
    """
    df = _read(csv_path, ["service_type", "actual_hours"])
    df = df[df["actual_hours"].notna()].copy()
    df["service_type"] = df["service_type"].astype(str).str.strip().str.lower()

    records = []
    for _, row in df.iterrows():
        bucket = _str(row, "size_bucket") or size_bucket(
            _float(row, "tree_height_ft"), _float(row, "trunk_diameter_in")
        )
        actual = float(row["actual_hours"])
        estimated = _float(row, "estimated_hours")
        variance = round((actual - estimated) / estimated * 100, 1) if estimated else None
        records.append(
            DurationRecord(
                job_id=_int(row, "job_id"),
                service_type=row["service_type"],
                size_bucket=bucket,
                hazard_level=normalize_hazard(_str(row, "hazard_level")),
                crew_size=_int(row, "crew_size") or 3,
                estimated_hours=estimated,
                actual_hours=actual,
                variance_percentage=variance,
                notes=_str(row, "notes"),
            )
        )

    session.add_all(records)
    session.commit()

    print(f"[INFO] Imported {len(records)} duration records from {csv_path}")
    return len(records)
