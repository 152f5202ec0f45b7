"""Command-line interface for the arbor scheduler."""

from __future__ import annotations

import argparse
import json
import sys
from contextlib import contextmanager
from datetime import date

import pandas as pd

from arbor_scheduler.config import load_config
from arbor_scheduler.domain.db import DEFAULT_DB_URL, get_session, init_database
from arbor_scheduler.domain.repositories import SeriesRepository
from arbor_scheduler.domain.types import SchedulingRequest, to_date
from arbor_scheduler.engine.orchestrator import SchedulingAssistant
from arbor_scheduler.errors import SchedulingError
from arbor_scheduler.io.import_csv import (
    import_duration_records_csv,
    import_employees_csv,
    import_equipment_csv,
    import_jobs_csv,
    import_reservations_csv,
    import_series_csv,
)
from arbor_scheduler.logging_setup import init_logging
from arbor_scheduler.services.conflicts import severity_score
from arbor_scheduler.services.timeplan import to_time


@contextmanager
def _session(args: argparse.Namespace, action: str):
    session = get_session(args.db or DEFAULT_DB_URL)
    try:
        yield session
    except Exception as e:
        session.rollback()
        print(f"[ERROR] {action} failed: {e}")
        raise
    finally:
        session.close()


def _assistant(args: argparse.Namespace, session) -> SchedulingAssistant:
    return SchedulingAssistant(session, load_config(args.config))


def _ids(value: str | None) -> list:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _request(args: argparse.Namespace) -> SchedulingRequest:
    return SchedulingRequest(
        scheduled_date=args.date,
        start_time=to_time(args.start),
        end_time=to_time(args.end),
        crew_member_ids=_ids(getattr(args, "crew", None)),
        equipment_ids=_ids(getattr(args, "equipment", None)),
        service_type=getattr(args, "service_type", None),
        hazard_level=getattr(args, "hazard", None) or "Medium",
        required_skills=_ids(getattr(args, "skills", None)),
        preferred_crew_size=getattr(args, "size", None) or 3,
        exclude_job_id=getattr(args, "exclude_job", None),
    )


def _cmd_init_db(args: argparse.Namespace) -> None:
    """Initialize the database."""
    db_url = args.db or DEFAULT_DB_URL
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")


def _cmd_import_csv(args: argparse.Namespace) -> None:
    """Import CSV data into database."""
    with _session(args, "Import") as session:
        # Order matters: reservations reference jobs and equipment
        steps = [
            (args.employees, import_employees_csv, "employees"),
            (args.equipment, import_equipment_csv, "equipment items"),
            (args.jobs, import_jobs_csv, "jobs"),
            (args.reservations, import_reservations_csv, "equipment reservations"),
            (args.series, import_series_csv, "recurring series"),
            (args.durations, import_duration_records_csv, "duration records"),
        ]
        for path, importer, label in steps:
            if path:
                count = importer(session, path)
                print(f"[OK] Imported {count} {label}")
        print("[OK] CSV import complete")


def _cmd_generate(args: argparse.Namespace) -> None:
    """Top up occurrences for one or all active series."""
    with _session(args, "Generation") as session:
        today = to_date(args.today) if args.today else date.today()
        assistant = _assistant(args, session)
        if args.series is not None:
            series_ids = [args.series]
        else:
            series_ids = [s.id for s in SeriesRepository.get_all(session, active_only=True)]
        if not series_ids:
            print("[WARN] No active recurring series found")
            return

        total = 0
        for series_id in series_ids:
            created = assistant.top_up_series(series_id, today, args.horizon, args.until)
            total += len(created)
            for occ in created:
                print(f"  series {series_id}: {occ.scheduled_date.isoformat()}")
        print(f"[OK] Generated {total} occurrences across {len(series_ids)} series")


def _cmd_occurrence(args: argparse.Namespace) -> None:
    """Skip, cancel or restore a series occurrence."""
    with _session(args, "Status change") as session:
        occ = SeriesRepository.set_status(session, args.series, args.occurrence, args.status)
        print(f"[OK] Occurrence {occ.id} on {occ.scheduled_date.isoformat()} is now {occ.status}")


def _cmd_convert(args: argparse.Namespace) -> None:
    """Turn a scheduled occurrence into a job."""
    with _session(args, "Conversion") as session:
        job = _assistant(args, session).convert_occurrence_to_job(args.series, args.occurrence)
        print(f"[OK] Created job {job.id} on {job.scheduled_date.isoformat()}")


def _cmd_predict(args: argparse.Namespace) -> None:
    """Estimate job duration."""
    with _session(args, "Prediction") as session:
        estimate = _assistant(args, session).predict_duration(
            args.service_type, args.height, args.diameter, args.hazard, args.crew_size
        )
    if args.json:
        print(json.dumps(estimate.as_dict(), indent=2))
        return
    low, high = estimate.confidence_range
    print(
        f"{estimate.estimated_hours}h (range {low}-{high}h), "
        f"{estimate.methodology}, confidence {estimate.confidence_tier}, "
        f"{estimate.sample_count} samples, size {estimate.size_bucket}"
    )


def _cmd_conflicts(args: argparse.Namespace) -> None:
    """List conflicts for a proposed job."""
    with _session(args, "Conflict check") as session:
        request = _request(args)
        assistant = _assistant(args, session)
        conflicts = assistant.detect_conflicts(request)
        alternatives = []
        if args.alternatives and any(c.severity == "high" for c in conflicts):
            alternatives = assistant.detector().suggest_alternative_dates(request, request.scheduled_date)

    summary = severity_score(conflicts)
    if not conflicts:
        print("[OK] No conflicts")
        return
    df = pd.DataFrame(
        [
            {
                "type": c.type,
                "severity": c.severity,
                "job_id": c.job_id,
                "equipment_id": c.equipment_id,
                "message": c.message,
            }
            for c in conflicts
        ]
    )
    print(df.to_string(index=False))
    print(f"[WARN] {summary['conflict_count']} conflict(s), score {summary['score']} ({summary['status']})")
    for option in alternatives[:5]:
        print(f"  alternative: {option['date'].isoformat()} (load {option['current_load']})")


def _cmd_suggest_crew(args: argparse.Namespace) -> None:
    """Recommend a crew for a proposed job."""
    with _session(args, "Crew suggestion") as session:
        suggestion = _assistant(args, session).suggest_crew(_request(args))

    rows = [
        {"rank": "recommended", "id": c.id, "name": c.member.name, "title": c.member.title, "score": c.score}
        for c in suggestion.recommended
    ] + [
        {"rank": "alternate", "id": c.id, "name": c.member.name, "title": c.member.title, "score": c.score}
        for c in suggestion.alternates
    ]
    if rows:
        print(pd.DataFrame(rows).to_string(index=False))
    for warning in suggestion.warnings:
        print(f"[WARN] {warning}")
    print(f"[OK] {suggestion.total_available} available, {suggestion.requested_crew_size} requested")


def _cmd_suggestions(args: argparse.Namespace) -> None:
    """Daily suggestions for all active jobs on a date."""
    with _session(args, "Suggestions") as session:
        result = _assistant(args, session).daily_suggestions(args.date)

    print(f"[INFO] {result['job_count']} active job(s) on {result['date'].isoformat()}")
    for item in result["suggestions"]:
        if item["type"] == "crew_assignment":
            print(f"  job {item['job_id']}: suggested crew {', '.join(item['suggested_crew'])}")
            for warning in item["warnings"]:
                print(f"    [WARN] {warning}")
        else:
            low, high = item["range"]
            print(f"  job {item['job_id']}: estimated {item['estimated_hours']}h ({low}-{high}h)")


def _add_request_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--date", required=True, help="Job date (YYYY-MM-DD)")
    p.add_argument("--start", help="Start time (HH:MM)")
    p.add_argument("--end", help="End time (HH:MM)")
    p.add_argument("--exclude-job", type=int, help="Job ID being rescheduled")


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="arbor-scheduler",
        description="Scheduling and crew allocation for tree-service jobs",
    )

    # Global options
    parser.add_argument("--db", help=f"Database URL (default: {DEFAULT_DB_URL})")
    parser.add_argument("--config", help="Path to config YAML or JSON")
    parser.add_argument("--log-level", help="Logging level (default: ARBOR_LOG_LEVEL or WARNING)")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    imp = sub.add_parser("import-csv", help="Import CSV data into database")
    imp.add_argument("--employees", help="Path to employees CSV")
    imp.add_argument("--equipment", help="Path to equipment CSV")
    imp.add_argument("--jobs", help="Path to jobs CSV")
    imp.add_argument("--reservations", help="Path to equipment reservations CSV")
    imp.add_argument("--series", help="Path to recurring series CSV")
    imp.add_argument("--durations", help="Path to completed-job durations CSV")
    imp.set_defaults(func=_cmd_import_csv)

    gen = sub.add_parser("generate", help="Top up occurrences for recurring series")
    gen.add_argument("--series", type=int, help="Series ID (default: all active series)")
    gen.add_argument("--today", help="Reference date (default: today)")
    gen.add_argument("--horizon", type=int, help="Horizon in days")
    gen.add_argument("--until", help="Do not generate past this date")
    gen.set_defaults(func=_cmd_generate)

    occ = sub.add_parser("occurrence", help="Skip, cancel or restore an occurrence")
    occ.add_argument("--series", type=int, required=True)
    occ.add_argument("--occurrence", type=int, required=True)
    occ.add_argument("--status", required=True, choices=["skipped", "cancelled", "scheduled"])
    occ.set_defaults(func=_cmd_occurrence)

    conv = sub.add_parser("convert", help="Create a job from a scheduled occurrence")
    conv.add_argument("--series", type=int, required=True)
    conv.add_argument("--occurrence", type=int, required=True)
    conv.set_defaults(func=_cmd_convert)

    pred = sub.add_parser("predict", help="Estimate job duration")
    pred.add_argument("--service-type", required=True, help="e.g. tree_removal, pruning")
    pred.add_argument("--height", type=float, help="Tree height (ft)")
    pred.add_argument("--diameter", type=float, help="Trunk diameter (in)")
    pred.add_argument("--hazard", default="Medium", help="Low, Medium, High or Critical")
    pred.add_argument("--crew-size", type=int, default=3)
    pred.add_argument("--json", action="store_true", help="Print the estimate as JSON")
    pred.set_defaults(func=_cmd_predict)

    con = sub.add_parser("conflicts", help="Check a proposed job for conflicts")
    _add_request_args(con)
    con.add_argument("--crew", help="Comma-separated employee IDs")
    con.add_argument("--equipment", help="Comma-separated equipment IDs")
    con.add_argument("--alternatives", action="store_true", help="Suggest conflict-free dates")
    con.set_defaults(func=_cmd_conflicts)

    crew = sub.add_parser("suggest-crew", help="Recommend a crew for a proposed job")
    _add_request_args(crew)
    crew.add_argument("--service-type", default="tree_removal")
    crew.add_argument("--hazard", default="Medium")
    crew.add_argument("--skills", help="Comma-separated required skills")
    crew.add_argument("--size", type=int, default=3, help="Preferred crew size")
    crew.set_defaults(func=_cmd_suggest_crew)

    sug = sub.add_parser("suggestions", help="Daily suggestions for active jobs")
    sug.add_argument("--date", required=True)
    sug.set_defaults(func=_cmd_suggestions)

    args = parser.parse_args(argv)
    init_logging(args.log_level)
    try:
        args.func(args)
    except SchedulingError:
        sys.exit(1)


if __name__ == "__main__":
    main()
