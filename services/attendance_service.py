from collections import OrderedDict
from datetime import date

from flask import current_app

from models import Attendance, Student
from models.constants import ATTENDANCE_STATUSES
from services.access_policy import allowed_students_query, require_student_access
from services.activity_service import log_activity
from services.exceptions import ValidationError
from services.record_store import Range, get_store
from utils.formatting import parse_date, percentage

PRESENT_LIKE = ("present", "late")


def attendance_rate(records, count_late_as_present=True):
    total = len(records)
    if count_late_as_present:
        present = sum(1 for r in records if r.status in PRESENT_LIKE)
    else:
        present = sum(1 for r in records if r.status == "present")
    return percentage(present, total)


def empty_tally():
    tally = OrderedDict((status, 0) for status in ATTENDANCE_STATUSES)
    tally["total"] = 0
    return tally


def classwise_breakdown(records):
    """Tally each status per class, keyed by the student's grade_class."""
    breakdown = OrderedDict()
    for record in records:
        student = getattr(record, "student", None)
        class_label = getattr(student, "grade_class", None) if student else None
        if not class_label:
            continue
        tally = breakdown.setdefault(class_label, empty_tally())
        tally[record.status] += 1
        tally["total"] += 1
    return breakdown


def summarize(records):
    total = len(records)
    present = sum(1 for r in records if r.status in PRESENT_LIKE)
    return {
        "total_days": total,
        "present_days": present,
        "absent_days": total - present,
        "late_count": sum(1 for r in records if r.status == "late"),
        "excused_count": sum(1 for r in records if r.status == "excused"),
        "percentage": percentage(present, total),
    }


def clean_records(records):
    if not records:
        raise ValidationError("Select class, section and date first", field="records")
    if not isinstance(records, list):
        raise ValidationError("records must be a list", field="records")

    cleaned = OrderedDict()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ValidationError("Each record must be an object", field=f"records[{index}]")
        raw_id = record.get("student_id")
        if raw_id in (None, ""):
            raise ValidationError("student_id is required", field=f"records[{index}].student_id")
        try:
            student_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValidationError(
                f"Invalid student_id '{raw_id}'", field=f"records[{index}].student_id"
            )
        status = str(record.get("status") or "").strip().lower()
        if status not in ATTENDANCE_STATUSES:
            raise ValidationError(
                f"status must be one of {', '.join(ATTENDANCE_STATUSES)}",
                field=f"records[{index}].status",
            )
        day = parse_date(record.get("date"), f"records[{index}].date")
        # a later entry for the same student and day replaces an earlier one
        cleaned[(student_id, day)] = {
            "student_id": student_id,
            "date": day,
            "status": status,
            "remarks": record.get("remarks") or None,
        }
    return list(cleaned.values())


def mark_attendance(records, principal=None, marked_by=None):
    """Upsert one attendance row per (student, date)."""
    store = get_store()
    rows = clean_records(records)

    student_ids = {row["student_id"] for row in rows}
    students = store.select(Student, {"student_id": student_ids})
    missing = student_ids - {s.student_id for s in students}
    if missing:
        raise ValidationError(
            f"Unknown student id(s): {', '.join(str(m) for m in sorted(missing))}",
            field="records",
        )
    if principal is not None:
        require_student_access(principal, students)

    if marked_by is not None:
        for row in rows:
            row["marked_by"] = marked_by

    with store.transaction():
        saved = store.upsert(Attendance, rows, ("student_id", "date"))
        days = sorted({row["date"] for row in rows})
        log_activity(
            f"Marked attendance for {len(saved)} students",
            "attendance",
            ", ".join(d.isoformat() for d in days),
        )

    current_app.logger.info("Attendance saved for %s students", len(saved))
    return saved


def records_for_class(day, class_name, section):
    store = get_store()
    students = store.select(
        Student,
        {"class_name": str(class_name), "section": section},
        ["roll_number"],
    )
    records = store.select(Attendance, {
        "date": parse_date(day),
        "student_id": [s.student_id for s in students],
    })
    return students, records


def by_student_range(student_id, start=None, end=None):
    store = get_store()
    store.get_or_404(Student, int(student_id), "Student")
    filters = {"student_id": int(student_id)}
    start = parse_date(start, "start_date", required=False)
    end = parse_date(end, "end_date", required=False)
    if start or end:
        filters["date"] = Range(gte=start, lte=end)
    records = store.select(Attendance, filters, ["-date"])
    summary = summarize(records)
    summary["records"] = records
    return summary


def today_overview(day=None, principal=None):
    """Counts for one day plus the classwise breakdown.

    The overall rate is taken against every student on the roll, not only
    those already marked.
    """
    store = get_store()
    day = parse_date(day, required=False) or date.today()
    records = store.select(Attendance, {"date": day})
    if principal is not None:
        visible = {s.student_id for s in allowed_students_query(principal).all()}
        records = [r for r in records if r.student_id in visible]
        total_students = len(visible)
    else:
        total_students = store.query(Student).count()

    counts = empty_tally()
    for record in records:
        counts[record.status] += 1
        counts["total"] += 1

    return {
        "date": day,
        "counts": counts,
        "total_students": total_students,
        "rate": percentage(counts["present"] + counts["late"], total_students),
        "classwise": classwise_breakdown(records),
    }
