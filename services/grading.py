"""Mark validation, grade aggregation and the batch grade save."""
from collections import OrderedDict

from flask import current_app

from models import Exam, ExamSubject, Grade, Student
from models.constants import ABSENT_MARK
from services.access_policy import require_access
from services.activity_service import log_activity
from services.exceptions import ValidationError
from services.record_store import get_store
from utils.formatting import one_decimal

GRADE_BANDS = (
    (90, "A+"),
    (80, "A"),
    (70, "B+"),
    (60, "B"),
    (50, "C"),
    (40, "D"),
)


def normalize_entry(raw):
    if raw is None:
        return ""
    raw = str(raw).strip()
    if raw.lower() == "a":
        return ABSENT_MARK
    return raw


def validate_mark(raw):
    if raw == "" or raw == ABSENT_MARK:
        return True
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return False
    # NaN fails both comparisons
    return 0 <= value <= 100


def mark_value(raw):
    """Numeric value of a stored mark; "AB" and other text count as 0."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if value != value:
        return 0.0
    return value


def letter_grade(percentage):
    for floor, letter in GRADE_BANDS:
        if percentage >= floor:
            return letter
    return "F"


def exam_percentage(total, total_marks):
    if not total_marks:
        return 0.0
    return one_decimal(total / total_marks * 100)


def aggregate_for_exam(exam, exam_subjects, grades):
    """Per-student totals for one exam.

    Returns {student_id: {"total_marks": float, "percentage": float}}.
    Only grades belonging to the given exam subjects are summed; grades
    without an exam subject (single-subject exams) are kept as well.
    """
    subject_ids = {es.exam_subject_id for es in exam_subjects}
    totals = OrderedDict()
    for grade in grades:
        if grade.exam_subject_id is not None and grade.exam_subject_id not in subject_ids:
            continue
        totals[grade.student_id] = totals.get(grade.student_id, 0.0) + mark_value(grade.marks_obtained)

    total_marks = getattr(exam, "total_marks", None)
    return {
        student_id: {
            "total_marks": total,
            "percentage": exam_percentage(total, total_marks),
        }
        for student_id, total in totals.items()
    }


def _sheet_id(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Unknown id '{value}' in grade sheet", field=field)


def build_grade_records(exam_id, matrix):
    """Turn a {student_id: {exam_subject_id: raw}} sheet into rows to upsert.

    Blank cells are skipped. The first invalid cell rejects the whole sheet.
    """
    if not isinstance(matrix, dict):
        raise ValidationError("Grades must be sent as a sheet of students", field="marks")

    records = []
    for student_id, cells in matrix.items():
        if not isinstance(cells, dict):
            raise ValidationError("Grades must be sent per subject", field=f"marks[{student_id}]")
        for exam_subject_id, raw in cells.items():
            field = f"marks[{student_id}][{exam_subject_id}]"
            value = normalize_entry(raw)
            if value == "":
                continue
            if not validate_mark(value):
                raise ValidationError(
                    f"Invalid marks '{raw}'. Enter 0-100 or AB for absent.",
                    field=field,
                )
            records.append({
                "student_id": _sheet_id(student_id, field),
                "exam_id": exam_id,
                "exam_subject_id": _sheet_id(exam_subject_id, field),
                "marks_obtained": value,
            })

    if not records:
        raise ValidationError("Please enter at least one grade before saving", field="marks")
    return records


def save_grades(exam_id, matrix, principal=None):
    store = get_store()
    exam = store.get_or_404(Exam, exam_id, "Exam")
    if principal is not None:
        require_access(principal, exam.class_name, exam.section)

    try:
        records = build_grade_records(exam.exam_id, matrix)
    except ValidationError as exc:
        current_app.logger.warning("Grade sheet for exam %s rejected: %s", exam_id, exc.field)
        raise

    exam_subject_ids = {es.exam_subject_id for es in exam.exam_subjects}
    student_ids = {
        s.student_id for s in store.select(Student, {
            "class_name": exam.class_name,
            "section": exam.section,
        })
    }
    for record in records:
        if record["exam_subject_id"] not in exam_subject_ids:
            raise ValidationError(
                "Subject is not part of this exam",
                field=f"marks[{record['student_id']}][{record['exam_subject_id']}]",
            )
        if record["student_id"] not in student_ids:
            raise ValidationError(
                "Student is not in this class",
                field=f"marks[{record['student_id']}][{record['exam_subject_id']}]",
            )

    with store.transaction():
        saved = store.upsert(Grade, records, ("student_id", "exam_subject_id"))
        log_activity(
            f"Saved {len(saved)} grades",
            "grades",
            f"{exam.name} ({exam.class_name}-{exam.section})",
        )

    current_app.logger.info("Saved %s grades for exam %s", len(saved), exam.exam_id)
    return saved


def grade_sheet(exam_id):
    """Current grade matrix for an exam: one row per student, "" for missing marks."""
    store = get_store()
    exam = store.get_or_404(Exam, exam_id, "Exam")
    students = store.select(
        Student,
        {"class_name": exam.class_name, "section": exam.section},
        ["roll_number"],
    )
    exam_subjects = store.select(ExamSubject, {"exam_id": exam.exam_id}, ["exam_subject_id"])
    existing = {
        (g.student_id, g.exam_subject_id): g.marks_obtained
        for g in store.select(Grade, {"exam_id": exam.exam_id})
    }

    rows = []
    for student in students:
        rows.append({
            "student_id": student.student_id,
            "roll_number": student.roll_number,
            "name": student.full_name,
            "grades": {
                es.exam_subject_id: existing.get((student.student_id, es.exam_subject_id), "")
                for es in exam_subjects
            },
        })
    return exam, exam_subjects, rows
