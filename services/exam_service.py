from flask import current_app

from models import ClassSubject, Exam, ExamSubject, Subject
from models.constants import EXAM_STATUSES
from services.access_policy import require_access
from services.activity_service import log_activity
from services.exceptions import ValidationError
from services.record_store import get_store
from utils.formatting import parse_date

EXAM_FIELDS = ("name", "class_name", "section", "exam_date", "total_marks", "status")


def clean_exam_data(data, partial=False):
    cleaned = {}
    for key in EXAM_FIELDS:
        if key in data:
            cleaned[key] = data[key]
    # forms post "class"; the attribute is class_name
    if "class" in data and "class_name" not in cleaned:
        cleaned["class_name"] = data["class"]

    if not partial:
        for required in ("name", "class_name", "section"):
            if not str(cleaned.get(required) or "").strip():
                raise ValidationError(f"{required.replace('_name', '')} is required", field=required)

    if "class_name" in cleaned:
        cleaned["class_name"] = str(cleaned["class_name"]).strip()
    if "exam_date" in cleaned:
        cleaned["exam_date"] = parse_date(cleaned["exam_date"], "exam_date", required=False)
    if "status" in cleaned and cleaned["status"] not in EXAM_STATUSES:
        raise ValidationError(
            f"status must be one of {', '.join(EXAM_STATUSES)}", field="status"
        )
    if "total_marks" in cleaned:
        try:
            cleaned["total_marks"] = int(cleaned["total_marks"] or 0)
        except (TypeError, ValueError):
            raise ValidationError("total_marks must be a whole number", field="total_marks")
        if cleaned["total_marks"] < 0:
            raise ValidationError("total_marks cannot be negative", field="total_marks")
    return cleaned


def list_exams(class_name=None, section=None):
    filters = {}
    if class_name:
        filters["class_name"] = str(class_name)
    if section:
        filters["section"] = section
    return get_store().select(Exam, filters, ["-exam_date", "-exam_id"])


def create_exam(data, principal=None):
    """Create an exam and one exam subject per subject configured for its class-section."""
    store = get_store()
    cleaned = clean_exam_data(data)
    if principal is not None:
        require_access(principal, cleaned["class_name"], cleaned["section"])

    default_max = current_app.config.get("DEFAULT_EXAM_SUBJECT_MAX_MARKS", 100)

    with store.transaction():
        exam = store.insert(Exam, cleaned)
        class_subjects = store.select(ClassSubject, {
            "class_name": exam.class_name,
            "section": exam.section,
        })
        if class_subjects:
            store.insert(ExamSubject, [
                {
                    "exam_id": exam.exam_id,
                    "subject_id": cs.subject_id,
                    "max_marks": default_max,
                }
                for cs in class_subjects
            ])
        log_activity(
            f"Created exam {exam.name}",
            "grades",
            f"Class {exam.class_name}-{exam.section}, {len(class_subjects)} subjects",
        )

    current_app.logger.info(
        "Exam %s created with %s subjects", exam.exam_id, len(class_subjects)
    )
    return exam


def update_exam(exam_id, data, principal=None):
    store = get_store()
    exam = store.get_or_404(Exam, exam_id, "Exam")
    cleaned = clean_exam_data(data, partial=True)
    if principal is not None:
        require_access(principal, exam.class_name, exam.section)
        require_access(
            principal,
            cleaned.get("class_name", exam.class_name),
            cleaned.get("section", exam.section),
        )

    with store.transaction():
        exam = store.update(Exam, exam.exam_id, cleaned)
        log_activity(f"Updated exam {exam.name}", "grades")
    return exam


def delete_exam(exam_id, principal=None):
    store = get_store()
    exam = store.get_or_404(Exam, exam_id, "Exam")
    if principal is not None:
        require_access(principal, exam.class_name, exam.section)

    name = exam.name
    with store.transaction():
        store.delete(Exam, exam.exam_id)
        log_activity(f"Deleted exam {name}", "grades")


def add_exam_subjects(exam_id, subjects, principal=None):
    """Add subjects to an existing exam. Entries without a subject are skipped."""
    store = get_store()
    exam = store.get_or_404(Exam, exam_id, "Exam")
    if principal is not None:
        require_access(principal, exam.class_name, exam.section)

    if not isinstance(subjects, list):
        raise ValidationError("subjects must be a list", field="subjects")

    rows = []
    for index, entry in enumerate(subjects):
        if not isinstance(entry, dict):
            raise ValidationError("Each subject must be an object", field=f"subjects[{index}]")
        raw_id = entry.get("subject_id")
        if not raw_id:
            continue
        try:
            subject_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValidationError(
                f"Invalid subject_id '{raw_id}'", field=f"subjects[{index}].subject_id"
            )
        try:
            max_marks = int(entry.get("max_marks") or 0)
        except (TypeError, ValueError):
            max_marks = 0
        if max_marks <= 0:
            raise ValidationError(
                "max_marks must be greater than 0", field=f"subjects[{index}].max_marks"
            )
        store.get_or_404(Subject, subject_id, "Subject")
        rows.append({
            "exam_id": exam.exam_id,
            "subject_id": subject_id,
            "max_marks": max_marks,
        })

    if not rows:
        raise ValidationError("Select at least one subject", field="subjects")

    with store.transaction():
        created = store.insert(ExamSubject, rows)
        log_activity(f"Added {len(created)} subjects to {exam.name}", "grades")
    return created
