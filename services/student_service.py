from io import BytesIO

import pandas as pd
from flask import current_app

from models import Student
from models.constants import STUDENT_STATUSES
from services.access_policy import allowed_students_query, require_access
from services.activity_service import log_activity
from services.exceptions import AccessDeniedError, ValidationError
from services.record_store import get_store
from utils.formatting import parse_date

STUDENT_FIELDS = (
    "roll_number", "first_name", "last_name", "class_name", "section", "status",
    "date_of_birth", "admission_date", "guardian_name", "guardian_phone",
    "guardian_email", "address",
)
REQUIRED_FIELDS = ("roll_number", "first_name", "last_name", "class_name", "section")
DATE_FIELDS = ("date_of_birth", "admission_date")

TEMPLATE_COLUMNS = [
    "Roll Number", "First Name", "Last Name", "Class", "Section",
    "Guardian Name", "Guardian Phone",
]


def clean_student_data(data, partial=False):
    cleaned = {key: data[key] for key in STUDENT_FIELDS if key in data}
    if "class" in data and "class_name" not in cleaned:
        cleaned["class_name"] = data["class"]

    for key in ("roll_number", "first_name", "last_name", "class_name", "section"):
        if key in cleaned and cleaned[key] is not None:
            cleaned[key] = str(cleaned[key]).strip()

    if not partial:
        for key in REQUIRED_FIELDS:
            if not cleaned.get(key):
                raise ValidationError(f"{key} is required", field=key)

    if "section" in cleaned and cleaned["section"]:
        cleaned["section"] = cleaned["section"].upper()
    if "status" in cleaned and cleaned["status"] not in STUDENT_STATUSES:
        raise ValidationError(
            f"status must be one of {', '.join(STUDENT_STATUSES)}", field="status"
        )
    for key in DATE_FIELDS:
        if key in cleaned:
            cleaned[key] = parse_date(cleaned[key], key, required=False)
    return cleaned


def list_students(principal, class_name=None, section=None):
    if class_name and section:
        require_access(principal, class_name, section)
        return get_store().select(
            Student,
            {"class_name": str(class_name), "section": section},
            ["roll_number"],
        )
    return allowed_students_query(principal).order_by(Student.created_at.desc()).all()


def create_student(data, principal=None):
    store = get_store()
    cleaned = clean_student_data(data)
    if principal is not None:
        require_access(principal, cleaned["class_name"], cleaned["section"])
    _ensure_unique_roll(cleaned["roll_number"], cleaned["class_name"], cleaned["section"])

    with store.transaction():
        student = store.insert(Student, cleaned)
        log_activity(
            f"Added student {student.full_name}",
            "students",
            f"Class {student.class_name}-{student.section}",
        )
    return student


def update_student(student_id, data, principal=None):
    store = get_store()
    student = store.get_or_404(Student, int(student_id), "Student")
    cleaned = clean_student_data(data, partial=True)
    if principal is not None:
        require_access(principal, student.class_name, student.section)
        require_access(
            principal,
            cleaned.get("class_name", student.class_name),
            cleaned.get("section", student.section),
        )

    target = (
        cleaned.get("roll_number", student.roll_number),
        cleaned.get("class_name", student.class_name),
        cleaned.get("section", student.section),
    )
    if target != (student.roll_number, student.class_name, student.section):
        _ensure_unique_roll(*target)

    with store.transaction():
        student = store.update(Student, student.student_id, cleaned)
        log_activity(f"Updated student {student.full_name}", "students")
    return student


def delete_student(student_id, principal=None):
    store = get_store()
    student = store.get_or_404(Student, int(student_id), "Student")
    if principal is not None:
        require_access(principal, student.class_name, student.section)

    name = student.full_name
    with store.transaction():
        store.delete(Student, student.student_id)
        log_activity(f"Deleted student {name}", "students")


def _ensure_unique_roll(roll_number, class_name, section):
    existing = get_store().first(Student, {
        "roll_number": roll_number,
        "class_name": str(class_name),
        "section": section,
    })
    if existing:
        raise ValidationError(
            f"Roll number {roll_number} already exists in Class {class_name}-{section}",
            field="roll_number",
        )


# =========================================================
# BULK UPLOAD
# =========================================================
def student_template():
    df = pd.DataFrame(columns=TEMPLATE_COLUMNS)
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Students")
    output.seek(0)
    return output


def import_students(file, principal=None):
    """Add students from an uploaded .xlsx sheet; bad rows are reported and skipped."""
    store = get_store()
    df = pd.read_excel(file)
    df.columns = [str(c).strip() for c in df.columns]

    required_cols = ["Roll Number", "First Name", "Last Name", "Class", "Section"]
    missing = [col for col in required_cols if col not in df.columns]
    if missing:
        raise ValidationError(f"Missing columns: {', '.join(missing)}", field="file")

    added = []
    errors = []
    seen = set()

    with store.transaction():
        for index, row in df.iterrows():
            if any(pd.isna(row.get(col)) for col in required_cols):
                continue

            data = {
                "roll_number": _cell_text(row["Roll Number"]),
                "first_name": _cell_text(row["First Name"]),
                "last_name": _cell_text(row["Last Name"]),
                "class_name": _cell_text(row["Class"]),
                "section": _cell_text(row["Section"]),
                "guardian_name": _cell_text(row.get("Guardian Name")),
                "guardian_phone": _cell_text(row.get("Guardian Phone")),
            }
            try:
                cleaned = clean_student_data(data)
                if principal is not None:
                    require_access(principal, cleaned["class_name"], cleaned["section"])
                key = (cleaned["roll_number"], cleaned["class_name"], cleaned["section"])
                if key in seen:
                    raise ValidationError(f"Roll number {key[0]} repeated in sheet")
                _ensure_unique_roll(*key)
            except (ValidationError, AccessDeniedError) as exc:
                errors.append(f"Row {index + 2}: {exc.message}")
                continue

            seen.add(key)
            added.append(store.insert(Student, cleaned))

        if added:
            log_activity(f"Imported {len(added)} students", "students")

    current_app.logger.info("Imported %s students, %s rows rejected", len(added), len(errors))
    return added, errors


def _cell_text(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()
