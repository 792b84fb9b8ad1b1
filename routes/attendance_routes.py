from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services import attendance_service
from services.access_policy import current_principal, require_access, require_student_access
from services.exceptions import ValidationError
from services.record_store import get_store
from models import Student
from utils.serializers import attendance_to_dict, student_brief

attendance_bp = Blueprint("attendance", __name__, url_prefix="/attendance")


def _class_selector(args):
    class_name = args.get("class")
    section = args.get("section")
    if not class_name:
        raise ValidationError("Select a class first", field="class")
    if not section:
        raise ValidationError("Select a section first", field="section")
    return class_name, section


@attendance_bp.route("/class")
@login_required
def class_attendance():
    class_name, section = _class_selector(request.args)
    require_access(current_principal(), class_name, section)

    students, records = attendance_service.records_for_class(
        request.args.get("date"), class_name, section
    )
    by_student = {r.student_id: r for r in records}
    return jsonify({
        "students": [
            dict(student_brief(s), attendance=(
                attendance_to_dict(by_student[s.student_id]) if s.student_id in by_student else None
            ))
            for s in students
        ],
        "rate": attendance_service.attendance_rate(records),
    })


@attendance_bp.route("/mark", methods=["POST"])
@login_required
def mark_attendance():
    data = request.get_json(silent=True) or {}
    records = data.get("records") or []

    # a shared date may be posted once for the whole class
    shared_date = data.get("date")
    if shared_date:
        records = [
            dict(r, date=r.get("date") or shared_date) if isinstance(r, dict) else r
            for r in records
        ]

    saved = attendance_service.mark_attendance(
        records,
        principal=current_principal(),
        marked_by=current_user.user_id,
    )
    return jsonify({"status": "success", "saved": len(saved)})


@attendance_bp.route("/today")
@login_required
def today():
    overview = attendance_service.today_overview(
        request.args.get("date"), principal=current_principal()
    )
    overview["date"] = overview["date"].isoformat()
    return jsonify(overview)


@attendance_bp.route("/student/<int:student_id>")
@login_required
def student_attendance(student_id):
    student = get_store().get_or_404(Student, student_id, "Student")
    require_student_access(current_principal(), [student])

    summary = attendance_service.by_student_range(
        student_id, request.args.get("start_date"), request.args.get("end_date")
    )
    summary["records"] = [attendance_to_dict(r) for r in summary["records"]]
    summary["student"] = student_brief(student)
    return jsonify(summary)
