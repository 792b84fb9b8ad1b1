from flask import Blueprint, request, jsonify, send_file
from flask_login import login_required

from services import student_service
from services.access_policy import current_principal
from services.exceptions import ValidationError
from utils.serializers import student_to_dict

students_bp = Blueprint("students", __name__, url_prefix="/students")


@students_bp.route("")
@login_required
def list_students():
    students = student_service.list_students(
        current_principal(),
        request.args.get("class"),
        request.args.get("section"),
    )
    return jsonify([student_to_dict(s) for s in students])


@students_bp.route("", methods=["POST"])
@login_required
def create_student():
    data = request.get_json(silent=True) or {}
    student = student_service.create_student(data, principal=current_principal())
    return jsonify(student_to_dict(student)), 201


@students_bp.route("/<int:student_id>", methods=["PUT", "PATCH"])
@login_required
def update_student(student_id):
    data = request.get_json(silent=True) or {}
    student = student_service.update_student(student_id, data, principal=current_principal())
    return jsonify(student_to_dict(student))


@students_bp.route("/<int:student_id>", methods=["DELETE"])
@login_required
def delete_student(student_id):
    student_service.delete_student(student_id, principal=current_principal())
    return jsonify({"status": "success"})


# =========================================================
# BULK UPLOAD
# =========================================================
@students_bp.route("/template")
@login_required
def download_template():
    return send_file(
        student_service.student_template(),
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name="student_upload_template.xlsx"
    )


@students_bp.route("/upload", methods=["POST"])
@login_required
def upload_students():
    file = request.files.get("file")
    if not file or not file.filename:
        raise ValidationError("No file selected", field="file")
    if not file.filename.lower().endswith(".xlsx"):
        raise ValidationError("Invalid file format. Only .xlsx files are accepted.", field="file")

    added, errors = student_service.import_students(file, principal=current_principal())

    message = f"Successfully added {len(added)} students."
    if errors:
        message += f" {len(errors)} errors occurred (first 3: {', '.join(errors[:3])})."
    return jsonify({"status": "success", "message": message, "errors": errors})
