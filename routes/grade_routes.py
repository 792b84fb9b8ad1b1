from flask import Blueprint, request, jsonify
from flask_login import login_required

from models import Exam, Subject
from services import exam_service, grading
from services.access_policy import can_access, current_principal, require_access
from services.record_store import get_store
from utils.serializers import exam_subject_to_dict, exam_to_dict

grades_bp = Blueprint("grades", __name__, url_prefix="/grades")


@grades_bp.route("/subjects")
@login_required
def list_subjects():
    subjects = get_store().select(Subject, {"is_active": True}, ["name"])
    return jsonify([
        {"subject_id": s.subject_id, "name": s.name, "code": s.code} for s in subjects
    ])


# =========================================================
# EXAMS
# =========================================================
@grades_bp.route("/exams")
@login_required
def list_exams():
    class_name = request.args.get("class")
    section = request.args.get("section")
    principal = current_principal()
    if class_name:
        require_access(principal, class_name, section)

    exams = exam_service.list_exams(class_name, section)
    if not class_name:
        exams = [e for e in exams if can_access(principal, e.class_name, e.section)]
    return jsonify([exam_to_dict(e) for e in exams])


@grades_bp.route("/exams", methods=["POST"])
@login_required
def create_exam():
    data = request.get_json(silent=True) or {}
    exam = exam_service.create_exam(data, principal=current_principal())
    return jsonify(exam_to_dict(exam)), 201


@grades_bp.route("/exams/<int:exam_id>", methods=["PUT", "PATCH"])
@login_required
def update_exam(exam_id):
    data = request.get_json(silent=True) or {}
    exam = exam_service.update_exam(exam_id, data, principal=current_principal())
    return jsonify(exam_to_dict(exam))


@grades_bp.route("/exams/<int:exam_id>", methods=["DELETE"])
@login_required
def delete_exam(exam_id):
    exam_service.delete_exam(exam_id, principal=current_principal())
    return jsonify({"status": "success"})


@grades_bp.route("/exams/<int:exam_id>/subjects")
@login_required
def list_exam_subjects(exam_id):
    exam = get_store().get_or_404(Exam, exam_id, "Exam")
    require_access(current_principal(), exam.class_name, exam.section)
    return jsonify([exam_subject_to_dict(es) for es in exam.exam_subjects])


@grades_bp.route("/exams/<int:exam_id>/subjects", methods=["POST"])
@login_required
def add_exam_subjects(exam_id):
    data = request.get_json(silent=True) or {}
    created = exam_service.add_exam_subjects(
        exam_id, data.get("subjects") or [], principal=current_principal()
    )
    return jsonify([exam_subject_to_dict(es) for es in created]), 201


# =========================================================
# GRADE ENTRY
# =========================================================
@grades_bp.route("/exams/<int:exam_id>/sheet")
@login_required
def grade_sheet(exam_id):
    exam = get_store().get_or_404(Exam, exam_id, "Exam")
    require_access(current_principal(), exam.class_name, exam.section)

    exam, exam_subjects, rows = grading.grade_sheet(exam_id)
    return jsonify({
        "exam": exam_to_dict(exam),
        "subjects": [exam_subject_to_dict(es) for es in exam_subjects],
        "students": rows,
    })


@grades_bp.route("/exams/<int:exam_id>/save", methods=["POST"])
@login_required
def save_grades(exam_id):
    data = request.get_json(silent=True) or {}
    saved = grading.save_grades(exam_id, data.get("grades") or {}, principal=current_principal())
    return jsonify({"status": "success", "saved": len(saved)})
