import re

from flask import Blueprint, request, jsonify, send_file
from flask_login import login_required

from services import report_service
from services.access_policy import current_principal
from services.exceptions import ValidationError
from utils.serializers import attendance_to_dict, exam_to_dict, grade_to_dict, student_brief

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


@reports_bp.route("/class-marks")
@login_required
def class_marks():
    exam_id = request.args.get("exam_id", type=int)
    if not exam_id:
        raise ValidationError("Select an exam first", field="exam_id")

    report = report_service.class_marks_report(exam_id, principal=current_principal())
    file_format = request.args.get("format", "json")
    safe_name = re.sub(r"[^a-zA-Z0-9]+", "_", report["exam"].name).strip("_")

    if file_format == "pdf":
        return send_file(
            report_service.class_marks_pdf(report),
            as_attachment=True,
            download_name=f"marks_{safe_name}.pdf",
            mimetype="application/pdf"
        )
    if file_format == "excel":
        df = report_service.class_marks_frame(report)
        return send_file(
            report_service.report_to_excel(df, sheet_name="Marks"),
            as_attachment=True,
            download_name=f"marks_{safe_name}.xlsx",
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )

    return jsonify({
        "title": report["title"],
        "exam": exam_to_dict(report["exam"]),
        "rows": [
            {
                "student": student_brief(row["student"]),
                "grades": [grade_to_dict(g) for g in row["grades"]],
                "total_marks": row["total_marks"],
                "percentage": row["percentage"],
                "grade": row["grade"],
            }
            for row in report["rows"]
        ],
        "summary": report["summary"],
    })


@reports_bp.route("/student-marks/<int:student_id>")
@login_required
def student_marks(student_id):
    report = report_service.student_marks_report(student_id, principal=current_principal())
    return jsonify({
        "title": report["title"],
        "student": student_brief(report["student"]),
        "exams": [
            {
                "exam_id": e["exam"].exam_id,
                "name": e["exam"].name,
                "total_marks": e["total_marks"],
                "max_total": e["exam"].total_marks,
                "percentage": e["percentage"],
                "grade": e["grade"],
            }
            for e in report["exams"]
        ],
        "summary": report["summary"],
    })


@reports_bp.route("/class-attendance")
@login_required
def class_attendance():
    class_name = request.args.get("class")
    section = request.args.get("section")
    if not class_name or not section:
        raise ValidationError("Select class and section first", field="class")

    report = report_service.class_attendance_report(
        class_name,
        section,
        request.args.get("start_date"),
        request.args.get("end_date"),
        principal=current_principal(),
    )
    rows = []
    for row in report["rows"]:
        row = dict(row)
        row["student"] = student_brief(row["student"])
        rows.append(row)
    return jsonify({
        "title": report["title"],
        "period": report["period"],
        "rows": rows,
        "summary": report["summary"],
    })


@reports_bp.route("/student-attendance/<int:student_id>")
@login_required
def student_attendance(student_id):
    report = report_service.student_attendance_report(
        student_id,
        request.args.get("start_date"),
        request.args.get("end_date"),
        principal=current_principal(),
    )
    data = dict(report["data"])
    data["records"] = [attendance_to_dict(r) for r in data["records"]]
    return jsonify({
        "title": report["title"],
        "period": report["period"],
        "student": student_brief(report["student"]),
        "data": data,
    })
