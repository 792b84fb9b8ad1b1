from flask import Blueprint, request, jsonify, send_file, current_app
from flask_login import login_required

from models import Fee, Student
from services import fee_ledger
from services.access_policy import (
    allowed_students_query, current_principal, is_unrestricted, require_access,
    require_student_access
)
from services.exceptions import ValidationError
from services.fee_receipt import payment_receipt_pdf
from services.record_store import get_store
from utils.formatting import money
from utils.serializers import fee_to_dict, student_brief

fees_bp = Blueprint("fees", __name__, url_prefix="/fees")


def _student_for(student_id):
    student = get_store().get_or_404(Student, student_id, "Student")
    require_student_access(current_principal(), [student])
    return student


@fees_bp.route("/dues", methods=["POST"])
@login_required
def create_due():
    data = request.get_json(silent=True) or {}
    dues = fee_ledger.create_due(
        student_ids=data.get("student_ids") or [],
        fee_type=data.get("fee_type"),
        amount=data.get("amount"),
        due_date=data.get("due_date"),
        academic_year=data.get("academic_year"),
        term=data.get("term"),
        remarks=data.get("remarks"),
        principal=current_principal(),
    )
    return jsonify([fee_to_dict(f) for f in dues]), 201


@fees_bp.route("/student/<int:student_id>/outstanding")
@login_required
def outstanding(student_id):
    _student_for(student_id)
    return jsonify([fee_to_dict(f) for f in fee_ledger.list_outstanding(student_id)])


@fees_bp.route("/student/<int:student_id>/summary")
@login_required
def student_summary(student_id):
    _student_for(student_id)
    summary = fee_ledger.student_fee_summary(student_id)
    return jsonify({
        "student": student_brief(summary["student"]),
        "outstanding": [fee_to_dict(f) for f in summary["outstanding"]],
        "payments": [fee_to_dict(f) for f in summary["payments"]],
        "total_due": money(summary["total_due"]),
        "total_paid": money(summary["total_paid"]),
    })


@fees_bp.route("/payments", methods=["POST"])
@login_required
def record_payment():
    data = request.get_json(silent=True) or {}
    if not data.get("original_fee_id"):
        raise ValidationError("Select a due to pay", field="original_fee_id")

    payment = fee_ledger.record_payment(
        data["original_fee_id"],
        data.get("payment_amount"),
        remarks=data.get("remarks"),
        principal=current_principal(),
    )
    due = get_store().get(Fee, payment.original_fee_id)
    return jsonify({
        "payment": fee_to_dict(payment),
        "due": fee_to_dict(due),
    }), 201


@fees_bp.route("/payments/<int:fee_id>/receipt")
@login_required
def payment_receipt(fee_id):
    payment = get_store().get_or_404(Fee, fee_id, "Payment")
    require_student_access(current_principal(), [payment.student])

    balance = None
    if payment.original_fee_id:
        balance = fee_ledger.ledger_balance(payment.original_fee_id)["remaining"]

    pdf = payment_receipt_pdf(payment, current_app.config["SCHOOL_NAME"], balance)
    return send_file(
        pdf,
        as_attachment=True,
        download_name=f"receipt_{payment.fee_id:06d}.pdf",
        mimetype="application/pdf"
    )


@fees_bp.route("/class-dues")
@login_required
def class_dues():
    class_name = request.args.get("class")
    section = request.args.get("section")
    if not class_name or not section:
        raise ValidationError("Select class and section first", field="class")
    require_access(current_principal(), class_name, section)

    return jsonify([
        {
            "student": student_brief(row["student"]),
            "total_due": money(row["total_due"]),
            "fees": [fee_to_dict(f) for f in row["fees"]],
        }
        for row in fee_ledger.due_totals_by_class(class_name, section)
    ])


@fees_bp.route("/stats")
@login_required
def stats():
    principal = current_principal()
    store = get_store()
    if is_unrestricted(principal):
        fees = store.select(Fee)
    else:
        student_ids = [s.student_id for s in allowed_students_query(principal).all()]
        fees = store.select(Fee, {"student_id": student_ids})

    result = fee_ledger.collection_stats(fees)
    return jsonify({
        "collected": money(result["collected"]),
        "pending": money(result["pending"]),
        "rate": result["rate"],
        "this_month": money(result["this_month"]),
        "by_category": {
            fee_type: {"collected": money(v["collected"]), "pending": money(v["pending"])}
            for fee_type, v in result["by_category"].items()
        },
    })
