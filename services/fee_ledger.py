"""Dues, payments and collection figures.

A due is a Fee row in ``pending`` or ``partially_paid`` state whose ``amount``
is the balance still owed. Each payment inserts a separate ``paid`` Fee row
linked to the due through ``original_fee_id``.
"""
import warnings
from collections import OrderedDict
from datetime import date
from decimal import Decimal

from flask import current_app

from models import Fee, Student
from models.constants import OUTSTANDING_FEE_STATUSES
from services.access_policy import require_student_access
from services.activity_service import log_activity
from services.exceptions import ConsistencyWarning, ValidationError
from services.record_store import get_store
from utils.formatting import one_decimal, parse_amount, parse_date

ZERO = Decimal("0.00")


def _to_decimal(value):
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def create_due(student_ids, fee_type, amount, due_date, academic_year, term=None,
               remarks=None, principal=None):
    """Create one pending fee per student with identical terms."""
    store = get_store()
    amount = parse_amount(amount)
    if not student_ids:
        raise ValidationError("Select at least one student", field="student_ids")
    if not str(fee_type or "").strip():
        raise ValidationError("fee_type is required", field="fee_type")
    if not str(academic_year or "").strip():
        raise ValidationError("academic_year is required", field="academic_year")
    due_date = parse_date(due_date, "due_date")

    ids = {int(sid) for sid in student_ids}
    students = store.select(Student, {"student_id": ids})
    missing = ids - {s.student_id for s in students}
    if missing:
        raise ValidationError(
            f"Unknown student id(s): {', '.join(str(m) for m in sorted(missing))}",
            field="student_ids",
        )
    if principal is not None:
        require_student_access(principal, students)

    rows = [
        {
            "student_id": student.student_id,
            "fee_type": fee_type.strip(),
            "amount": amount,
            "original_amount": amount,
            "due_date": due_date,
            "academic_year": str(academic_year).strip(),
            "term": term,
            "status": "pending",
            "remarks": remarks,
        }
        for student in students
    ]

    with store.transaction():
        dues = store.insert(Fee, rows)
        log_activity(
            f"Added {fee_type} due of {amount} for {len(dues)} students", "fees"
        )

    current_app.logger.info("Created %s %s dues of %s", len(dues), fee_type, amount)
    return dues


def list_outstanding(student_id):
    return get_store().select(
        Fee,
        {"student_id": int(student_id), "status": OUTSTANDING_FEE_STATUSES},
        ["due_date", "fee_id"],
    )


def apply_payment(due, payment_amount):
    """Work out the due's new (status, amount) after a payment.

    Overpayment is clamped to a zero balance, logged and emitted as a
    ConsistencyWarning instead of failing.
    """
    remaining = _to_decimal(due.amount) - payment_amount
    if remaining > 0:
        return "partially_paid", remaining
    if remaining < 0:
        message = f"Payment of {payment_amount} exceeds balance {due.amount} on fee {due.fee_id}"
        current_app.logger.warning(message)
        warnings.warn(message, ConsistencyWarning, stacklevel=2)
    return "paid", ZERO


def record_payment(original_fee_id, payment_amount, remarks=None, paid_on=None,
                   principal=None):
    """Record a payment against a due.

    Updates the due's balance and status and inserts the ``paid`` history row
    in a single transaction. Returns the new payment row.
    """
    store = get_store()
    payment_amount = parse_amount(payment_amount, field="payment_amount")
    try:
        due_id = int(original_fee_id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid fee id '{original_fee_id}'", field="original_fee_id")
    due = store.get_or_404(Fee, due_id, "Fee")

    if due.status not in OUTSTANDING_FEE_STATUSES:
        raise ValidationError(
            "Payments can only be recorded against pending or partially paid fees",
            field="original_fee_id",
        )
    if principal is not None:
        require_student_access(principal, [due.student])

    status, remaining = apply_payment(due, payment_amount)

    paid_on = paid_on or date.today()

    with store.transaction():
        store.update(Fee, due.fee_id, {"status": status, "amount": remaining})
        payment = store.insert(Fee, {
            "student_id": due.student_id,
            "fee_type": due.fee_type,
            "amount": payment_amount,
            "status": "paid",
            "academic_year": due.academic_year,
            "term": due.term,
            "due_date": due.due_date,
            "paid_date": paid_on,
            "original_fee_id": due.fee_id,
            "remarks": remarks or f"Payment for {due.fee_type}",
        })
        log_activity(
            f"Recorded payment of {payment_amount}",
            "fees",
            f"{due.fee_type} for student {due.student_id}, balance {remaining}",
        )

    current_app.logger.info(
        "Payment %s of %s recorded against fee %s (%s, balance %s)",
        payment.fee_id, payment_amount, due.fee_id, status, remaining,
    )
    return payment


def ledger_balance(due_id):
    """Original amount, total paid and balance for one due."""
    store = get_store()
    due = store.get_or_404(Fee, int(due_id), "Fee")
    payments = store.select(Fee, {"original_fee_id": due.fee_id, "status": "paid"})
    paid = sum((_to_decimal(p.amount) for p in payments), ZERO)
    remaining = _to_decimal(due.amount) if due.status in OUTSTANDING_FEE_STATUSES else ZERO
    original = _to_decimal(due.original_amount) if due.original_amount is not None else paid + remaining
    return {
        "fee_id": due.fee_id,
        "original_amount": original,
        "paid": paid,
        "remaining": remaining,
        "balanced": original == paid + remaining,
    }


def due_totals(students, fees):
    """Sum the outstanding amounts per student; paid rows are ignored."""
    by_student = OrderedDict((s.student_id, []) for s in students)
    for fee in fees:
        if fee.status in OUTSTANDING_FEE_STATUSES and fee.student_id in by_student:
            by_student[fee.student_id].append(fee)

    results = []
    for student in students:
        student_fees = by_student[student.student_id]
        results.append({
            "student": student,
            "student_id": student.student_id,
            "total_due": sum((_to_decimal(f.amount) for f in student_fees), ZERO),
            "fees": student_fees,
        })
    return results


def due_totals_by_class(class_name, section):
    store = get_store()
    students = store.select(
        Student,
        {"class_name": str(class_name), "section": section},
        ["roll_number"],
    )
    if not students:
        return []
    fees = store.select(Fee, {
        "student_id": [s.student_id for s in students],
        "status": OUTSTANDING_FEE_STATUSES,
    })
    return due_totals(students, fees)


def collection_stats(fees, today=None):
    """Collected vs pending totals, collection rate and per fee-type split."""
    collected = ZERO
    pending = ZERO
    this_month = ZERO
    by_category = OrderedDict()
    today = today or date.today()

    for fee in fees:
        amount = _to_decimal(fee.amount)
        bucket = by_category.setdefault(fee.fee_type, {"collected": ZERO, "pending": ZERO})
        if fee.status == "paid":
            collected += amount
            bucket["collected"] += amount
            paid_on = fee.paid_date
            if paid_on and paid_on.year == today.year and paid_on.month == today.month:
                this_month += amount
        elif fee.status in OUTSTANDING_FEE_STATUSES:
            pending += amount
            bucket["pending"] += amount

    total = collected + pending
    rate = one_decimal(float(collected) / float(total) * 100) if total > 0 else 0.0

    return {
        "collected": collected,
        "pending": pending,
        "rate": rate,
        "this_month": this_month,
        "by_category": dict(by_category),
    }


def student_fee_summary(student_id):
    store = get_store()
    student = store.get_or_404(Student, int(student_id), "Student")
    fees = store.select(Fee, {"student_id": student.student_id}, ["-due_date", "-fee_id"])
    outstanding = [f for f in fees if f.status in OUTSTANDING_FEE_STATUSES]
    payments = [f for f in fees if f.status == "paid"]
    return {
        "student": student,
        "outstanding": outstanding,
        "payments": payments,
        "total_due": sum((_to_decimal(f.amount) for f in outstanding), ZERO),
        "total_paid": sum((_to_decimal(f.amount) for f in payments), ZERO),
    }
