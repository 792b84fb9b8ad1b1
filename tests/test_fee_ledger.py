import logging
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Fee
from services import fee_ledger
from services.exceptions import (
    AccessDeniedError, ConsistencyWarning, NotFoundError, StoreError, ValidationError
)
from services.record_store import RecordStore
from tests.conftest import add_student


def make_due(student, amount="1000"):
    (due,) = fee_ledger.create_due(
        [student.student_id], "tuition", amount, "2026-11-01", "2026", term="1st Term"
    )
    return due


def test_create_due_one_pending_row_per_student(class_5a):
    dues = fee_ledger.create_due(
        [s.student_id for s in class_5a], "bus", "250", "2026-11-01", "2026"
    )
    assert len(dues) == 3
    assert {d.status for d in dues} == {"pending"}
    assert all(d.amount == Decimal("250.00") for d in dues)
    assert all(d.original_amount == Decimal("250.00") for d in dues)


@pytest.mark.parametrize("amount", ["0", "-5", "abc", ""])
def test_create_due_rejects_non_positive_amount(class_5a, amount):
    with pytest.raises(ValidationError) as exc:
        fee_ledger.create_due([class_5a[0].student_id], "bus", amount, "2026-11-01", "2026")
    assert exc.value.field == "amount"
    assert Fee.query.count() == 0


def test_create_due_checks_access(class_5a):
    from services.access_policy import Assignment, Principal

    other = add_student(9, class_name="6", section="B")
    teacher = Principal(user_id=1, role="teacher", assignments=(Assignment("5", "A"),))
    with pytest.raises(AccessDeniedError):
        fee_ledger.create_due(
            [class_5a[0].student_id, other.student_id], "bus", "100", "2026-11-01", "2026",
            principal=teacher,
        )


def test_partial_then_final_payment(class_5a):
    due = make_due(class_5a[0])

    first = fee_ledger.record_payment(due.fee_id, "400")
    due = db.session.get(Fee, due.fee_id)
    assert due.status == "partially_paid"
    assert due.amount == Decimal("600.00")
    assert first.status == "paid"
    assert first.amount == Decimal("400.00")
    assert first.paid_date == date.today()
    assert first.fee_type == "tuition"
    assert first.term == "1st Term"
    assert first.original_fee_id == due.fee_id

    fee_ledger.record_payment(due.fee_id, "600")
    due = db.session.get(Fee, due.fee_id)
    assert due.status == "paid"
    assert due.amount == Decimal("0.00")

    payments = Fee.query.filter_by(original_fee_id=due.fee_id, status="paid").all()
    assert sum(p.amount for p in payments) == Decimal("1000.00")

    balance = fee_ledger.ledger_balance(due.fee_id)
    assert balance["balanced"]
    assert balance["remaining"] == 0


def test_overpayment_is_clamped_and_logged(class_5a, caplog):
    due = make_due(class_5a[0], "300")

    with caplog.at_level(logging.WARNING), pytest.warns(ConsistencyWarning):
        payment = fee_ledger.record_payment(due.fee_id, "500")

    due = db.session.get(Fee, due.fee_id)
    assert due.status == "paid"
    assert due.amount == Decimal("0.00")
    assert payment.amount == Decimal("500.00")
    assert "exceeds balance" in caplog.text


def test_payment_rejections(class_5a):
    due = make_due(class_5a[0], "300")

    with pytest.raises(ValidationError):
        fee_ledger.record_payment(due.fee_id, "0")

    fee_ledger.record_payment(due.fee_id, "300")
    with pytest.raises(ValidationError) as exc:
        fee_ledger.record_payment(due.fee_id, "10")
    assert exc.value.field == "original_fee_id"

    with pytest.raises(NotFoundError):
        fee_ledger.record_payment(99999, "10")

    with pytest.raises(ValidationError) as exc:
        fee_ledger.record_payment("abc", "10")
    assert exc.value.field == "original_fee_id"


def test_failed_payment_insert_leaves_due_untouched(class_5a, monkeypatch):
    due = make_due(class_5a[0], "1000")
    insert = RecordStore.insert

    def failing_insert(self, model, rows):
        if model is Fee:
            raise SQLAlchemyError("insert failed")
        return insert(self, model, rows)

    monkeypatch.setattr(RecordStore, "insert", failing_insert)

    with pytest.raises(StoreError) as exc:
        fee_ledger.record_payment(due.fee_id, "400")
    assert isinstance(exc.value.__cause__, SQLAlchemyError)

    due = db.session.get(Fee, due.fee_id)
    assert due.status == "pending"
    assert due.amount == Decimal("1000.00")
    assert Fee.query.filter_by(status="paid").count() == 0


def test_list_outstanding_and_class_totals(class_5a):
    a, b, c = class_5a
    due_a = make_due(a, "1000")
    make_due(a, "200")
    make_due(b, "500")
    fee_ledger.record_payment(due_a.fee_id, "400")

    outstanding = fee_ledger.list_outstanding(a.student_id)
    assert sorted(f.amount for f in outstanding) == [Decimal("200.00"), Decimal("600.00")]

    totals = {row["student_id"]: row["total_due"] for row in fee_ledger.due_totals_by_class("5", "A")}
    assert totals == {
        a.student_id: Decimal("800.00"),
        b.student_id: Decimal("500.00"),
        c.student_id: Decimal("0.00"),
    }


def test_due_totals_excludes_paid_rows():
    students = [SimpleNamespace(student_id=1), SimpleNamespace(student_id=2)]
    fees = [
        SimpleNamespace(student_id=1, status="pending", amount=Decimal("100")),
        SimpleNamespace(student_id=1, status="partially_paid", amount=Decimal("50")),
        SimpleNamespace(student_id=1, status="paid", amount=Decimal("999")),
        SimpleNamespace(student_id=2, status="paid", amount=Decimal("10")),
    ]
    totals = {row["student_id"]: row["total_due"] for row in fee_ledger.due_totals(students, fees)}
    assert totals == {1: Decimal("150"), 2: Decimal("0")}


def test_collection_stats():
    today = date(2026, 10, 18)
    fees = [
        SimpleNamespace(fee_type="tuition", status="paid", amount=Decimal("300"), paid_date=date(2026, 10, 2)),
        SimpleNamespace(fee_type="tuition", status="partially_paid", amount=Decimal("700"), paid_date=None),
        SimpleNamespace(fee_type="bus", status="paid", amount=Decimal("100"), paid_date=date(2026, 9, 30)),
        SimpleNamespace(fee_type="bus", status="pending", amount=Decimal("100"), paid_date=None),
    ]

    stats = fee_ledger.collection_stats(fees, today=today)

    assert stats["collected"] == Decimal("400")
    assert stats["pending"] == Decimal("800")
    assert stats["rate"] == 33.3
    assert stats["this_month"] == Decimal("300")
    assert stats["by_category"]["tuition"] == {"collected": Decimal("300"), "pending": Decimal("700")}
    assert stats["by_category"]["bus"] == {"collected": Decimal("100"), "pending": Decimal("100")}


def test_collection_stats_empty():
    stats = fee_ledger.collection_stats([])
    assert stats["rate"] == 0
    assert stats["collected"] == 0
