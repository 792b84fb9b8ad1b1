from datetime import date

import pytest

from models import Attendance, Student
from services.exceptions import NotFoundError, StoreError
from services.record_store import Range, get_store
from tests.conftest import add_student


def test_select_filters(class_5a):
    add_student(10, class_name="6", section="A")
    store = get_store()

    assert len(store.select(Student, {"class_name": "5"})) == 3
    assert len(store.select(Student, {"roll_number": ["1", "10"]})) == 2
    assert store.select(Student, {"roll_number": []}) == []
    ordered = store.select(Student, {"class_name": "5"}, ["-roll_number"])
    assert [s.roll_number for s in ordered] == ["3", "2", "1"]


def test_range_filter_is_inclusive(class_5a):
    store = get_store()
    sid = class_5a[0].student_id
    with store.transaction():
        store.insert(Attendance, [
            {"student_id": sid, "date": date(2026, 10, day), "status": "present"}
            for day in (1, 2, 3, 4)
        ])

    rows = store.select(Attendance, {"date": Range(gte=date(2026, 10, 2), lte=date(2026, 10, 3))})
    assert [r.date.day for r in sorted(rows, key=lambda r: r.date)] == [2, 3]


def test_upsert_patches_existing_row(class_5a):
    store = get_store()
    sid = class_5a[0].student_id
    key = ("student_id", "date")
    with store.transaction():
        store.upsert(Attendance, [{"student_id": sid, "date": date(2026, 10, 1), "status": "absent"}], key)
    with store.transaction():
        store.upsert(Attendance, [{"student_id": sid, "date": date(2026, 10, 1), "status": "present"}], key)

    rows = store.select(Attendance)
    assert len(rows) == 1
    assert rows[0].status == "present"


def test_transaction_rolls_back_on_integrity_error(class_5a):
    store = get_store()
    sid = class_5a[0].student_id
    row = {"student_id": sid, "date": date(2026, 10, 1), "status": "absent"}

    with pytest.raises(StoreError) as exc:
        with store.transaction():
            store.insert(Attendance, [row, dict(row)])
    assert exc.value.__cause__ is not None
    assert store.select(Attendance) == []


def test_get_or_404(ctx):
    with pytest.raises(NotFoundError):
        get_store().get_or_404(Student, 404, "Student")
