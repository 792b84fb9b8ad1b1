from types import SimpleNamespace

import pytest

from services.exam_service import create_exam
from tests.conftest import add_student, add_subjects, add_user, login


@pytest.fixture
def school(app):
    # Seeded in its own app context; route calls push a fresh one per request.
    with app.app_context():
        add_user("admin", role="admin")
        teacher = add_user("teacher", assignments=[("5", "A")])
        own = add_student(1, "5", "A")
        other = add_student(2, "6", "B")
        add_subjects("5", "A")
        exam = create_exam({"name": "Unit Test 1", "class": "5", "section": "A", "total_marks": 200})
        return SimpleNamespace(
            teacher_id=teacher.user_id,
            own_id=own.student_id,
            other_id=other.student_id,
            exam_id=exam.exam_id,
            exam_subject_ids=[es.exam_subject_id for es in exam.exam_subjects],
        )


def test_login_rejects_bad_password(client, school):
    assert login(client, "teacher", "wrong").status_code == 401
    assert client.post("/login", json={"username": "teacher"}).status_code == 400


def test_me_requires_login(client, school):
    response = client.get("/me")
    assert response.status_code == 401
    assert response.get_json() == {"error": "Login required"}


def test_me_lists_assigned_classes(client, school):
    assert login(client, "teacher").status_code == 200

    me = client.get("/me").get_json()
    assert me["is_restricted"] is True
    assert me["available_classes"] == ["5"]
    assert me["available_sections"] == ["A"]
    assert [(a["class"], a["section"]) for a in me["assignments"]] == [("5", "A")]


def test_logout_clears_session(client, school):
    login(client, "teacher")
    client.get("/logout")
    assert client.get("/me").status_code == 401


def test_admin_routes_need_admin_role(client, school):
    login(client, "teacher")
    assert client.get("/admin/users").status_code == 403


def test_assign_class_rejects_duplicate(client, school):
    login(client, "admin")
    url = f"/admin/users/{school.teacher_id}/assignments"

    response = client.post(url, json={"class": "7", "section": "b"})
    assert response.status_code == 201
    assert response.get_json()["section"] == "B"

    response = client.post(url, json={"class": "7", "section": "B"})
    assert response.status_code == 400
    assert response.get_json()["error"] == "User is already assigned to Class 7-B"

    assignments = client.get(url).get_json()
    assert len(assignments) == 2


def test_teacher_cannot_open_foreign_class(client, school):
    login(client, "teacher")

    response = client.get("/students?class=6&section=B")
    assert response.status_code == 403
    assert response.get_json()["error"] == "You do not have access to Class 6-B"

    visible = client.get("/students").get_json()
    assert [s["student_id"] for s in visible] == [school.own_id]

    assert client.get(f"/fees/student/{school.other_id}/outstanding").status_code == 403


def test_missing_student_is_404(client, school):
    login(client, "admin")
    response = client.put("/students/9999", json={"first_name": "X"})
    assert response.status_code == 404
    assert response.get_json()["error"] == "Student not found"


def test_mark_attendance_with_shared_date(client, school):
    login(client, "teacher")

    response = client.post("/attendance/mark", json={
        "date": "2026-10-05",
        "records": [{"student_id": school.own_id, "status": "present"}],
    })
    assert response.get_json() == {"status": "success", "saved": 1}

    sheet = client.get("/attendance/class?class=5&section=A&date=2026-10-05").get_json()
    assert sheet["rate"] == 100.0
    assert sheet["students"][0]["attendance"]["status"] == "present"


def test_save_grades_and_read_sheet(client, school):
    login(client, "teacher")
    es1, es2 = school.exam_subject_ids
    sid = str(school.own_id)

    response = client.post(f"/grades/exams/{school.exam_id}/save", json={
        "grades": {sid: {str(es1): "88", str(es2): "a"}},
    })
    assert response.get_json() == {"status": "success", "saved": 2}

    sheet = client.get(f"/grades/exams/{school.exam_id}/sheet").get_json()
    row = sheet["students"][0]
    assert row["grades"] == {str(es1): "88", str(es2): "AB"}


def test_save_grades_rejects_out_of_range_mark(client, school):
    login(client, "teacher")
    es1 = school.exam_subject_ids[0]
    sid = str(school.own_id)

    response = client.post(f"/grades/exams/{school.exam_id}/save", json={
        "grades": {sid: {str(es1): "101"}},
    })
    assert response.status_code == 400
    assert response.get_json()["field"] == f"marks[{sid}][{es1}]"


def test_class_marks_pdf_download(client, school):
    login(client, "teacher")
    response = client.get(f"/reports/class-marks?exam_id={school.exam_id}&format=pdf")
    assert response.status_code == 200
    assert response.mimetype == "application/pdf"
    assert response.data.startswith(b"%PDF")


def test_fee_payment_flow(client, school):
    login(client, "admin")

    response = client.post("/fees/dues", json={
        "student_ids": [school.own_id],
        "fee_type": "tuition",
        "amount": "1000",
        "due_date": "2026-11-01",
        "academic_year": "2026",
    })
    assert response.status_code == 201
    due_id = response.get_json()[0]["fee_id"]

    response = client.post("/fees/payments", json={
        "original_fee_id": due_id,
        "payment_amount": "400",
    })
    assert response.status_code == 201
    body = response.get_json()
    assert body["due"]["status"] == "partially_paid"
    assert body["due"]["amount"] == 600.0
    assert body["payment"]["amount"] == 400.0
    assert body["payment"]["original_fee_id"] == due_id

    summary = client.get(f"/fees/student/{school.own_id}/summary").get_json()
    assert summary["total_due"] == 600.0
    assert summary["total_paid"] == 400.0

    receipt = client.get(f"/fees/payments/{body['payment']['fee_id']}/receipt")
    assert receipt.status_code == 200
    assert receipt.data.startswith(b"%PDF")


def test_payment_requires_a_due(client, school):
    login(client, "admin")
    response = client.post("/fees/payments", json={"payment_amount": "10"})
    assert response.status_code == 400
    assert response.get_json()["field"] == "original_fee_id"


@pytest.mark.parametrize("grades", [{"abc": {"1": "50"}}, [{"1": "50"}]])
def test_save_grades_rejects_malformed_sheet(client, school, grades):
    login(client, "teacher")
    response = client.post(f"/grades/exams/{school.exam_id}/save", json={"grades": grades})
    assert response.status_code == 400
    assert response.get_json()["field"].startswith("marks")


def test_mark_attendance_rejects_malformed_records(client, school):
    login(client, "teacher")

    response = client.post("/attendance/mark", json={
        "date": "2026-10-05",
        "records": [{"student_id": "abc", "status": "present"}, "absent"],
    })
    assert response.status_code == 400
    assert response.get_json()["field"] == "records[0].student_id"


def test_deactivate_user_from_form_value(client, school):
    login(client, "admin")
    url = f"/admin/users/{school.teacher_id}/active"

    response = client.post(url, data={"active": "false"})
    assert response.status_code == 200
    assert response.get_json()["is_active"] is False

    assert client.post(url, data={"active": "maybe"}).status_code == 400

    response = client.post(url, json={"active": True})
    assert response.get_json()["is_active"] is True
