import pytest

from models import Exam, ExamSubject, Grade
from services import exam_service
from services.exceptions import ValidationError
from services.grading import save_grades
from tests.conftest import add_subjects


def test_create_exam_adds_class_subjects(exam_5a):
    assert exam_5a.grade_class == "5"
    assert exam_5a.status == "scheduled"
    assert len(exam_5a.exam_subjects) == 2
    assert {es.max_marks for es in exam_5a.exam_subjects} == {100}


def test_create_exam_without_class_subjects(ctx):
    exam = exam_service.create_exam({"name": "Quiz", "class": "3", "section": "B"})
    assert exam.exam_subjects == []


def test_exam_status_must_be_known(ctx):
    with pytest.raises(ValidationError) as exc:
        exam_service.create_exam({"name": "Quiz", "class": "3", "section": "B", "status": "done"})
    assert exc.value.field == "status"


def test_update_exam_mirrors_grade_class(exam_5a):
    exam = exam_service.update_exam(exam_5a.exam_id, {"class": "6", "status": "completed"})
    assert exam.grade_class == "6"
    assert exam.status == "completed"


def test_add_exam_subjects_skips_blank_rows(ctx):
    (science,) = add_subjects("4", "C", codes=("SCI",))
    exam = exam_service.create_exam({"name": "Unit", "class": "9", "section": "A"})

    created = exam_service.add_exam_subjects(exam.exam_id, [
        {"subject_id": science.subject_id, "max_marks": 50},
        {"subject_id": "", "max_marks": 100},
    ])

    assert len(created) == 1
    assert created[0].max_marks == 50


@pytest.mark.parametrize("entry, field", [
    ({"subject_id": "abc", "max_marks": 50}, "subjects[0].subject_id"),
    ("ENG", "subjects[0]"),
])
def test_add_exam_subjects_rejects_malformed_entry(exam_5a, entry, field):
    with pytest.raises(ValidationError) as exc:
        exam_service.add_exam_subjects(exam_5a.exam_id, [entry])
    assert exc.value.field == field
    assert len(exam_5a.exam_subjects) == 2


def test_add_exam_subjects_requires_positive_max_marks(exam_5a):
    subject_id = exam_5a.exam_subjects[0].subject_id
    with pytest.raises(ValidationError):
        exam_service.add_exam_subjects(exam_5a.exam_id, [{"subject_id": subject_id, "max_marks": 0}])


def test_delete_exam_removes_subjects_and_grades(exam_5a, class_5a):
    es1 = exam_5a.exam_subjects[0].exam_subject_id
    save_grades(exam_5a.exam_id, {class_5a[0].student_id: {es1: "40"}})

    exam_service.delete_exam(exam_5a.exam_id)

    assert Exam.query.count() == 0
    assert ExamSubject.query.count() == 0
    assert Grade.query.count() == 0
