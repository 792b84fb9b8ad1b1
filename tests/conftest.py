from datetime import date

import pytest

from app import create_app
from config.config import TestConfig
from extensions import db
from models import ClassAssignment, ClassSubject, Exam, Student, Subject, User
from services.access_policy import load_principal


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Request context for calling services directly."""
    with app.test_request_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def add_user(username, role="teacher", password="secret", assignments=()):
    user = User(username=username, role=role, full_name=username.title(), is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    for class_name, section in assignments:
        db.session.add(ClassAssignment(user_id=user.user_id, class_name=class_name, section=section))
    db.session.commit()
    return user


def add_student(roll_number, class_name="5", section="A", first_name=None, last_name="Student"):
    student = Student(
        roll_number=str(roll_number),
        first_name=first_name or f"Pupil{roll_number}",
        last_name=last_name,
        class_name=class_name,
        section=section,
    )
    db.session.add(student)
    db.session.commit()
    return student


def add_subjects(class_name="5", section="A", codes=("ENG", "MATH")):
    subjects = []
    for code in codes:
        subject = Subject(code=code, name=code.title())
        db.session.add(subject)
        db.session.flush()
        db.session.add(ClassSubject(class_name=class_name, section=section, subject_id=subject.subject_id))
        subjects.append(subject)
    db.session.commit()
    return subjects


@pytest.fixture
def admin_principal(ctx):
    return load_principal(add_user("admin", role="admin"))


@pytest.fixture
def teacher_principal(ctx):
    return load_principal(add_user("teacher", assignments=[("5", "A"), ("7", "B")]))


@pytest.fixture
def class_5a(ctx):
    return [add_student(n) for n in (1, 2, 3)]


@pytest.fixture
def exam_5a(ctx, class_5a):
    from services.exam_service import create_exam

    add_subjects()
    return create_exam({
        "name": "Midterm",
        "class": "5",
        "section": "A",
        "exam_date": date(2026, 9, 1).isoformat(),
        "total_marks": 200,
    })


def login(client, username, password="secret"):
    return client.post("/login", json={"username": username, "password": password})
