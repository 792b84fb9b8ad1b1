from extensions import db
from sqlalchemy.orm import validates

from models.constants import EXAM_STATUSES


class Exam(db.Model):
    __tablename__ = "exams"

    exam_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    class_name = db.Column("class", db.String(5), nullable=False)
    section = db.Column(db.String(2), nullable=False)
    grade_class = db.Column(db.String(5), nullable=False)

    exam_date = db.Column(db.Date)
    total_marks = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(
        db.Enum(*EXAM_STATUSES, name="exam_status"),
        nullable=False,
        default="scheduled"
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    exam_subjects = db.relationship(
        "ExamSubject",
        backref="exam",
        lazy=True,
        cascade="all, delete-orphan"
    )
    grades = db.relationship(
        "Grade",
        backref="exam",
        lazy=True,
        cascade="all, delete"
    )

    @validates("class_name")
    def _mirror_grade_class(self, key, value):
        self.grade_class = value
        return value

    def __repr__(self):
        return f"<Exam {self.name} {self.class_name}-{self.section}>"
