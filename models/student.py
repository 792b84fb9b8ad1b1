from extensions import db
from sqlalchemy.orm import validates

from models.constants import STUDENT_STATUSES


class Student(db.Model):
    __tablename__ = "students"

    student_id = db.Column(db.Integer, primary_key=True)
    roll_number = db.Column(db.String(20), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)

    class_name = db.Column("class", db.String(5), nullable=False)
    section = db.Column(db.String(2), nullable=False)
    # denormalized copy of class_name used by the attendance overview
    grade_class = db.Column(db.String(5), nullable=False)

    status = db.Column(
        db.Enum(*STUDENT_STATUSES, name="student_status"),
        nullable=False,
        default="active"
    )

    date_of_birth = db.Column(db.Date)
    admission_date = db.Column(db.Date)
    guardian_name = db.Column(db.String(120))
    guardian_phone = db.Column(db.String(20))
    guardian_email = db.Column(db.String(255))
    address = db.Column(db.Text)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    # a student's records go with them
    attendance_records = db.relationship(
        "Attendance", backref="student", lazy=True, cascade="all, delete"
    )
    grades = db.relationship("Grade", backref="student", lazy=True, cascade="all, delete")
    fees = db.relationship("Fee", backref="student", lazy=True, cascade="all, delete")

    __table_args__ = (
        db.UniqueConstraint("roll_number", "class", "section", name="unique_roll_class_section"),
    )

    @validates("class_name")
    def _mirror_grade_class(self, key, value):
        self.grade_class = value
        return value

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Student {self.roll_number} {self.class_name}-{self.section}>"
