from extensions import db


class Grade(db.Model):
    __tablename__ = "grades"

    grade_id = db.Column(db.Integer, primary_key=True)

    student_id = db.Column(
        db.Integer,
        db.ForeignKey("students.student_id"),
        nullable=False
    )

    exam_id = db.Column(
        db.Integer,
        db.ForeignKey("exams.exam_id"),
        nullable=False
    )

    exam_subject_id = db.Column(
        db.Integer,
        db.ForeignKey("exam_subjects.exam_subject_id"),
        nullable=True
    )

    # text, so that "AB" (absent) can sit next to numeric marks
    marks_obtained = db.Column(db.String(10), nullable=False)
    remarks = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime,
        server_default=db.func.now(),
        onupdate=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint("student_id", "exam_subject_id", name="unique_student_exam_subject"),
    )

    def __repr__(self):
        return f"<Grade student={self.student_id} exam_subject={self.exam_subject_id}>"
