from extensions import db


class ExamSubject(db.Model):
    __tablename__ = "exam_subjects"

    exam_subject_id = db.Column(db.Integer, primary_key=True)

    exam_id = db.Column(
        db.Integer,
        db.ForeignKey("exams.exam_id"),
        nullable=False
    )

    subject_id = db.Column(
        db.Integer,
        db.ForeignKey("subjects.subject_id"),
        nullable=False
    )

    max_marks = db.Column(db.Integer, nullable=False, default=100)

    subject = db.relationship("Subject", lazy="joined")
    grades = db.relationship(
        "Grade",
        backref="exam_subject",
        lazy=True,
        cascade="all, delete"
    )

    def __repr__(self):
        return f"<ExamSubject exam={self.exam_id} subject={self.subject_id}>"
