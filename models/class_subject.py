from extensions import db


class ClassSubject(db.Model):
    __tablename__ = "class_subjects"

    class_subject_id = db.Column(db.Integer, primary_key=True)
    class_name = db.Column("class", db.String(5), nullable=False)
    section = db.Column(db.String(2), nullable=False)

    subject_id = db.Column(
        db.Integer,
        db.ForeignKey("subjects.subject_id"),
        nullable=False
    )

    subject = db.relationship("Subject", lazy="joined")

    __table_args__ = (
        db.UniqueConstraint("class", "section", "subject_id", name="unique_class_section_subject"),
    )

    def __repr__(self):
        return f"<ClassSubject {self.class_name}-{self.section} subject={self.subject_id}>"
