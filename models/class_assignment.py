from extensions import db


class ClassAssignment(db.Model):
    __tablename__ = "class_assignments"

    assignment_id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.user_id"),
        nullable=False
    )

    # "class" is a reserved word in Python, so the attribute is class_name
    class_name = db.Column("class", db.String(5), nullable=False)
    section = db.Column(db.String(2), nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def __repr__(self):
        return f"<ClassAssignment user={self.user_id} {self.class_name}-{self.section}>"
