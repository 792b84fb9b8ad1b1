from extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from models.constants import USER_ROLES, ADMIN_ROLE


class User(UserMixin, db.Model):
    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    full_name = db.Column(db.String(120))
    email = db.Column(db.String(255))
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(
        db.Enum(*USER_ROLES, name="user_role"),
        nullable=False,
        default="teacher"
    )

    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    assignments = db.relationship(
        "ClassAssignment",
        backref="user",
        lazy=True,
        cascade="all, delete-orphan"
    )

    # Flask-Login looks for "id", but the column is "user_id".
    def get_id(self):
        return str(self.user_id)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == ADMIN_ROLE

    def __repr__(self):
        return f"<User {self.username}>"
