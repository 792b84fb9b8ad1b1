from flask import current_app

from models import ClassAssignment, User
from models.constants import USER_ROLES
from services.activity_service import log_activity
from services.exceptions import ValidationError
from services.record_store import get_store
from utils.formatting import parse_flag


def create_user(username, password, role, full_name=None, email=None):
    store = get_store()
    username = (username or "").strip()
    if not username or not password:
        raise ValidationError("Username and password are required", field="username")
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of {', '.join(USER_ROLES)}", field="role")
    if store.first(User, {"username": username}):
        raise ValidationError(f"User {username} already exists", field="username")

    with store.transaction():
        user = User(username=username, role=role, full_name=full_name, email=email, is_active=True)
        user.set_password(password)
        store.session.add(user)
        log_activity(f"Created {role} account {username}", "admin")
    return user


def set_user_active(user_id, active):
    store = get_store()
    active = parse_flag(active, "active")
    with store.transaction():
        user = store.update(User, int(user_id), {"is_active": active})
        log_activity(
            f"{'Activated' if active else 'Deactivated'} account {user.username}", "admin"
        )
    return user


def list_assignments(user_id):
    return get_store().select(
        ClassAssignment, {"user_id": int(user_id)}, ["class_name", "section"]
    )


def assign_class(user_id, class_name, section):
    store = get_store()
    user = store.get_or_404(User, int(user_id), "User")
    class_name = str(class_name or "").strip()
    section = str(section or "").strip().upper()
    if not class_name:
        raise ValidationError("class is required", field="class")
    if not section:
        raise ValidationError("section is required", field="section")

    existing = store.first(ClassAssignment, {
        "user_id": user.user_id,
        "class_name": class_name,
        "section": section,
    })
    if existing:
        raise ValidationError(
            f"User is already assigned to Class {class_name}-{section}", field="section"
        )

    with store.transaction():
        assignment = store.insert(ClassAssignment, {
            "user_id": user.user_id,
            "class_name": class_name,
            "section": section,
        })
        log_activity(f"Assigned {user.username} to Class {class_name}-{section}", "admin")

    current_app.logger.info("User %s assigned to %s-%s", user.user_id, class_name, section)
    return assignment


def unassign_class(assignment_id):
    store = get_store()
    assignment = store.get_or_404(ClassAssignment, int(assignment_id), "Class assignment")
    label = f"{assignment.class_name}-{assignment.section}"
    user_id = assignment.user_id

    with store.transaction():
        store.delete(ClassAssignment, assignment.assignment_id)
        log_activity(f"Removed assignment to Class {label}", "admin", f"user {user_id}")

    current_app.logger.info("User %s removed from %s", user_id, label)
