"""Class/section access rules.

Admins see every class and section. A non-admin principal is limited to the
class-sections it is assigned to; one with no assignments at all is treated
as unrestricted unless ``RESTRICT_UNASSIGNED_STAFF`` is enabled.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple

from flask import current_app, g
from flask_login import current_user
from sqlalchemy import and_, or_, false

from models import Student
from models.constants import ADMIN_ROLE
from services.exceptions import AccessDeniedError

@dataclass(frozen=True)
class Assignment:
    class_name: str
    section: str


@dataclass(frozen=True)
class Principal:
    user_id: Optional[int]
    role: str
    assignments: Tuple[Assignment, ...] = field(default_factory=tuple)
    restrict_unassigned: bool = False

    @property
    def is_admin(self):
        return self.role == ADMIN_ROLE


def load_principal(user, restrict_unassigned=False):
    assignments = tuple(
        Assignment(str(a.class_name), str(a.section)) for a in user.assignments
    )
    return Principal(
        user_id=user.user_id,
        role=user.role,
        assignments=assignments,
        restrict_unassigned=restrict_unassigned,
    )


def current_principal():
    """Principal for the logged-in user, built once per request."""
    if "principal" not in g:
        g.principal = load_principal(
            current_user,
            restrict_unassigned=current_app.config.get("RESTRICT_UNASSIGNED_STAFF", False),
        )
    return g.principal


def _class_key(value):
    try:
        return (0, int(value), "")
    except (TypeError, ValueError):
        return (1, 0, str(value))


def is_unrestricted(principal):
    if principal.is_admin:
        return True
    return not principal.assignments and not principal.restrict_unassigned


def is_restricted(principal):
    return not principal.is_admin and bool(principal.assignments)


def available_classes(principal, all_classes=None):
    """Classes the principal may open; the full list defaults to CLASS_LABELS."""
    if is_unrestricted(principal):
        return list(all_classes or current_app.config["CLASS_LABELS"])
    classes = {a.class_name for a in principal.assignments}
    return sorted(classes, key=_class_key)


def available_sections(principal, class_name=None, all_sections=None):
    if is_unrestricted(principal):
        return list(all_sections or current_app.config["SECTION_LABELS"])
    sections = {
        a.section for a in principal.assignments
        if class_name is None or a.class_name == str(class_name)
    }
    return sorted(sections)


def can_access(principal, class_name, section=None):
    if is_unrestricted(principal):
        return True
    class_name = str(class_name)
    if section:
        return any(
            a.class_name == class_name and a.section == section
            for a in principal.assignments
        )
    return any(a.class_name == class_name for a in principal.assignments)


def require_access(principal, class_name, section=None):
    if not can_access(principal, class_name, section):
        label = f"{class_name}-{section}" if section else f"{class_name}"
        current_app.logger.warning(
            "Access denied: user=%s class=%s", principal.user_id, label
        )
        raise AccessDeniedError(f"You do not have access to Class {label}")


def require_student_access(principal, students):
    for student in students:
        require_access(principal, student.class_name, student.section)


def allowed_students_query(principal):
    """Student query limited to the class-sections visible to the principal."""
    query = Student.query
    if is_unrestricted(principal):
        return query
    if not principal.assignments:
        return query.filter(false())
    return query.filter(or_(*[
        and_(Student.class_name == a.class_name, Student.section == a.section)
        for a in principal.assignments
    ]))
