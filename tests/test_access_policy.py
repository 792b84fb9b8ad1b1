import pytest

from config.config import Config
from services.access_policy import (
    Assignment, Principal, available_classes, available_sections, can_access,
    is_restricted, require_access
)
from services.exceptions import AccessDeniedError


def make_principal(role="teacher", pairs=(), restrict_unassigned=False):
    return Principal(
        user_id=1,
        role=role,
        assignments=tuple(Assignment(c, s) for c, s in pairs),
        restrict_unassigned=restrict_unassigned,
    )


ASSIGNED = make_principal(pairs=[("10", "B"), ("2", "A"), ("10", "A"), ("2", "A")])


def test_admin_can_access_everything(ctx):
    admin = make_principal(role="admin", pairs=[("3", "C")])
    for class_name in Config.CLASS_LABELS:
        for section in Config.SECTION_LABELS:
            assert can_access(admin, class_name, section)
    assert available_classes(admin) == list(Config.CLASS_LABELS)
    assert available_sections(admin, "3") == list(Config.SECTION_LABELS)


def test_assigned_teacher_limited_to_assignments():
    for class_name in Config.CLASS_LABELS:
        for section in Config.SECTION_LABELS:
            expected = (class_name, section) in {("10", "B"), ("2", "A"), ("10", "A")}
            assert can_access(ASSIGNED, class_name, section) is expected


def test_class_only_check_matches_any_section():
    assert can_access(ASSIGNED, "10")
    assert not can_access(ASSIGNED, "3")


def test_available_classes_are_distinct_and_numerically_sorted():
    assert available_classes(ASSIGNED) == ["2", "10"]


def test_available_sections_filtered_by_class():
    assert available_sections(ASSIGNED) == ["A", "B"]
    assert available_sections(ASSIGNED, "10") == ["A", "B"]
    assert available_sections(ASSIGNED, "2") == ["A"]
    assert available_sections(ASSIGNED, "7") == []


def test_unassigned_teacher_is_unrestricted_by_default(ctx):
    teacher = make_principal()
    assert can_access(teacher, "12", "G")
    assert available_classes(teacher) == list(Config.CLASS_LABELS)
    assert available_sections(teacher) == list(Config.SECTION_LABELS)
    assert not is_restricted(teacher)


def test_unassigned_teacher_denied_when_restriction_enabled():
    teacher = make_principal(restrict_unassigned=True)
    assert not can_access(teacher, "1", "A")
    assert available_classes(teacher) == []
    assert available_sections(teacher) == []


def test_is_restricted_only_for_assigned_non_admins():
    assert is_restricted(ASSIGNED)
    assert not is_restricted(make_principal(role="admin", pairs=[("1", "A")]))


def test_require_access_raises_for_foreign_class(ctx):
    with pytest.raises(AccessDeniedError) as exc:
        require_access(ASSIGNED, "5", "A")
    assert "5-A" in exc.value.message
    require_access(ASSIGNED, "10", "B")


def test_unrestricted_lists_follow_configured_labels(ctx):
    ctx.config["CLASS_LABELS"] = ["LKG", "UKG", "1"]
    ctx.config["SECTION_LABELS"] = ["A", "B"]
    admin = make_principal(role="admin")
    assert available_classes(admin) == ["LKG", "UKG", "1"]
    assert available_sections(admin) == ["A", "B"]
