from flask import Blueprint, request, jsonify

from models import User
from services import assignment_service
from services.activity_service import recent_activities
from services.record_store import get_store
from utils.decorators import role_required
from utils.serializers import activity_to_dict, assignment_to_dict, user_to_dict

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# =========================================================
# USERS
# =========================================================
@admin_bp.route("/users")
@role_required("admin")
def list_users():
    users = get_store().select(User, ordering=["username"])
    return jsonify([user_to_dict(u) for u in users])


@admin_bp.route("/users", methods=["POST"])
@role_required("admin")
def create_user():
    data = request.get_json(silent=True) or request.form
    user = assignment_service.create_user(
        username=data.get("username"),
        password=data.get("password"),
        role=data.get("role", "teacher"),
        full_name=data.get("full_name"),
        email=data.get("email"),
    )
    return jsonify(user_to_dict(user)), 201


@admin_bp.route("/users/<int:user_id>/active", methods=["POST"])
@role_required("admin")
def set_user_active(user_id):
    data = request.get_json(silent=True) or request.form
    user = assignment_service.set_user_active(user_id, data.get("active", True))
    return jsonify(user_to_dict(user))


# =========================================================
# CLASS ASSIGNMENTS
# =========================================================
@admin_bp.route("/users/<int:user_id>/assignments")
@role_required("admin")
def list_assignments(user_id):
    assignments = assignment_service.list_assignments(user_id)
    return jsonify([assignment_to_dict(a) for a in assignments])


@admin_bp.route("/users/<int:user_id>/assignments", methods=["POST"])
@role_required("admin")
def assign_class(user_id):
    data = request.get_json(silent=True) or request.form
    assignment = assignment_service.assign_class(
        user_id, data.get("class"), data.get("section")
    )
    return jsonify(assignment_to_dict(assignment)), 201


@admin_bp.route("/assignments/<int:assignment_id>", methods=["DELETE"])
@role_required("admin")
def unassign_class(assignment_id):
    assignment_service.unassign_class(assignment_id)
    return jsonify({"status": "success"})


# =========================================================
# ACTIVITY LOG
# =========================================================
@admin_bp.route("/activities")
@role_required("admin")
def activities():
    limit = request.args.get("limit", 10, type=int)
    return jsonify([activity_to_dict(a) for a in recent_activities(limit)])
