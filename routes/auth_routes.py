from flask import Blueprint, request, jsonify, session, current_app
from flask_login import login_user, logout_user, login_required, current_user
from services.auth_service import authenticate_user
from services.access_policy import (
    current_principal, available_classes, available_sections, is_restricted
)
from utils.serializers import assignment_to_dict

# Define the blueprint
auth_bp = Blueprint("auth", __name__)


# =========================================================
# LOGIN ROUTE
# =========================================================
@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get("username") or "").strip()
    password = data.get("password")

    # 1. Basic Validation
    if not username or not password:
        return jsonify({"error": "Username and password are required"}), 400

    # 2. Authenticate User
    user = authenticate_user(username, password)

    if not user:
        current_app.logger.warning("Failed login for %s", username)
        return jsonify({"error": "Invalid username or password"}), 401

    # 3. Log the user in with Flask-Login
    login_user(user)
    session["role"] = user.role

    return jsonify({"status": "success", "user_id": user.user_id, "role": user.role})


# =========================================================
# LOGOUT ROUTE
# =========================================================
@auth_bp.route("/logout")
def logout():
    logout_user()
    session.clear()
    return jsonify({"status": "success"})


@auth_bp.route("/me")
@login_required
def me():
    principal = current_principal()
    return jsonify({
        "user_id": current_user.user_id,
        "username": current_user.username,
        "full_name": current_user.full_name,
        "role": current_user.role,
        "is_restricted": is_restricted(principal),
        "assignments": [assignment_to_dict(a) for a in current_user.assignments],
        "available_classes": available_classes(principal),
        "available_sections": available_sections(principal, request.args.get("class")),
    })
