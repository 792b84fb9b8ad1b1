from flask import current_app

from models.user import User
from services.record_store import get_store


def authenticate_user(username: str, password: str):
    user = get_store().first(User, {"username": username})

    if not user or not user.check_password(password):
        return None

    # deactivated accounts keep their assignments but cannot sign in
    if user.is_active is False:
        current_app.logger.info("Login refused for deactivated account %s", username)
        return None

    return user
