from flask_login import current_user

from models import Activity
from services.record_store import get_store


def log_activity(action, module, details=None):
    """Queue an activity row; it is committed with the surrounding transaction."""
    user_id = current_user.user_id if current_user and current_user.is_authenticated else None
    return get_store().insert(Activity, {
        "action": action,
        "module": module,
        "details": details,
        "user_id": user_id,
    })


def recent_activities(limit=10):
    store = get_store()
    return store.query(Activity, ordering=["-created_at", "-activity_id"]).limit(limit).all()
