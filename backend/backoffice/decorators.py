# Overview: Request decorators for API routes.

from functools import wraps
from flask import current_app, g, request

from .services import staff_service


ACTOR_HEADER = "X-Admin-Id"


def with_actor(f):
    """
    Resolve the acting staff member for audit attribution.

    Sets g.actor_name to the display name of the admin named by the
    X-Admin-Id header. A missing or unknown id falls back to DEFAULT_ACTOR;
    authentication itself happens upstream of this service.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        admin = None
        admin_id = request.headers.get(ACTOR_HEADER)
        if admin_id:
            admin = staff_service.find_admin(admin_id)

        if admin is not None:
            g.actor_name = staff_service.admin_display_name(admin)
            g.admin_id = admin.admin_id
        else:
            g.actor_name = current_app.config.get("DEFAULT_ACTOR", "System")
            g.admin_id = None

        return f(*args, **kwargs)

    return decorated_function
