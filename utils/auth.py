from collections import namedtuple
from functools import wraps

from flask import session, g, current_app, request

from utils.errors import UnauthenticatedError, ForbiddenError
from utils.roles import Role, allowed_roles

# Caller identity as issued by the external login flow
CurrentUser = namedtuple("CurrentUser", ["id", "role"])


def get_current_user():
    """Get current logged-in user identity from the session, None if absent"""
    if 'user_id' not in session:
        return None
    return CurrentUser(id=session.get('user_id'), role=Role.parse(session.get('role')))


def role_required(action):
    """Decorator to require a role allowed for `action` in the permission table"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if user is None:
                raise UnauthenticatedError("Login required")

            if user.role not in allowed_roles(action):
                log_access_attempt(action, success=False)
                raise ForbiddenError("Not allowed")

            g.current_user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def log_access_attempt(resource, success=True):
    """Log access attempts for security auditing"""
    user_id = session.get('user_id', 'anonymous')
    user_role = session.get('role', 'unknown')

    if success:
        current_app.logger.info(f"User {user_id} ({user_role}) accessed {resource}")
    else:
        current_app.logger.warning(
            f"User {user_id} ({user_role}) denied access to {resource} ({request.method} {request.path})"
        )
