"""
Custom route decorators for access control.

- admin_required: ensures user is logged in AND holds the "admin" role.
  Non-admins get the static 403 page before the view runs, so no data is
  ever requested on their behalf.
"""

import logging
from functools import wraps

from flask import abort
from flask_login import current_user, login_required

logger = logging.getLogger(__name__)


def admin_required(f):
    """Require login + role == "admin"."""

    @wraps(f)
    @login_required
    def decorated(*args, **kwargs):
        if not current_user.is_admin:
            logger.warning(f"Non-admin {current_user.email} denied access to {f.__name__}")
            abort(403)
        return f(*args, **kwargs)

    return decorated
