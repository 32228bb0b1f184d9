"""Helpers binding the data gateway to the logged-in user."""

from flask import current_app
from flask_login import current_user

from royalcrm.services.console import AdminConsole
from royalcrm.services.gateway import DataGateway


def current_gateway():
    """DataGateway acting as the logged-in identity."""
    return DataGateway(current_user.to_record())


def current_console():
    """AdminConsole for the logged-in admin, sized from config."""
    return AdminConsole(
        current_gateway(),
        max_workers=current_app.config.get("ADMIN_FETCH_WORKERS", 1),
    )
