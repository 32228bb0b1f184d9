"""Account blueprint — the signed-in user's own pages.

Route Map:
  GET       /dashboard — ticket counters + five most recent tickets
  GET/POST  /profile   — view (lazily creating) and edit the profile
"""

import logging

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from royalcrm.extensions import db
from royalcrm.services.gateway import GatewayError
from royalcrm.services.session import current_gateway
from royalcrm.services.stats import ticket_summary
from royalcrm.services.validation import validate_profile

account_bp = Blueprint("account", __name__)

logger = logging.getLogger(__name__)

RECENT_TICKETS = 5


@account_bp.route("/dashboard")
@login_required
def dashboard():
    """Personal dashboard: own ticket stats and recent tickets."""
    gateway = current_gateway()
    try:
        tickets = gateway.list_tickets(current_user.id)
    except GatewayError as e:
        flash(str(e), "error")
        tickets = []

    return render_template(
        "account/dashboard.html",
        summary=ticket_summary(tickets),
        recent_tickets=tickets[:RECENT_TICKETS],
    )


@account_bp.route("/profile", methods=["GET", "POST"])
@login_required
def profile():
    """Show the profile (creating a default one on first visit) or save edits."""
    gateway = current_gateway()

    if request.method == "POST":
        cleaned, errors = validate_profile(request.form)
        if errors:
            return render_template(
                "account/profile.html",
                profile=None,
                form_data=cleaned,
                errors=errors,
                editing=True,
            ), 422

        try:
            gateway.upsert_profile(current_user.id, **cleaned)
            db.session.commit()
        except (GatewayError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.error(f"Profile update failed for {current_user.email}: {e}")
            flash("Failed to update profile", "error")
            return render_template(
                "account/profile.html",
                profile=None,
                form_data=cleaned,
                errors={},
                editing=True,
            ), 500

        flash("Profile updated successfully!", "success")
        return redirect(url_for("account.profile"))

    try:
        record = gateway.ensure_profile(current_user)
        db.session.commit()
    except (GatewayError, SQLAlchemyError) as e:
        db.session.rollback()
        logger.error(f"Profile load failed for {current_user.email}: {e}")
        flash("Failed to load profile", "error")
        record = None

    form_data = {}
    if record is not None:
        form_data = {
            "full_name": record.full_name or "",
            "phone": record.phone or "",
            "company": record.company or "",
        }

    return render_template(
        "account/profile.html",
        profile=record,
        form_data=form_data,
        errors={},
        editing=request.args.get("edit") == "1",
    )
