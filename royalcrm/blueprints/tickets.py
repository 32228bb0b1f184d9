"""Tickets blueprint — the signed-in user's support tickets.

Route Map:
  GET       /tickets      — own tickets (?q=&status=&priority=) + counters
  GET/POST  /tickets/new  — submit a new ticket
"""

import logging

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from royalcrm.extensions import db
from royalcrm.models.ticket import Ticket
from royalcrm.services.aggregation import enrich_tickets
from royalcrm.services.email_service import send_email
from royalcrm.services.filters import ALL, filter_tickets
from royalcrm.services.gateway import GatewayError
from royalcrm.services.session import current_gateway
from royalcrm.services.stats import ticket_summary
from royalcrm.services.validation import validate_ticket

tickets_bp = Blueprint("tickets", __name__, url_prefix="/tickets")

logger = logging.getLogger(__name__)


def _choice(value, allowed):
    return value if value in allowed else ALL


@tickets_bp.route("")
@login_required
def ticket_list():
    """List the caller's tickets with search, status and priority filters."""
    search = request.args.get("q", "")
    status = _choice(request.args.get("status", ALL), Ticket.STATUSES)
    priority = _choice(request.args.get("priority", ALL), Ticket.PRIORITIES)

    gateway = current_gateway()
    error = None
    try:
        tickets = gateway.list_tickets(current_user.id)
        profiles = gateway.list_profiles(current_user.id)
    except GatewayError as e:
        logger.error(f"Ticket list failed for {current_user.email}: {e}")
        error = "Failed to load tickets. Please check your connection and try again."
        tickets, profiles = [], []

    enriched = enrich_tickets(tickets, profiles, [current_user.to_record()])

    return render_template(
        "tickets/list.html",
        tickets=filter_tickets(enriched, search, status=status, priority=priority),
        summary=ticket_summary(enriched),
        search=search,
        status_filter=status,
        priority_filter=priority,
        statuses=Ticket.STATUSES,
        priorities=Ticket.PRIORITIES,
        error=error,
    )


@tickets_bp.route("/new", methods=["GET", "POST"])
@login_required
def ticket_new():
    """Create a new support ticket."""
    if request.method == "GET":
        return render_template(
            "tickets/new.html",
            form_data={"priority": "medium"},
            errors={},
            categories=Ticket.CATEGORIES,
            priorities=Ticket.PRIORITIES,
        )

    cleaned, errors = validate_ticket(request.form)
    if errors:
        return render_template(
            "tickets/new.html",
            form_data=cleaned,
            errors=errors,
            categories=Ticket.CATEGORIES,
            priorities=Ticket.PRIORITIES,
        ), 422

    try:
        ticket = current_gateway().create_ticket(**cleaned)
        db.session.commit()
    except (GatewayError, ValueError, SQLAlchemyError) as e:
        db.session.rollback()
        logger.error(f"Ticket creation failed for {current_user.email}: {e}")
        flash("Failed to create ticket", "error")
        return render_template(
            "tickets/new.html",
            form_data=cleaned,
            errors={},
            categories=Ticket.CATEGORIES,
            priorities=Ticket.PRIORITIES,
        ), 500

    # Email notification to the support inbox
    send_email(
        to=current_app.config.get("MAIL_CONTACT_TO", "support@royalcrm.com"),
        subject=f"New {ticket.priority} priority ticket: {ticket.title}",
        template="emails/ticket_new_notification.html",
        context={
            "ticket": ticket,
            "author_name": current_user.display_name,
            "author_email": current_user.email,
            "admin_url": f"{current_app.config['APP_BASE_URL']}/admin/?tab=tickets",
        },
        reply_to=current_user.email,
    )

    flash("Ticket created successfully!", "success")
    return redirect(url_for("tickets.ticket_list"))
