"""Admin blueprint — /admin/*

Cross-user dashboard: users, tickets and feedback joined with profile
and account data, summary stats, search/filters and moderation.
All routes protected by @admin_required (non-admins get a static 403
before anything is loaded).

Every request loads a fresh snapshot first (nothing is kept between
requests). Mutation routes then render the console's patched snapshot
instead of loading it a second time after the write. Repeating one
of these POSTs is harmless: a status update is idempotent and deleting
a missing row is a no-op.

Route Map:
  GET       /admin/                         — Dashboard (?tab=&q=&status=&priority=&rating=)
  GET       /admin/users/<user_id>          — User details + activity summary
  GET       /admin/tickets/<id>             — Ticket details
  GET       /admin/feedback/<id>            — Feedback details
  POST      /admin/tickets/<id>/status      — Change ticket status
  GET/POST  /admin/tickets/<id>/delete      — Confirm, then delete a ticket
  GET/POST  /admin/feedback/<id>/delete     — Confirm, then delete feedback
  GET       /admin/export/<collection>      — JSON download (users|tickets|feedback)
"""

import json
import logging
from datetime import datetime, timezone

from flask import (
    Blueprint,
    Response,
    abort,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from royalcrm.decorators import admin_required
from royalcrm.models.ticket import Ticket
from royalcrm.records import to_dict
from royalcrm.services.filters import ALL, filter_feedback, filter_tickets, filter_users
from royalcrm.services.session import current_console
from royalcrm.services.stats import user_activity

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

logger = logging.getLogger(__name__)

TABS = ["overview", "users", "tickets", "feedback"]
RATINGS = ["5", "4", "3", "2", "1"]
EXPORTS = ["users", "tickets", "feedback"]
RECENT_ROWS = 5


def _filters():
    """Search/filter values from the query string or a posted form."""
    status = request.values.get("status", ALL)
    priority = request.values.get("priority", ALL)
    rating = request.values.get("rating", ALL)
    return {
        "search": request.values.get("q", ""),
        "status": status if status in Ticket.STATUSES else ALL,
        "priority": priority if priority in Ticket.PRIORITIES else ALL,
        "rating": rating if rating in RATINGS else ALL,
    }


def _filtered(state, filters):
    return {
        "users": filter_users(state.users, filters["search"]),
        "tickets": filter_tickets(
            state.tickets, filters["search"],
            status=filters["status"], priority=filters["priority"],
        ),
        "feedback": filter_feedback(state.feedback, filters["search"], rating=filters["rating"]),
    }


def _flash(notice):
    if notice is not None:
        flash(notice.message, notice.category)


def _load_console():
    console = current_console()
    _flash(console.refresh())
    return console


def _render_dashboard(console, tab):
    if tab not in TABS:
        tab = "overview"
    filters = _filters()
    state = console.state
    return render_template(
        "admin/dashboard.html",
        tab=tab,
        tabs=TABS,
        state=state,
        stats=state.stats,
        filters=filters,
        filtered=_filtered(state, filters),
        recent_tickets=state.tickets[:RECENT_ROWS],
        recent_feedback=state.feedback[:RECENT_ROWS],
        statuses=Ticket.STATUSES,
        priorities=Ticket.PRIORITIES,
        ratings=RATINGS,
    )


# ══════════════════════════════════════════════
#  DASHBOARD
# ══════════════════════════════════════════════

@admin_bp.route("/")
@admin_required
def dashboard():
    """Admin dashboard — stats overview plus users/tickets/feedback tabs."""
    console = _load_console()
    return _render_dashboard(console, request.args.get("tab", "overview"))


# ══════════════════════════════════════════════
#  DETAILS
# ══════════════════════════════════════════════

@admin_bp.route("/users/<user_id>")
@admin_required
def user_detail(user_id):
    """One user's profile, email and activity summary."""
    console = _load_console()
    state = console.state

    user = state.find_user(user_id)
    if user is None:
        abort(404)

    return render_template(
        "admin/user_detail.html",
        user=user,
        activity=user_activity(user_id, state.tickets, state.feedback),
        tickets=[t for t in state.tickets if t.user_id == user_id],
        feedback=[f for f in state.feedback if f.user_id == user_id],
    )


@admin_bp.route("/tickets/<ticket_id>")
@admin_required
def ticket_detail(ticket_id):
    console = _load_console()

    ticket = console.state.find_ticket(ticket_id)
    if ticket is None:
        abort(404)

    return render_template(
        "admin/ticket_detail.html",
        ticket=ticket,
        owner=console.state.find_user(ticket.user_id),
        statuses=Ticket.STATUSES,
    )


@admin_bp.route("/feedback/<feedback_id>")
@admin_required
def feedback_detail(feedback_id):
    console = _load_console()

    item = console.state.find_feedback(feedback_id)
    if item is None:
        abort(404)

    return render_template(
        "admin/feedback_detail.html",
        item=item,
        owner=console.state.find_user(item.user_id),
    )


# ══════════════════════════════════════════════
#  TICKETS
# ══════════════════════════════════════════════

@admin_bp.route("/tickets/<ticket_id>/status", methods=["POST"])
@admin_required
def ticket_status(ticket_id):
    """Change ticket status (any status may follow any other)."""
    new_status = request.form.get("new_status", "").strip()
    console = _load_console()

    if new_status not in Ticket.STATUSES:
        flash("Invalid ticket status.", "error")
    else:
        _flash(console.update_ticket_status(ticket_id, new_status))

    return _render_dashboard(console, "tickets")


@admin_bp.route("/tickets/<ticket_id>/delete", methods=["GET", "POST"])
@admin_required
def ticket_delete(ticket_id):
    """GET: ask for confirmation. POST: delete only if confirm=yes."""
    console = _load_console()

    if request.method == "GET":
        ticket = console.state.find_ticket(ticket_id)
        if ticket is None:
            flash("Ticket not found.", "error")
            return redirect(url_for("admin.dashboard", tab="tickets"))
        return render_template(
            "admin/confirm_delete.html",
            kind="ticket",
            record=ticket,
            action=url_for("admin.ticket_delete", ticket_id=ticket_id),
            tab="tickets",
        )

    confirmed = request.form.get("confirm") == "yes"
    _flash(console.delete_ticket(ticket_id, confirmed=confirmed))
    return _render_dashboard(console, "tickets")


# ══════════════════════════════════════════════
#  FEEDBACK
# ══════════════════════════════════════════════

@admin_bp.route("/feedback/<feedback_id>/delete", methods=["GET", "POST"])
@admin_required
def feedback_delete(feedback_id):
    """GET: ask for confirmation. POST: delete only if confirm=yes."""
    console = _load_console()

    if request.method == "GET":
        item = console.state.find_feedback(feedback_id)
        if item is None:
            flash("Feedback not found.", "error")
            return redirect(url_for("admin.dashboard", tab="feedback"))
        return render_template(
            "admin/confirm_delete.html",
            kind="feedback",
            record=item,
            action=url_for("admin.feedback_delete", feedback_id=feedback_id),
            tab="feedback",
        )

    confirmed = request.form.get("confirm") == "yes"
    _flash(console.delete_feedback(feedback_id, confirmed=confirmed))
    return _render_dashboard(console, "feedback")


# ══════════════════════════════════════════════
#  EXPORT
# ══════════════════════════════════════════════

@admin_bp.route("/export/<collection>")
@admin_required
def export(collection):
    """Download the filtered collection as pretty-printed JSON."""
    if collection not in EXPORTS:
        abort(404)

    console = _load_console()
    records = _filtered(console.state, _filters())[collection]

    payload = json.dumps([to_dict(r) for r in records], indent=2)
    filename = f"{collection}_{datetime.now(timezone.utc).date().isoformat()}.json"
    logger.info(f"Exported {len(records)} {collection} records")

    return Response(
        payload,
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
