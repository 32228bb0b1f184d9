"""Feedback blueprint — /feedback

Signed-in users rate their experience (1-5 stars) and see what they
submitted before. Feedback cannot be edited once sent.
"""

import logging

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required
from sqlalchemy.exc import SQLAlchemyError

from royalcrm.extensions import db
from royalcrm.services.gateway import GatewayError
from royalcrm.services.session import current_gateway
from royalcrm.services.stats import average_rating
from royalcrm.services.validation import validate_feedback

feedback_bp = Blueprint("feedback", __name__, url_prefix="/feedback")

logger = logging.getLogger(__name__)

DEFAULT_FORM = {"title": "", "message": "", "rating": 5}


def _render(form_data, errors, status=200):
    try:
        items = current_gateway().list_feedback(current_user.id)
    except GatewayError as e:
        logger.error(f"Feedback list failed for {current_user.email}: {e}")
        items = []

    return render_template(
        "feedback/index.html",
        feedback=items,
        avg_rating=average_rating(items),
        form_data=form_data,
        errors=errors,
    ), status


@feedback_bp.route("", methods=["GET", "POST"])
@login_required
def feedback_page():
    """GET: own feedback + form. POST: validate and submit new feedback."""
    if request.method == "GET":
        return _render(DEFAULT_FORM, {})

    cleaned, errors = validate_feedback(request.form)
    if errors:
        return _render({**cleaned, "rating": request.form.get("rating", 5)}, errors, 422)

    try:
        current_gateway().create_feedback(**cleaned)
        db.session.commit()
    except (GatewayError, ValueError, SQLAlchemyError) as e:
        db.session.rollback()
        logger.error(f"Feedback submission failed for {current_user.email}: {e}")
        flash("Failed to submit feedback", "error")
        return _render(cleaned, {}, 500)

    flash("Feedback submitted successfully!", "success")
    return redirect(url_for("feedback.feedback_page"))
