"""
Contact form blueprint.

Handles the public contact form — sends a notification to the support
inbox and a confirmation email to the visitor.

Accepts JSON (answers JSON) or a regular HTML form POST (re-renders the
contact page with inline errors, or redirects with a flash on success).
"""

import logging

from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from royalcrm.extensions import limiter
from royalcrm.services.email_service import send_email
from royalcrm.services.validation import validate_contact

contact_bp = Blueprint("contact", __name__, url_prefix="/contact")

logger = logging.getLogger(__name__)


@contact_bp.route("/send", methods=["POST"])
@limiter.limit("5 per hour")
def send_contact():
    """
    Accept a contact form submission.

    Expects: { name, email, subject, message }
    JSON returns: { ok: true } or { ok: false, error: "...", errors: {...} }
    """
    wants_json = request.is_json
    if wants_json:
        data = request.get_json(silent=True)
        if not data:
            return jsonify(ok=False, error="Invalid request."), 400
    else:
        data = request.form

    cleaned, errors = validate_contact(data)

    if errors:
        if wants_json:
            return jsonify(ok=False, error=" ".join(errors.values()), errors=errors), 422
        return render_template(
            "main/contact.html", form_data=cleaned, errors=errors
        ), 422

    support_email = current_app.config.get("MAIL_CONTACT_TO", "support@royalcrm.com")

    # 1. Notification to the support inbox (reply-to = the visitor)
    send_email(
        to=support_email,
        subject=f"New inquiry from {cleaned['name']}: {cleaned['subject']}",
        template="emails/contact_notification.html",
        context=cleaned,
        reply_to=cleaned["email"],
    )

    # 2. Confirmation to the visitor
    send_email(
        to=cleaned["email"],
        subject="We received your message — RoyalCRM",
        template="emails/contact_confirmation.html",
        context=cleaned,
    )

    logger.info(f"Contact form submitted by {cleaned['name']} <{cleaned['email']}>")

    if wants_json:
        return jsonify(ok=True), 200

    flash("Message sent successfully! We'll get back to you soon.", "success")
    return redirect(url_for("main.contact"))
