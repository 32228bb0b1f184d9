"""
Email service for RoyalCRM.

Sends templated HTML email over SMTP. Used by the contact form (business
notification + visitor confirmation) and by ticket submission (support
inbox notification).

Usage:
    from royalcrm.services.email_service import send_email

    send_email(
        to="user@example.com",
        subject="Hello",
        template="emails/contact_confirmation.html",
        context={"name": "Jane"},
    )

When MAIL_USERNAME / MAIL_PASSWORD are not configured the message is
rendered and logged but never sent.
"""

import logging
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import bleach
from flask import current_app, render_template

logger = logging.getLogger(__name__)


def _send_smtp(app, msg):
    """Deliver a prepared message. Runs on a background thread."""
    with app.app_context():
        host = app.config.get("MAIL_SMTP_HOST", "smtp.gmail.com")
        port = app.config.get("MAIL_SMTP_PORT", 587)
        username = app.config.get("MAIL_USERNAME")
        password = app.config.get("MAIL_PASSWORD")

        if not username or not password:
            logger.warning(
                f"Email to {msg['To']} not sent: MAIL_USERNAME or MAIL_PASSWORD not configured."
            )
            return False

        try:
            with smtplib.SMTP(host, port, timeout=30) as server:
                server.ehlo()
                server.starttls()
                server.ehlo()
                server.login(username, password)
                server.send_message(msg)
            logger.info(f"Email sent to {msg['To']}: {msg['Subject']}")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {msg['To']}: {e}")
            return False


def build_message(app, to, subject, template, context=None, reply_to=None):
    """Render `template` and wrap it in a multipart message (text + HTML)."""
    context = context or {}

    from_name = app.config.get("MAIL_FROM_NAME", "RoyalCRM")
    from_email = app.config.get("MAIL_FROM_ADDRESS") or app.config.get("MAIL_USERNAME") or ""

    html_body = render_template(template, **context)
    text_body = bleach.clean(html_body, tags=[], strip=True)

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_email}>"
    msg["To"] = to if isinstance(to, str) else ", ".join(to)

    if reply_to:
        msg["Reply-To"] = reply_to

    msg.attach(MIMEText(text_body, "plain"))
    msg.attach(MIMEText(html_body, "html"))
    return msg


def send_email(to, subject, template, context=None, reply_to=None):
    """
    Send a templated email without blocking the request.

    Args:
        to:        Recipient email address (str or list).
        subject:   Email subject line.
        template:  Path to Jinja2 HTML template (relative to templates/).
        context:   Dict of variables to pass to the template.
        reply_to:  Optional reply-to address.

    Returns:
        The started sender thread.
    """
    app = current_app._get_current_object()
    msg = build_message(app, to, subject, template, context, reply_to)

    thread = threading.Thread(target=_send_smtp, args=(app, msg))
    thread.daemon = True
    thread.start()
    return thread
