"""Auth blueprint — /auth/*

Open self-service signup, login, logout.
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
from flask_login import current_user, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from royalcrm.extensions import db, limiter
from royalcrm.models.identity import Identity
from royalcrm.services.gateway import DataGateway, GatewayError
from royalcrm.services.validation import validate_login, validate_signup

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

logger = logging.getLogger(__name__)


def _home_for(user):
    return url_for("admin.dashboard") if user.is_admin else url_for("account.dashboard")


def _safe_next(next_url, default):
    """Only allow relative redirects (prevent open redirect)."""
    if not next_url or not next_url.startswith("/") or next_url.startswith("//"):
        return default
    return next_url


# ──────────────────────────────────────────────
# GET/POST /auth/signup
# ──────────────────────────────────────────────

@auth_bp.route("/signup", methods=["GET", "POST"])
@limiter.limit("10 per minute", methods=["POST"])
def signup():
    """Create an identity + profile, then log the new user in."""
    if current_user.is_authenticated:
        return redirect(_home_for(current_user))

    if request.method == "GET":
        return render_template("auth/signup.html", form_data={}, errors={})

    cleaned, errors = validate_signup(request.form)

    if "email" not in errors and Identity.query.filter_by(email=cleaned["email"]).first():
        errors["email"] = "An account with this email already exists."

    if errors:
        return render_template(
            "auth/signup.html", form_data=cleaned, errors=errors
        ), 422

    bootstrap_admin = current_app.config.get("ADMIN_BOOTSTRAP_EMAIL")
    role = "admin" if bootstrap_admin and cleaned["email"] == bootstrap_admin else "user"

    try:
        identity = Identity(
            email=cleaned["email"],
            password_hash=generate_password_hash(cleaned["password"]),
            role=role,
        )
        db.session.add(identity)
        db.session.flush()  # get identity.id

        DataGateway(identity.to_record()).create_profile(
            identity.id,
            full_name=cleaned["full_name"],
            phone=cleaned["phone"],
            company=cleaned["company"],
        )
        db.session.commit()
    except (GatewayError, SQLAlchemyError) as e:
        db.session.rollback()
        logger.error(f"Signup failed for {cleaned['email']}: {e}")
        flash("Failed to create account. Please try again.", "error")
        return render_template(
            "auth/signup.html", form_data=cleaned, errors={}
        ), 500

    logger.info(f"New {role} account: {identity.email}")
    login_user(identity)

    flash("Account created successfully!", "success")
    return redirect(_home_for(identity))


# ──────────────────────────────────────────────
# GET/POST /auth/login?next=/tickets
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["GET", "POST"])
@limiter.limit("15 per minute", methods=["POST"])
def login():
    """Email + password login.

    After login, redirects to the `next` query param when it is a
    relative path, otherwise to the user's dashboard.
    """
    if current_user.is_authenticated:
        return redirect(_safe_next(request.args.get("next"), _home_for(current_user)))

    if request.method == "GET":
        return render_template(
            "auth/login.html",
            form_data={},
            errors={},
            next_url=request.args.get("next", ""),
        )

    cleaned, errors = validate_login(request.form)
    next_url = request.form.get("next") or request.args.get("next", "")
    remember = bool(request.form.get("remember"))

    if errors:
        return render_template(
            "auth/login.html", form_data=cleaned, errors=errors, next_url=next_url
        ), 422

    identity = Identity.query.filter_by(email=cleaned["email"]).first()

    if identity is None or not check_password_hash(identity.password_hash, cleaned["password"]):
        flash("Invalid email or password.", "error")
        return render_template(
            "auth/login.html", form_data=cleaned, errors={}, next_url=next_url
        ), 401

    if not identity.is_active:
        flash("Your account has been deactivated.", "error")
        return render_template(
            "auth/login.html", form_data=cleaned, errors={}, next_url=next_url
        ), 403

    login_user(identity, remember=remember)

    flash("Logged in successfully.", "success")
    return redirect(_safe_next(next_url, _home_for(identity)))


# ──────────────────────────────────────────────
# GET /auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout")
def logout():
    """Log out and redirect to the landing page."""
    logout_user()
    flash("You have been logged out.", "info")
    return redirect(url_for("main.index"))
