import os
import logging

import click
from flask import Flask, render_template
from werkzeug.security import generate_password_hash

from royalcrm.config import config_by_name
from royalcrm.extensions import db, migrate, login_manager, csrf, limiter
from royalcrm.records import clamp_rating


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from royalcrm import models  # noqa: F401

    # --- Register blueprints ---
    from royalcrm.blueprints.main import main_bp
    from royalcrm.blueprints.contact import contact_bp
    from royalcrm.blueprints.auth import auth_bp
    from royalcrm.blueprints.account import account_bp
    from royalcrm.blueprints.tickets import tickets_bp
    from royalcrm.blueprints.feedback import feedback_bp
    from royalcrm.blueprints.admin import admin_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(contact_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(account_bp)
    app.register_blueprint(tickets_bp)
    app.register_blueprint(feedback_bp)
    app.register_blueprint(admin_bp)

    # --- Error handlers ---
    @app.errorhandler(403)
    def forbidden(e):
        return render_template("errors/403.html"), 403

    @app.errorhandler(404)
    def not_found(e):
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def server_error(e):
        return render_template("errors/500.html"), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=(), payment=()"
        )
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
            "img-src 'self' data:; "
            "font-src 'self' https://fonts.gstatic.com; "
            "connect-src 'self'; "
            "base-uri 'self'; "
            "form-action 'self'; "
            "frame-ancestors 'none';"
        )
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Custom Jinja filters ---
    @app.template_filter("stars")
    def stars_filter(rating):
        """Render a rating as five stars, clamped to 1..5."""
        filled = clamp_rating(rating)
        return "★" * filled + "☆" * (5 - filled)

    @app.template_filter("label")
    def label_filter(value):
        """in_progress -> In Progress"""
        return (value or "").replace("_", " ").title()

    @app.template_filter("datetime")
    def datetime_filter(value, fmt="%b %d, %Y %H:%M"):
        if value is None:
            return ""
        return value.strftime(fmt)

    @app.context_processor
    def inject_app_name():
        return {"app_name": app.config.get("APP_NAME", "RoyalCRM")}

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-admin")
    @click.option("--email", default="admin@royalcrm.local", help="Admin email")
    @click.option("--password", default="admin123", help="Admin password")
    @click.option("--name", default="Admin", help="Admin display name")
    def seed_admin(email, password, name):
        """Create (or promote) an admin identity with a profile.

        Usage:
            flask seed-admin
            flask seed-admin --email admin@example.com --password s3cret
        """
        from royalcrm.models.identity import Identity
        from royalcrm.models.profile import Profile

        email = email.lower().strip()
        admin = Identity.query.filter_by(email=email).first()
        if admin:
            admin.role = "admin"
            click.echo(f"Identity already exists, ensured admin role: {email}")
        else:
            admin = Identity(
                email=email,
                password_hash=generate_password_hash(password),
                role="admin",
            )
            db.session.add(admin)
            db.session.flush()
            db.session.add(Profile(user_id=admin.id, full_name=name))
            click.echo(f"Created admin identity: {email}")

        db.session.commit()

    @app.cli.command("grant-role")
    @click.option("--email", required=True, help="Identity email")
    @click.option(
        "--role",
        type=click.Choice(["user", "admin"]),
        default="admin",
        help="Role to assign",
    )
    def grant_role(email, role):
        """Assign a role to an existing identity.

        Usage:
            flask grant-role --email jane@example.com
            flask grant-role --email jane@example.com --role user
        """
        from royalcrm.models.identity import Identity

        identity = Identity.query.filter_by(email=email.lower().strip()).first()
        if identity is None:
            raise click.ClickException(f"No identity with email {email}")

        old_role = identity.role
        identity.role = role
        db.session.commit()
        click.echo(f"{identity.email}: {old_role} -> {role}")

    @app.cli.command("seed-demo")
    @click.option("--password", default="demo1234", help="Password for demo users")
    def seed_demo(password):
        """Create two demo users with tickets and feedback.

        Usage:
            flask seed-demo
        """
        from royalcrm.models.feedback import Feedback
        from royalcrm.models.identity import Identity
        from royalcrm.models.profile import Profile
        from royalcrm.models.ticket import Ticket

        demo_users = [
            ("jane@demo.royalcrm.local", "Jane Cooper", "Acme Corp"),
            ("omar@demo.royalcrm.local", "Omar Haddad", None),
        ]

        for email, full_name, company in demo_users:
            if Identity.query.filter_by(email=email).first():
                click.echo(f"Demo user already exists: {email}")
                continue

            identity = Identity(
                email=email,
                password_hash=generate_password_hash(password),
            )
            db.session.add(identity)
            db.session.flush()
            db.session.add(Profile(user_id=identity.id, full_name=full_name, company=company))

            db.session.add_all([
                Ticket(
                    user_id=identity.id,
                    title="Cannot export contacts",
                    description="The export button spins forever on the contacts page.",
                    category="Bug Report",
                    priority="high",
                ),
                Ticket(
                    user_id=identity.id,
                    title="Invoice address change",
                    description="Please update the billing address on our next invoice.",
                    category="Billing",
                    priority="low",
                    status="resolved",
                ),
                Feedback(
                    user_id=identity.id,
                    title="Great support team",
                    message="Quick answers and friendly people, thank you!",
                    rating=5,
                ),
            ])
            click.echo(f"Created demo user: {email}")

        db.session.commit()
