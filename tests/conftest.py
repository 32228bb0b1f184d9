"""Shared test fixtures for the RoyalCRM test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: an admin, two customers (one without a profile), their
  tickets and feedback
- login: helper that logs the test client in through /auth/login
"""

from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from royalcrm import create_app
from royalcrm.extensions import db as _db
from royalcrm.models.feedback import Feedback
from royalcrm.models.identity import Identity
from royalcrm.models.profile import Profile
from royalcrm.models.ticket import Ticket

PASSWORD = "secret123"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def login(client):
    """Log the test client in as `email` (all seeded users share PASSWORD)."""

    def _login(email, password=PASSWORD):
        return client.post("/auth/login", data={
            "email": email,
            "password": password,
        }, follow_redirects=False)

    return _login


def _identity(session, email, role="user"):
    identity = Identity(
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        role=role,
    )
    session.add(identity)
    session.flush()
    return identity


@pytest.fixture
def seed_data(db_session):
    """Seed an admin, two customers and their tickets/feedback.

    bob has no profile row, so joins against him fall back to
    placeholder names.
    """
    now = datetime.now(timezone.utc)

    # --- Identities ---
    admin = _identity(db_session, "admin@royalcrm.test", role="admin")
    alice = _identity(db_session, "alice@example.com")
    bob = _identity(db_session, "bob@example.com")

    # --- Profiles ---
    db_session.add_all([
        Profile(user_id=admin.id, full_name="Ada Admin", created_at=now - timedelta(days=30)),
        Profile(
            user_id=alice.id,
            full_name="Alice Walker",
            phone="5551234567",
            company="Acme Corp",
            created_at=now - timedelta(days=2),
        ),
    ])

    # --- Tickets (newest first: login_bug, invoice, slow_export) ---
    login_bug = Ticket(
        user_id=alice.id,
        title="Login page broken",
        description="The login button does nothing on Safari.",
        category="Bug Report",
        priority="high",
        status="open",
        created_at=now - timedelta(days=1),
    )
    invoice = Ticket(
        user_id=alice.id,
        title="Wrong invoice total",
        description="Last month's invoice charged us twice.",
        category="Billing",
        priority="low",
        status="resolved",
        created_at=now - timedelta(days=3),
    )
    slow_export = Ticket(
        user_id=bob.id,
        title="Export is slow",
        description="Exporting contacts takes several minutes.",
        category="Technical Support",
        priority="medium",
        status="in_progress",
        created_at=now - timedelta(days=10),
    )
    db_session.add_all([login_bug, invoice, slow_export])

    # --- Feedback ---
    praise = Feedback(
        user_id=alice.id,
        title="Great support",
        message="Quick and friendly answers every time.",
        rating=5,
        created_at=now - timedelta(days=1),
    )
    meh = Feedback(
        user_id=bob.id,
        title="Could be faster",
        message="Tickets take a while to get picked up.",
        rating=3,
        created_at=now - timedelta(days=8),
    )
    db_session.add_all([praise, meh])

    db_session.commit()

    return {
        "admin": admin,
        "alice": alice,
        "bob": bob,
        "login_bug": login_bug,
        "invoice": invoice,
        "slow_export": slow_export,
        "praise": praise,
        "meh": meh,
    }
