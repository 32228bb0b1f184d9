"""Data gateway — every read and write of profiles, identities, tickets
and feedback goes through here.

The gateway is bound to the acting identity (the "caller") and enforces
the row-level access policy:

- a regular user only lists and mutates rows whose user_id is their own;
  listing without an owner filter is implicitly scoped to the caller
- an admin sees every row, may list identities, and is the only role
  allowed to delete tickets and feedback

Denials raise AccessDenied. Backend errors are rolled back and re-raised
as GatewayError so routes can recover without a 500.

Reads return immutable records (royalcrm.records), never ORM rows.
Mutations flush but do NOT commit; the caller commits.
"""

import logging
from datetime import datetime, timezone

import bleach
from sqlalchemy.exc import SQLAlchemyError

from royalcrm.extensions import db
from royalcrm.models.feedback import Feedback
from royalcrm.models.identity import Identity
from royalcrm.models.profile import Profile
from royalcrm.models.ticket import Ticket

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "phone", "company")


class GatewayError(Exception):
    """A read or write against the data store failed."""


class AccessDenied(GatewayError):
    """The caller's role does not permit the operation."""


class RecordNotFound(GatewayError):
    """The addressed row does not exist (or is not visible to the caller)."""


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def default_display_name(email):
    """Display name for a lazily created profile: the email local-part."""
    local_part = (email or "").split("@")[0].strip()
    return local_part or "User"


class DataGateway:
    """Policy-enforcing access to the CRM tables for one caller."""

    def __init__(self, caller):
        self.caller = caller

    def __repr__(self):
        return f"<DataGateway caller={self.caller.email} ({self.caller.role})>"

    # ── policy helpers ────────────────────────────

    @property
    def is_admin(self):
        return self.caller.is_admin

    def _require_admin(self, action):
        if not self.is_admin:
            logger.warning(f"{self.caller.email} denied: {action}")
            raise AccessDenied(f"Administrator privileges are required to {action}.")

    def _scope_owner(self, owner_id):
        """Resolve the owner filter for a list call.

        Admins may pass None for "all rows"; regular users are pinned to
        their own id and denied when asking for someone else's rows.
        """
        if self.is_admin:
            return owner_id
        if owner_id is not None and owner_id != self.caller.id:
            raise AccessDenied("You can only access your own records.")
        return self.caller.id

    def _can_touch(self, owner_id):
        return self.is_admin or owner_id == self.caller.id

    def _run(self, action, fn):
        """Run a data-store call, translating SQLAlchemy errors."""
        try:
            return fn()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Gateway failure during {action}: {e}")
            raise GatewayError(f"Failed to {action}.") from e

    # ── profiles ──────────────────────────────────

    def list_profiles(self, owner_id=None):
        owner_id = self._scope_owner(owner_id)

        def query():
            q = Profile.query
            if owner_id is not None:
                q = q.filter_by(user_id=owner_id)
            rows = q.order_by(Profile.created_at.desc()).all()
            return [p.to_record() for p in rows]

        return self._run("list profiles", query)

    def get_profile(self, owner_id):
        owner_id = self._scope_owner(owner_id)

        def query():
            profile = Profile.query.filter_by(user_id=owner_id).first()
            return profile.to_record() if profile else None

        return self._run("load profile", query)

    def create_profile(self, owner_id, **fields):
        if not self._can_touch(owner_id):
            raise AccessDenied("You can only create your own profile.")

        def write():
            profile = Profile(user_id=owner_id, **self._profile_values(fields))
            db.session.add(profile)
            db.session.flush()
            return profile.to_record()

        return self._run("create profile", write)

    def upsert_profile(self, owner_id, **fields):
        """Insert or update the profile keyed on user_id."""
        if not self._can_touch(owner_id):
            raise AccessDenied("You can only update your own profile.")

        def write():
            values = self._profile_values(fields)
            profile = Profile.query.filter_by(user_id=owner_id).first()
            if profile is None:
                profile = Profile(user_id=owner_id, **values)
                db.session.add(profile)
            else:
                for key, value in values.items():
                    setattr(profile, key, value)
                profile.updated_at = datetime.now(timezone.utc)
            db.session.flush()
            return profile.to_record()

        return self._run("save profile", write)

    def ensure_profile(self, identity):
        """Return the identity's profile, creating a default one if absent."""
        profile = self.get_profile(identity.id)
        if profile is not None:
            return profile
        logger.info(f"Creating default profile for {identity.email}")
        return self.create_profile(
            identity.id, full_name=default_display_name(identity.email)
        )

    @staticmethod
    def _profile_values(fields):
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        return {key: (_sanitize(value) or None) for key, value in fields.items()}

    # ── identities ────────────────────────────────

    def list_identities(self):
        self._require_admin("list all accounts")

        def query():
            rows = Identity.query.order_by(Identity.created_at.desc()).all()
            return [i.to_record() for i in rows]

        return self._run("list identities", query)

    # ── tickets ───────────────────────────────────

    def list_tickets(self, owner_id=None):
        owner_id = self._scope_owner(owner_id)

        def query():
            q = Ticket.query
            if owner_id is not None:
                q = q.filter_by(user_id=owner_id)
            rows = q.order_by(Ticket.created_at.desc()).all()
            return [t.to_record() for t in rows]

        return self._run("list tickets", query)

    def create_ticket(self, title, description, category, priority="medium"):
        """Create a ticket owned by the caller.

        Raises:
            ValueError: If a required field is empty or priority is invalid.
        """
        title = _sanitize(title)
        description = _sanitize(description)
        category = _sanitize(category)

        if not title:
            raise ValueError("Title is required.")
        if not description:
            raise ValueError("Description is required.")
        if not category:
            raise ValueError("Category is required.")
        if priority not in Ticket.PRIORITIES:
            raise ValueError(
                f"Invalid priority '{priority}'. Must be one of: {', '.join(Ticket.PRIORITIES)}"
            )

        def write():
            ticket = Ticket(
                user_id=self.caller.id,
                title=title,
                description=description,
                category=category,
                priority=priority,
                status="open",
            )
            db.session.add(ticket)
            db.session.flush()
            logger.info(f"Ticket created by {self.caller.email}: {title}")
            return ticket.to_record()

        return self._run("create ticket", write)

    def update_ticket_status(self, ticket_id, status):
        """Set a ticket's status. Any status may follow any other.

        Raises:
            ValueError: If status is not one of Ticket.STATUSES.
            RecordNotFound: If the ticket is missing or not visible.
        """
        if status not in Ticket.STATUSES:
            raise ValueError(
                f"Invalid status '{status}'. Must be one of: {', '.join(Ticket.STATUSES)}"
            )

        def write():
            ticket = db.session.get(Ticket, ticket_id)
            if ticket is None or not self._can_touch(ticket.user_id):
                raise RecordNotFound(f"Ticket {ticket_id} not found.")
            ticket.status = status
            ticket.updated_at = datetime.now(timezone.utc)
            db.session.flush()
            return ticket.to_record()

        return self._run("update ticket status", write)

    def delete_ticket(self, ticket_id):
        """Delete a ticket (admin only). Deleting a missing id is a no-op."""
        self._require_admin("delete tickets")

        def write():
            deleted = Ticket.query.filter_by(id=ticket_id).delete()
            db.session.flush()
            return deleted

        deleted = self._run("delete ticket", write)
        if not deleted:
            logger.info(f"Ticket {ticket_id} already gone, nothing to delete")

    # ── feedback ──────────────────────────────────

    def list_feedback(self, owner_id=None):
        owner_id = self._scope_owner(owner_id)

        def query():
            q = Feedback.query
            if owner_id is not None:
                q = q.filter_by(user_id=owner_id)
            rows = q.order_by(Feedback.created_at.desc()).all()
            return [f.to_record() for f in rows]

        return self._run("list feedback", query)

    def create_feedback(self, title, message, rating):
        """Create feedback owned by the caller.

        Raises:
            ValueError: If title/message are empty or rating is outside 1..5.
        """
        title = _sanitize(title)
        message = _sanitize(message)

        if not title:
            raise ValueError("Title is required.")
        if not message:
            raise ValueError("Message is required.")
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise ValueError("Rating must be a whole number.")
        if not Feedback.MIN_RATING <= rating <= Feedback.MAX_RATING:
            raise ValueError("Rating must be between 1 and 5.")

        def write():
            feedback = Feedback(
                user_id=self.caller.id,
                title=title,
                message=message,
                rating=rating,
            )
            db.session.add(feedback)
            db.session.flush()
            logger.info(f"Feedback ({rating}/5) submitted by {self.caller.email}")
            return feedback.to_record()

        return self._run("create feedback", write)

    def delete_feedback(self, feedback_id):
        """Delete feedback (admin only). Deleting a missing id is a no-op."""
        self._require_admin("delete feedback")

        def write():
            deleted = Feedback.query.filter_by(id=feedback_id).delete()
            db.session.flush()
            return deleted

        deleted = self._run("delete feedback", write)
        if not deleted:
            logger.info(f"Feedback {feedback_id} already gone, nothing to delete")
