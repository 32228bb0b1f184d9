"""Admin console — the admin dashboard's view state and its mutations.

DashboardState is an immutable snapshot (users, tickets, feedback, stats,
load errors). It changes only through refresh() or the pure transitions
below, each of which returns a new snapshot with stats recomputed.

AdminConsole owns the current snapshot. Mutations are a single gateway
write followed by a commit; on success the snapshot is patched in place
of a refetch, on failure the session is rolled back and the snapshot is
left exactly as it was. Every operation returns a Notice for the route
to flash.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from royalcrm.extensions import db
from royalcrm.services.aggregation import enrich_feedback, enrich_tickets, enrich_users
from royalcrm.services.fanout import fetch_concurrently
from royalcrm.services.gateway import GatewayError
from royalcrm.services.stats import compute_stats
from royalcrm.records import DashboardStats

logger = logging.getLogger(__name__)

COLLECTION_LABELS = {
    "profiles": "users",
    "identities": "account emails",
    "tickets": "tickets",
    "feedback": "feedback",
}


@dataclass(frozen=True)
class Notice:
    category: str  # flash category: success | error | warning | info
    message: str


@dataclass(frozen=True)
class DashboardState:
    users: tuple = ()
    tickets: tuple = ()
    feedback: tuple = ()
    stats: DashboardStats = field(default_factory=DashboardStats)
    errors: tuple = ()  # names of collections that failed to load

    @classmethod
    def build(cls, users=(), tickets=(), feedback=(), errors=(), now=None):
        users, tickets, feedback = tuple(users), tuple(tickets), tuple(feedback)
        return cls(
            users=users,
            tickets=tickets,
            feedback=feedback,
            stats=compute_stats(users, tickets, feedback, now=now),
            errors=tuple(errors),
        )

    def _rebuild(self, **changes):
        merged = {
            "users": self.users,
            "tickets": self.tickets,
            "feedback": self.feedback,
            "errors": self.errors,
        }
        merged.update(changes)
        return DashboardState.build(**merged)

    def with_ticket_status(self, ticket_id, status, updated_at=None):
        updated_at = updated_at or datetime.now(timezone.utc)
        tickets = tuple(
            replace(t, status=status, updated_at=updated_at) if t.id == ticket_id else t
            for t in self.tickets
        )
        return self._rebuild(tickets=tickets)

    def without_ticket(self, ticket_id):
        return self._rebuild(tickets=tuple(t for t in self.tickets if t.id != ticket_id))

    def without_feedback(self, feedback_id):
        return self._rebuild(feedback=tuple(f for f in self.feedback if f.id != feedback_id))

    def find_ticket(self, ticket_id):
        return next((t for t in self.tickets if t.id == ticket_id), None)

    def find_user(self, user_id):
        return next((u for u in self.users if u.user_id == user_id), None)

    def find_feedback(self, feedback_id):
        return next((f for f in self.feedback if f.id == feedback_id), None)


class AdminConsole:
    """Loads and mutates the admin dashboard through a DataGateway."""

    def __init__(self, gateway, max_workers=1):
        self.gateway = gateway
        self.max_workers = max_workers
        self.state = DashboardState()

    def refresh(self):
        """Reload every collection in parallel and rebuild the snapshot.

        Partial failures keep whatever loaded; missing identities or
        profiles show up as "Unknown" placeholders in the joined rows.
        """
        result = fetch_concurrently(
            {
                "profiles": self.gateway.list_profiles,
                "identities": self.gateway.list_identities,
                "tickets": self.gateway.list_tickets,
                "feedback": self.gateway.list_feedback,
            },
            max_workers=self.max_workers,
        )

        profiles = result.get("profiles")
        identities = result.get("identities")

        self.state = DashboardState.build(
            users=enrich_users(profiles, identities),
            tickets=enrich_tickets(result.get("tickets"), profiles, identities),
            feedback=enrich_feedback(result.get("feedback"), profiles, identities),
            errors=tuple(result.errors),
        )

        if result.ok:
            return None
        failed = ", ".join(COLLECTION_LABELS.get(name, name) for name in result.errors)
        logger.warning(f"Admin dashboard loaded with failures: {failed}")
        return Notice("warning", f"Some admin data failed to load ({failed}).")

    def _commit(self, action, write):
        """Run a gateway write and commit it. Returns an error Notice or None."""
        try:
            write()
            db.session.commit()
        except (GatewayError, ValueError) as e:
            db.session.rollback()
            logger.error(f"Admin {action} failed: {e}")
            return Notice("error", f"Failed to {action}.")
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Admin {action} failed on commit: {e}")
            return Notice("error", f"Failed to {action}.")
        return None

    def update_ticket_status(self, ticket_id, status):
        updated = {}

        def write():
            updated["ticket"] = self.gateway.update_ticket_status(ticket_id, status)

        error = self._commit("update ticket status", write)
        if error:
            return error

        self.state = self.state.with_ticket_status(
            ticket_id, status, updated_at=updated["ticket"].updated_at
        )
        logger.info(f"Ticket {ticket_id} status -> {status}")
        return Notice("success", f"Ticket status updated to {status.replace('_', ' ')}")

    def delete_ticket(self, ticket_id, confirmed=False):
        if not confirmed:
            return Notice("info", "Ticket was not deleted.")

        error = self._commit("delete ticket", lambda: self.gateway.delete_ticket(ticket_id))
        if error:
            return error

        self.state = self.state.without_ticket(ticket_id)
        logger.info(f"Ticket {ticket_id} deleted")
        return Notice("success", "Ticket deleted successfully")

    def delete_feedback(self, feedback_id, confirmed=False):
        if not confirmed:
            return Notice("info", "Feedback was not deleted.")

        error = self._commit(
            "delete feedback", lambda: self.gateway.delete_feedback(feedback_id)
        )
        if error:
            return error

        self.state = self.state.without_feedback(feedback_id)
        logger.info(f"Feedback {feedback_id} deleted")
        return Notice("success", "Feedback deleted successfully")
