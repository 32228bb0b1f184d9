"""Derived statistics for the dashboards.

Pure functions over in-memory collections, recomputed in full whenever a
collection changes.
"""

from datetime import datetime, timedelta, timezone

from royalcrm.records import DashboardStats, UserActivity, WeeklyGrowth, as_utc

GROWTH_WINDOW = timedelta(days=7)


def average_rating(feedback):
    """Arithmetic mean of the ratings; 0 for an empty collection."""
    ratings = [item.rating for item in feedback or ()]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def count_since(records, cutoff):
    """Number of records created strictly after `cutoff`."""
    return sum(
        1
        for record in records or ()
        if record.created_at is not None and as_utc(record.created_at) > cutoff
    )


def ticket_summary(tickets):
    """Per-status ticket counters for the user-facing pages."""
    tickets = list(tickets or ())
    return {
        "total": len(tickets),
        "open": sum(1 for t in tickets if t.status == "open"),
        "in_progress": sum(1 for t in tickets if t.status == "in_progress"),
        "resolved": sum(1 for t in tickets if t.status == "resolved"),
    }


def user_activity(user_id, tickets, feedback):
    """Ticket count, feedback count and average rating for one user."""
    own_feedback = [f for f in feedback or () if f.user_id == user_id]
    return UserActivity(
        tickets=sum(1 for t in tickets or () if t.user_id == user_id),
        feedback=len(own_feedback),
        avg_rating=average_rating(own_feedback),
    )


def compute_stats(users, tickets, feedback, now=None):
    """Build DashboardStats for the admin overview.

    `now` is read once so every weekly count uses the same cutoff.
    """
    users = list(users or ())
    tickets = list(tickets or ())
    feedback = list(feedback or ())

    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    cutoff = now - GROWTH_WINDOW

    summary = ticket_summary(tickets)

    return DashboardStats(
        total_users=len(users),
        total_tickets=summary["total"],
        total_feedback=len(feedback),
        open_tickets=summary["open"],
        in_progress_tickets=summary["in_progress"],
        resolved_tickets=summary["resolved"],
        avg_rating=average_rating(feedback),
        weekly_growth=WeeklyGrowth(
            users=count_since(users, cutoff),
            tickets=count_since(tickets, cutoff),
            feedback=count_since(feedback, cutoff),
        ),
    )
