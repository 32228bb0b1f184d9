"""Immutable snapshot records.

The data gateway hands these out instead of live ORM rows, so the
aggregation, statistics and filter layers work on plain values that
are safe to pass between threads and outlive the SQLAlchemy session
that produced them.

All timestamps are timezone-aware UTC.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional

UNKNOWN_USER = "Unknown User"
UNKNOWN_EMAIL = "Unknown Email"
UNKNOWN = "Unknown"


def as_utc(value):
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def clamp_rating(rating) -> int:
    """Clamp a rating into the 1..5 star range for display."""
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        return 1
    return max(1, min(5, rating))


@dataclass(frozen=True)
class IdentityRecord:
    id: str
    email: str
    role: str = "user"
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@dataclass(frozen=True)
class ProfileRecord:
    id: str
    user_id: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class TicketRecord:
    id: str
    user_id: str
    title: str
    description: str
    category: str
    priority: str = "medium"
    status: str = "open"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class FeedbackRecord:
    id: str
    user_id: str
    title: str
    message: str
    rating: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class EnrichedTicket(TicketRecord):
    user_name: str = UNKNOWN_USER
    user_email: str = UNKNOWN_EMAIL


@dataclass(frozen=True)
class EnrichedFeedback(FeedbackRecord):
    user_name: str = UNKNOWN_USER
    user_email: str = UNKNOWN_EMAIL


@dataclass(frozen=True)
class EnrichedUser(ProfileRecord):
    email: str = UNKNOWN


@dataclass(frozen=True)
class UserActivity:
    tickets: int = 0
    feedback: int = 0
    avg_rating: float = 0.0


@dataclass(frozen=True)
class WeeklyGrowth:
    users: int = 0
    tickets: int = 0
    feedback: int = 0


@dataclass(frozen=True)
class DashboardStats:
    total_users: int = 0
    total_tickets: int = 0
    total_feedback: int = 0
    open_tickets: int = 0
    in_progress_tickets: int = 0
    resolved_tickets: int = 0
    avg_rating: float = 0.0
    weekly_growth: WeeklyGrowth = field(default_factory=WeeklyGrowth)


def to_dict(record):
    """Serialize a record for JSON export (datetimes as ISO-8601)."""
    data = asdict(record)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data

