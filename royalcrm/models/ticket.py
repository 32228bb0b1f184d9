"""Ticket model.

A support request owned by exactly one Identity. Status changes are
unconstrained: any status can be set from any other.
"""

import uuid

from royalcrm.extensions import db
from royalcrm.records import TicketRecord, as_utc


class Ticket(db.Model):
    __tablename__ = "tickets"

    # -- Valid statuses --
    STATUSES = ["open", "in_progress", "resolved"]

    # -- Valid priorities --
    PRIORITIES = ["low", "medium", "high"]

    # -- Categories offered on the submission form (stored as free text) --
    CATEGORIES = [
        "Technical Support",
        "Billing",
        "Feature Request",
        "Bug Report",
        "Account Issues",
        "General Inquiry",
        "Other",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("identities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(100), nullable=False)
    priority = db.Column(
        db.String(20), default="medium", nullable=False
    )  # low | medium | high
    status = db.Column(
        db.String(20), default="open", nullable=False
    )  # open | in_progress | resolved
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    owner = db.relationship("Identity", back_populates="tickets")

    def to_record(self):
        return TicketRecord(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            description=self.description,
            category=self.category,
            priority=self.priority,
            status=self.status,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )

    def __repr__(self):
        return f"<Ticket {self.title[:30]} ({self.status})>"
