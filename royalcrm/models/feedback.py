"""Feedback model.

A rated comment owned by one Identity. Immutable after creation; the
only later change is an admin deleting it.
"""

import uuid

from royalcrm.extensions import db
from royalcrm.records import FeedbackRecord, as_utc


class Feedback(db.Model):
    __tablename__ = "feedback"

    MIN_RATING = 1
    MAX_RATING = 5

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
    message = db.Column(db.Text, nullable=False)
    rating = db.Column(db.Integer, nullable=False)  # 1..5
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    owner = db.relationship("Identity", back_populates="feedback")

    __table_args__ = (
        db.CheckConstraint(
            "rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"
        ),
    )

    def to_record(self):
        return FeedbackRecord(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            message=self.message,
            rating=self.rating,
            created_at=as_utc(self.created_at),
        )

    def __repr__(self):
        return f"<Feedback {self.title[:30]} ({self.rating}/5)>"
