"""Profile model.

User-editable metadata, one-to-one with an Identity (unique user_id).
Created lazily the first time the owner opens their profile page if
signup did not create it.
"""

import uuid

from royalcrm.extensions import db
from royalcrm.records import ProfileRecord, as_utc


class Profile(db.Model):
    __tablename__ = "user_profiles"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("identities.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    full_name = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    company = db.Column(db.String(255))
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    identity = db.relationship("Identity", back_populates="profile")

    def to_record(self):
        return ProfileRecord(
            id=self.id,
            user_id=self.user_id,
            full_name=self.full_name,
            phone=self.phone,
            company=self.company,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )

    def __repr__(self):
        return f"<Profile {self.full_name} user={self.user_id}>"
