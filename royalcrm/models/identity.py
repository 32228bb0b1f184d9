"""Identity model.

An authenticated principal: login credentials plus the stored role.
Flask-Login integration via UserMixin.

Roles live on the row ("user" / "admin"). Nothing is inferred from the
email address at request time.
"""

import uuid

from flask_login import UserMixin

from royalcrm.extensions import db
from royalcrm.records import IdentityRecord, as_utc


class Identity(UserMixin, db.Model):
    __tablename__ = "identities"

    # -- Valid roles --
    ROLES = ["user", "admin"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.String(20), default="user", nullable=False
    )  # user | admin
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    profile = db.relationship(
        "Profile", back_populates="identity", uselist=False
    )
    tickets = db.relationship(
        "Ticket", back_populates="owner", lazy="dynamic"
    )
    feedback = db.relationship(
        "Feedback", back_populates="owner", lazy="dynamic"
    )

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def display_name(self):
        if self.profile is not None and self.profile.full_name:
            return self.profile.full_name
        return self.email.split("@")[0]

    def to_record(self):
        return IdentityRecord(
            id=self.id,
            email=self.email,
            role=self.role,
            created_at=as_utc(self.created_at),
        )

    def __repr__(self):
        return f"<Identity {self.email} ({self.role})>"
