"""Tests for the data gateway and its row-level access policy.

Covers:
- Owner scoping for regular users (implicit and explicit)
- Admin-only operations (identities, deletes)
- Ticket/feedback creation validation and sanitization
- Status updates (any-to-any, invalid values, unknown ids)
- Idempotent deletes
- Lazy profile creation
"""

import pytest

from royalcrm.extensions import db
from royalcrm.models.feedback import Feedback
from royalcrm.models.identity import Identity
from royalcrm.models.profile import Profile
from royalcrm.models.ticket import Ticket
from royalcrm.services.gateway import (
    AccessDenied,
    DataGateway,
    GatewayError,
    RecordNotFound,
    default_display_name,
)


def _gateway(identity):
    return DataGateway(identity.to_record())


class TestScoping:
    def test_user_lists_only_own_tickets(self, seed_data):
        tickets = _gateway(seed_data["alice"]).list_tickets()
        assert {t.user_id for t in tickets} == {seed_data["alice"].id}
        assert len(tickets) == 2

    def test_user_cannot_ask_for_other_rows(self, seed_data):
        with pytest.raises(AccessDenied):
            _gateway(seed_data["alice"]).list_tickets(seed_data["bob"].id)

    def test_admin_lists_everything_newest_first(self, seed_data):
        tickets = _gateway(seed_data["admin"]).list_tickets()
        assert [t.id for t in tickets] == [
            seed_data["login_bug"].id, seed_data["invoice"].id, seed_data["slow_export"].id,
        ]

    def test_admin_can_filter_by_owner(self, seed_data):
        feedback = _gateway(seed_data["admin"]).list_feedback(seed_data["bob"].id)
        assert [f.rating for f in feedback] == [3]

    def test_user_profiles_scoped(self, seed_data):
        profiles = _gateway(seed_data["alice"]).list_profiles()
        assert [p.full_name for p in profiles] == ["Alice Walker"]

    def test_records_are_utc(self, seed_data):
        [ticket, _] = _gateway(seed_data["alice"]).list_tickets()
        assert ticket.created_at.tzinfo is not None
        assert ticket.created_at.utcoffset().total_seconds() == 0


class TestIdentities:
    def test_admin_lists_identities(self, seed_data):
        emails = {i.email for i in _gateway(seed_data["admin"]).list_identities()}
        assert emails == {"admin@royalcrm.test", "alice@example.com", "bob@example.com"}

    def test_user_denied(self, seed_data):
        with pytest.raises(AccessDenied):
            _gateway(seed_data["alice"]).list_identities()


class TestCreateTicket:
    def test_creates_open_ticket_for_caller(self, seed_data):
        ticket = _gateway(seed_data["bob"]).create_ticket(
            title="Need help", description="Something is wrong with my account.",
            category="Account Issues", priority="high",
        )
        db.session.commit()

        assert ticket.status == "open"
        assert ticket.user_id == seed_data["bob"].id
        assert db.session.get(Ticket, ticket.id).priority == "high"

    def test_strips_html(self, seed_data):
        ticket = _gateway(seed_data["bob"]).create_ticket(
            title="<b>Bold</b> title", description="<script>x</script>Plain text here",
            category="Other",
        )
        assert ticket.title == "Bold title"
        assert "<script>" not in ticket.description

    def test_rejects_invalid_priority(self, seed_data):
        with pytest.raises(ValueError):
            _gateway(seed_data["bob"]).create_ticket("Title", "Description", "Other", priority="urgent")

    def test_rejects_empty_title(self, seed_data):
        with pytest.raises(ValueError):
            _gateway(seed_data["bob"]).create_ticket("   ", "Description", "Other")


class TestUpdateTicketStatus:
    @pytest.mark.parametrize("status", ["open", "in_progress", "resolved"])
    def test_any_status_from_resolved(self, seed_data, status):
        ticket = _gateway(seed_data["admin"]).update_ticket_status(seed_data["invoice"].id, status)
        assert ticket.status == status
        assert ticket.updated_at is not None

    def test_invalid_status(self, seed_data):
        with pytest.raises(ValueError):
            _gateway(seed_data["admin"]).update_ticket_status(seed_data["invoice"].id, "closed")

    def test_unknown_ticket(self, seed_data):
        with pytest.raises(RecordNotFound):
            _gateway(seed_data["admin"]).update_ticket_status("no-such-id", "open")

    def test_user_cannot_touch_others(self, seed_data):
        with pytest.raises(RecordNotFound):
            _gateway(seed_data["alice"]).update_ticket_status(seed_data["slow_export"].id, "resolved")

    def test_not_found_is_a_gateway_error(self):
        assert issubclass(RecordNotFound, GatewayError)


class TestDeletes:
    def test_admin_deletes_ticket(self, seed_data):
        ticket_id = seed_data["invoice"].id
        _gateway(seed_data["admin"]).delete_ticket(ticket_id)
        db.session.commit()
        assert db.session.get(Ticket, ticket_id) is None

    def test_delete_missing_is_noop(self, seed_data):
        gateway = _gateway(seed_data["admin"])
        gateway.delete_ticket("no-such-id")
        gateway.delete_feedback("no-such-id")
        assert Ticket.query.count() == 3

    def test_user_cannot_delete(self, seed_data):
        with pytest.raises(AccessDenied):
            _gateway(seed_data["alice"]).delete_ticket(seed_data["login_bug"].id)
        with pytest.raises(AccessDenied):
            _gateway(seed_data["alice"]).delete_feedback(seed_data["praise"].id)
        assert Feedback.query.count() == 2

    def test_admin_deletes_feedback_twice(self, seed_data):
        gateway = _gateway(seed_data["admin"])
        gateway.delete_feedback(seed_data["meh"].id)
        gateway.delete_feedback(seed_data["meh"].id)
        db.session.commit()
        assert Feedback.query.count() == 1


class TestCreateFeedback:
    def test_valid(self, seed_data):
        item = _gateway(seed_data["bob"]).create_feedback("Nice work", "Support was helpful.", 4)
        assert item.rating == 4
        assert item.user_id == seed_data["bob"].id

    @pytest.mark.parametrize("rating", [0, 6, "5", True, None])
    def test_rejects_bad_rating(self, seed_data, rating):
        with pytest.raises(ValueError):
            _gateway(seed_data["bob"]).create_feedback("Nice work", "Support was helpful.", rating)
        assert Feedback.query.count() == 2


class TestProfiles:
    def test_ensure_profile_creates_default(self, seed_data):
        bob = seed_data["bob"]
        profile = _gateway(bob).ensure_profile(bob)
        db.session.commit()
        assert profile.full_name == "bob"
        assert Profile.query.filter_by(user_id=bob.id).count() == 1

    def test_ensure_profile_keeps_existing(self, seed_data):
        alice = seed_data["alice"]
        assert _gateway(alice).ensure_profile(alice).full_name == "Alice Walker"

    def test_upsert_updates_in_place(self, seed_data):
        alice = seed_data["alice"]
        _gateway(alice).upsert_profile(alice.id, full_name="Alice W.", phone="", company="Initech")
        db.session.commit()
        profile = Profile.query.filter_by(user_id=alice.id).one()
        assert (profile.full_name, profile.phone, profile.company) == ("Alice W.", None, "Initech")

    def test_upsert_other_user_denied(self, seed_data):
        with pytest.raises(AccessDenied):
            _gateway(seed_data["alice"]).upsert_profile(seed_data["bob"].id, full_name="Hacked")

    def test_unknown_field_rejected(self, seed_data):
        alice = seed_data["alice"]
        with pytest.raises(ValueError):
            _gateway(alice).upsert_profile(alice.id, role="admin")

    def test_default_display_name(self):
        assert default_display_name("jane.doe@example.com") == "jane.doe"
        assert default_display_name("") == "User"


class TestIdentityModel:
    def test_role_drives_admin_flag(self, seed_data):
        assert seed_data["admin"].is_admin
        assert not seed_data["alice"].is_admin
        assert Identity.query.filter_by(role="admin").count() == 1
