"""Tests for the admin dashboard.

Covers:
- Role gating (anonymous, regular user, admin)
- Tabs, search and filters
- Degraded loading when one collection fails
- Status changes and confirmed deletes rendered from the patched snapshot
- JSON export
"""

import json
from datetime import datetime, timezone

import pytest

from royalcrm.extensions import db
from royalcrm.models.feedback import Feedback
from royalcrm.models.ticket import Ticket
from royalcrm.services.gateway import DataGateway, GatewayError


@pytest.fixture
def as_admin(client, login, seed_data):
    login("admin@royalcrm.test")
    return client


class TestAccess:
    def test_anonymous_redirected_to_login(self, client):
        resp = client.get("/admin/")
        assert resp.status_code == 302
        assert "/auth/login" in resp.headers["Location"]

    def test_regular_user_gets_403_without_loading(self, client, login, seed_data, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("no data should be loaded for a non-admin")

        for name in ("list_profiles", "list_identities", "list_tickets", "list_feedback"):
            monkeypatch.setattr(DataGateway, name, fail)

        login("alice@example.com")
        resp = client.get("/admin/")

        assert resp.status_code == 403
        assert b"Access Denied" in resp.data
        assert b"Export is slow" not in resp.data

    def test_regular_user_cannot_delete(self, client, login, seed_data):
        login("alice@example.com")
        resp = client.post(f"/admin/tickets/{seed_data['slow_export'].id}/delete", data={"confirm": "yes"})
        assert resp.status_code == 403
        assert Ticket.query.count() == 3

    def test_admin_sees_dashboard(self, as_admin):
        resp = as_admin.get("/admin/")
        assert resp.status_code == 200
        assert b"Admin Dashboard" in resp.data
        assert b"Login page broken" in resp.data  # recent tickets
        assert b"+2 this week" in resp.data


class TestTabs:
    def test_users_tab(self, as_admin):
        resp = as_admin.get("/admin/?tab=users")
        assert b"alice@example.com" in resp.data
        assert b"Acme Corp" in resp.data

    def test_ticket_status_filter(self, as_admin):
        resp = as_admin.get("/admin/?tab=tickets&status=open")
        assert b"Login page broken" in resp.data
        assert b"Wrong invoice total" not in resp.data
        assert b"Export is slow" not in resp.data

    def test_ticket_search_by_customer(self, as_admin):
        resp = as_admin.get("/admin/?tab=tickets&q=alice")
        assert b"Export is slow" not in resp.data

    def test_feedback_rating_filter(self, as_admin):
        resp = as_admin.get("/admin/?tab=feedback&rating=3")
        assert b"Could be faster" in resp.data
        assert b"Great support" not in resp.data

    def test_unknown_tab_falls_back(self, as_admin):
        resp = as_admin.get("/admin/?tab=nope")
        assert resp.status_code == 200
        assert b"Average rating" in resp.data


class TestDegradedLoad:
    def test_identity_failure_shows_placeholders(self, as_admin, monkeypatch):
        def broken(self):
            raise GatewayError("Failed to list identities.")

        monkeypatch.setattr(DataGateway, "list_identities", broken)
        resp = as_admin.get("/admin/?tab=tickets")

        assert resp.status_code == 200
        assert b"Some admin data failed to load (account emails)." in resp.data
        assert b"Unknown Email" in resp.data
        assert b"Alice Walker" in resp.data


class TestDetails:
    def test_user_detail_activity(self, as_admin, seed_data):
        resp = as_admin.get(f"/admin/users/{seed_data['alice'].id}")

        assert resp.status_code == 200
        assert b"Activity Summary" in resp.data
        assert b"alice@example.com" in resp.data
        assert b"Login page broken" in resp.data
        assert b"Great support" in resp.data
        assert b"5.0" in resp.data
        assert b"Export is slow" not in resp.data

    def test_user_without_feedback(self, as_admin, seed_data):
        resp = as_admin.get(f"/admin/users/{seed_data['admin'].id}")
        assert resp.status_code == 200
        assert b"0.0" in resp.data
        assert b"No feedback." in resp.data

    def test_unknown_user(self, as_admin, seed_data):
        assert as_admin.get("/admin/users/no-such-user").status_code == 404

    def test_ticket_detail(self, as_admin, seed_data):
        resp = as_admin.get(f"/admin/tickets/{seed_data['slow_export'].id}")
        assert resp.status_code == 200
        assert b"Exporting contacts takes several minutes." in resp.data
        assert b"bob@example.com" in resp.data
        assert b"Unknown User" in resp.data

    def test_unknown_ticket(self, as_admin, seed_data):
        assert as_admin.get("/admin/tickets/no-such-id").status_code == 404

    def test_feedback_detail(self, as_admin, seed_data):
        resp = as_admin.get(f"/admin/feedback/{seed_data['praise'].id}")
        assert resp.status_code == 200
        assert b"Quick and friendly answers every time." in resp.data
        assert b"Alice Walker" in resp.data

    def test_unknown_feedback(self, as_admin, seed_data):
        assert as_admin.get("/admin/feedback/no-such-id").status_code == 404

    def test_regular_user_denied(self, client, login, seed_data):
        login("alice@example.com")
        assert client.get(f"/admin/users/{seed_data['alice'].id}").status_code == 403


class TestTicketStatus:
    def test_update(self, as_admin, seed_data):
        ticket_id = seed_data["login_bug"].id
        resp = as_admin.post(f"/admin/tickets/{ticket_id}/status", data={"new_status": "resolved"})

        assert resp.status_code == 200
        assert b"Ticket status updated to resolved" in resp.data
        assert db.session.get(Ticket, ticket_id).status == "resolved"

    def test_keeps_filters(self, as_admin, seed_data):
        resp = as_admin.post(
            f"/admin/tickets/{seed_data['login_bug'].id}/status",
            data={"new_status": "in_progress", "status": "open"},
        )
        # the ticket no longer matches status=open
        assert b"Login page broken" not in resp.data

    def test_invalid_status(self, as_admin, seed_data):
        resp = as_admin.post(
            f"/admin/tickets/{seed_data['login_bug'].id}/status", data={"new_status": "closed"}
        )
        assert b"Invalid ticket status." in resp.data
        assert db.session.get(Ticket, seed_data["login_bug"].id).status == "open"


class TestDeleteTicket:
    def test_confirmation_page(self, as_admin, seed_data):
        resp = as_admin.get(f"/admin/tickets/{seed_data['invoice'].id}/delete")
        assert resp.status_code == 200
        assert b"Wrong invoice total" in resp.data
        assert b"Yes, delete" in resp.data
        assert Ticket.query.count() == 3

    def test_declined(self, as_admin, seed_data):
        resp = as_admin.post(f"/admin/tickets/{seed_data['invoice'].id}/delete", data={"confirm": "no"})
        assert b"Ticket was not deleted." in resp.data
        assert Ticket.query.count() == 3

    def test_confirmed(self, as_admin, seed_data):
        ticket_id = seed_data["invoice"].id
        resp = as_admin.post(f"/admin/tickets/{ticket_id}/delete", data={"confirm": "yes"})
        assert resp.status_code == 200
        assert b"Ticket deleted successfully" in resp.data
        assert b"Wrong invoice total" not in resp.data
        assert Ticket.query.count() == 2

    def test_repeat_is_harmless(self, as_admin, seed_data):
        url = f"/admin/tickets/{seed_data['invoice'].id}/delete"
        as_admin.post(url, data={"confirm": "yes"})
        resp = as_admin.post(url, data={"confirm": "yes"})
        assert resp.status_code == 200
        assert Ticket.query.count() == 2

    def test_missing_ticket_confirm_page(self, as_admin, seed_data):
        resp = as_admin.get("/admin/tickets/no-such-id/delete")
        assert resp.status_code == 302


class TestDeleteFeedback:
    def test_confirmed(self, as_admin, seed_data):
        resp = as_admin.post(f"/admin/feedback/{seed_data['meh'].id}/delete", data={"confirm": "yes"})
        assert b"Feedback deleted successfully" in resp.data
        assert Feedback.query.count() == 1

    def test_declined(self, as_admin, seed_data):
        resp = as_admin.post(f"/admin/feedback/{seed_data['meh'].id}/delete", data={})
        assert b"Feedback was not deleted." in resp.data
        assert Feedback.query.count() == 2


class TestExport:
    def test_tickets_respect_filters(self, as_admin, seed_data):
        resp = as_admin.get("/admin/export/tickets?status=open")

        assert resp.status_code == 200
        assert resp.mimetype == "application/json"
        today = datetime.now(timezone.utc).date().isoformat()
        assert f"tickets_{today}.json" in resp.headers["Content-Disposition"]

        rows = json.loads(resp.data)
        assert [r["title"] for r in rows] == ["Login page broken"]
        assert rows[0]["user_email"] == "alice@example.com"
        assert rows[0]["user_name"] == "Alice Walker"

    def test_users(self, as_admin):
        rows = json.loads(as_admin.get("/admin/export/users").data)
        assert {r["email"] for r in rows} == {"admin@royalcrm.test", "alice@example.com"}

    def test_users_respect_search(self, as_admin):
        rows = json.loads(as_admin.get("/admin/export/users?q=acme").data)
        assert [r["email"] for r in rows] == ["alice@example.com"]

    def test_unknown_collection(self, as_admin):
        assert as_admin.get("/admin/export/passwords").status_code == 404
