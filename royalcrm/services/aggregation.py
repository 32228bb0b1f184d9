"""Aggregation — joins tickets, feedback and profiles with display data.

Collections arrive independently from the gateway (possibly partial, in
no particular order relative to each other). Each enrich_* function is a
left outer join from the primary collection: every input record yields
exactly one output record, in input order. Lookups go through dict
indexes built once, so the join is linear in the total record count.

Missing joins are expected (an identity with no profile yet, or the
identity list failed to load) and degrade to placeholder text.
"""

from dataclasses import asdict

from royalcrm.records import (
    UNKNOWN,
    UNKNOWN_EMAIL,
    UNKNOWN_USER,
    EnrichedFeedback,
    EnrichedTicket,
    EnrichedUser,
)


def index_by(records, key):
    """Build {record.<key>: record}. Later records win on duplicate keys."""
    return {getattr(record, key): record for record in records or ()}


def _display_name(profile):
    if profile is None or not profile.full_name:
        return UNKNOWN_USER
    return profile.full_name


def _email(identity, fallback=UNKNOWN_EMAIL):
    if identity is None or not identity.email:
        return fallback
    return identity.email


def enrich_tickets(tickets, profiles, identities):
    """Annotate each ticket with its owner's display name and email."""
    profiles_by_owner = index_by(profiles, "user_id")
    identities_by_id = index_by(identities, "id")
    return [
        EnrichedTicket(
            **asdict(ticket),
            user_name=_display_name(profiles_by_owner.get(ticket.user_id)),
            user_email=_email(identities_by_id.get(ticket.user_id)),
        )
        for ticket in tickets or ()
    ]


def enrich_feedback(feedback, profiles, identities):
    """Annotate each feedback record with its author's display name and email."""
    profiles_by_owner = index_by(profiles, "user_id")
    identities_by_id = index_by(identities, "id")
    return [
        EnrichedFeedback(
            **asdict(item),
            user_name=_display_name(profiles_by_owner.get(item.user_id)),
            user_email=_email(identities_by_id.get(item.user_id)),
        )
        for item in feedback or ()
    ]


def enrich_users(profiles, identities):
    """Attach the login email to every profile ("Unknown" when unresolved)."""
    identities_by_id = index_by(identities, "id")
    return [
        EnrichedUser(
            **asdict(profile),
            email=_email(identities_by_id.get(profile.user_id), fallback=UNKNOWN),
        )
        for profile in profiles or ()
    ]
