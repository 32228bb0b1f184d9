"""Search and filter helpers for list views.

Every filter is a conjunction: a record is kept iff the search term
matches at least one of the searchable fields AND every equality filter
that is not "all" matches exactly. Input order is preserved and the
input is never modified.
"""

ALL = "all"

TICKET_SEARCH_FIELDS = ("title", "description", "user_name")
FEEDBACK_SEARCH_FIELDS = ("title", "message", "user_name")
USER_SEARCH_FIELDS = ("full_name", "email", "company")
FAQ_SEARCH_FIELDS = ("question", "answer")


def _field(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def matches_search(term, *values):
    """Case-insensitive substring match against any of `values`.

    The term is used as typed (surrounding spaces are part of it). An
    empty term matches everything; None values count as empty strings.
    """
    term = (term or "").lower()
    if not term:
        return True
    return any(term in (value or "").lower() for value in values)


def _is_active(value):
    return value not in (None, "", ALL)


def filter_records(records, search="", fields=(), **equality):
    """Generic search + equality filter.

    Equality compares string forms, so rating=4 stored as an int matches
    the query-string value "4".
    """
    active = {name: str(value) for name, value in equality.items() if _is_active(value)}

    def keep(record):
        if not matches_search(search, *(_field(record, f) for f in fields)):
            return False
        return all(str(_field(record, name)) == value for name, value in active.items())

    return [record for record in records or () if keep(record)]


def filter_tickets(tickets, search="", status=ALL, priority=ALL):
    return filter_records(
        tickets, search, TICKET_SEARCH_FIELDS, status=status, priority=priority
    )


def filter_feedback(feedback, search="", rating=ALL):
    return filter_records(feedback, search, FEEDBACK_SEARCH_FIELDS, rating=rating)


def filter_users(users, search=""):
    return filter_records(users, search, USER_SEARCH_FIELDS)


def filter_faq(items, search="", category=ALL):
    return filter_records(items, search, FAQ_SEARCH_FIELDS, category=category)
