"""Form validation — runs before any gateway call.

Each validate_* takes the raw submitted form (a dict-like) and returns a
tuple (cleaned, errors) where `errors` maps field name -> message for
inline display. An empty `errors` dict means the data may be sent on.
"""

import re

from royalcrm.models.feedback import Feedback
from royalcrm.models.ticket import Ticket

# Simple email regex — not exhaustive, just sanity-check
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD = 6


def _text(form, name):
    return (form.get(name) or "").strip()


def _min_length(errors, name, value, length, label):
    if len(value) < length:
        errors[name] = f"{label} must be at least {length} characters"


def _check_email(errors, email):
    if not email or not EMAIL_RE.match(email):
        errors["email"] = "Invalid email address"


def validate_signup(form):
    cleaned = {
        "full_name": _text(form, "full_name"),
        "email": _text(form, "email").lower(),
        "phone": _text(form, "phone"),
        "company": _text(form, "company"),
        "password": form.get("password") or "",
        "confirm_password": form.get("confirm_password") or "",
    }
    errors = {}

    _min_length(errors, "full_name", cleaned["full_name"], 2, "Name")
    _check_email(errors, cleaned["email"])
    if cleaned["phone"] and len(cleaned["phone"]) < 10:
        errors["phone"] = "Phone number must be at least 10 digits"
    if cleaned["company"]:
        _min_length(errors, "company", cleaned["company"], 2, "Company name")
    _min_length(errors, "password", cleaned["password"], MIN_PASSWORD, "Password")
    if cleaned["password"] != cleaned["confirm_password"]:
        errors["confirm_password"] = "Passwords don't match"

    return cleaned, errors


def validate_login(form):
    cleaned = {
        "email": _text(form, "email").lower(),
        "password": form.get("password") or "",
    }
    errors = {}
    _check_email(errors, cleaned["email"])
    _min_length(errors, "password", cleaned["password"], MIN_PASSWORD, "Password")
    return cleaned, errors


def validate_profile(form):
    cleaned = {
        "full_name": _text(form, "full_name"),
        "phone": _text(form, "phone"),
        "company": _text(form, "company"),
    }
    errors = {}
    _min_length(errors, "full_name", cleaned["full_name"], 2, "Name")
    return cleaned, errors


def validate_ticket(form):
    cleaned = {
        "title": _text(form, "title"),
        "description": _text(form, "description"),
        "category": _text(form, "category"),
        "priority": _text(form, "priority") or "medium",
    }
    errors = {}
    _min_length(errors, "title", cleaned["title"], 5, "Title")
    _min_length(errors, "description", cleaned["description"], 20, "Description")
    if cleaned["category"] not in Ticket.CATEGORIES:
        errors["category"] = "Please select a category"
    if cleaned["priority"] not in Ticket.PRIORITIES:
        errors["priority"] = "Please select a priority"
    return cleaned, errors


def validate_feedback(form):
    cleaned = {
        "title": _text(form, "title"),
        "message": _text(form, "message"),
        "rating": None,
    }
    errors = {}
    _min_length(errors, "title", cleaned["title"], 5, "Title")
    _min_length(errors, "message", cleaned["message"], 10, "Message")

    raw_rating = form.get("rating")
    try:
        rating = int(str(raw_rating).strip())
    except (TypeError, ValueError):
        errors["rating"] = "Please choose a rating"
    else:
        if Feedback.MIN_RATING <= rating <= Feedback.MAX_RATING:
            cleaned["rating"] = rating
        else:
            errors["rating"] = "Rating must be between 1 and 5"

    return cleaned, errors


def validate_contact(form):
    cleaned = {
        "name": _text(form, "name"),
        "email": _text(form, "email"),
        "subject": _text(form, "subject"),
        "message": _text(form, "message"),
    }
    errors = {}
    if not cleaned["name"]:
        errors["name"] = "Name is required"
    _check_email(errors, cleaned["email"])
    if not cleaned["subject"]:
        errors["subject"] = "Subject is required"
    _min_length(errors, "message", cleaned["message"], 10, "Message")
    if len(cleaned["message"]) > 5000:
        errors["message"] = "Message is too long"
    return cleaned, errors
