"""Main blueprint — public marketing pages.

Route Map:
  GET /           — landing page (logged-in users go to their dashboard)
  GET /about      — about page
  GET /faq        — searchable FAQ (?q=...&category=...)
  GET /terms      — terms of service
  GET /privacy    — privacy policy
  GET /contact    — contact form (submits to /contact/send)
"""

from flask import Blueprint, redirect, render_template, request, url_for
from flask_login import current_user

from royalcrm.services.filters import ALL, filter_faq

main_bp = Blueprint("main", __name__)


FAQ_ITEMS = [
    {
        "category": "Getting Started",
        "question": "How do I create an account?",
        "answer": "Click \"Sign Up\" in the top right corner, fill in your name, "
                  "email and password, then click \"Create Account\". You'll be "
                  "logged in and taken to your dashboard.",
    },
    {
        "category": "Getting Started",
        "question": "What is an admin account?",
        "answer": "Admin accounts can view all users, manage every ticket and read "
                  "all feedback. Regular users only see and manage their own data.",
    },
    {
        "category": "Tickets",
        "question": "How do I create a support ticket?",
        "answer": "Open \"My Tickets\" and click \"New Ticket\". Fill in the title, "
                  "description, category and priority. Your ticket goes straight "
                  "to our support team.",
    },
    {
        "category": "Tickets",
        "question": "What are the different ticket statuses?",
        "answer": "Tickets are \"Open\" (newly created), \"In Progress\" (being worked "
                  "on by support) or \"Resolved\" (completed).",
    },
    {
        "category": "Tickets",
        "question": "How long does it take to get a response?",
        "answer": "We aim to respond to all tickets within 24 hours on business days. "
                  "High priority tickets are usually handled faster.",
    },
    {
        "category": "Account",
        "question": "How do I update my profile information?",
        "answer": "Go to your Profile page to change your name, phone number and "
                  "company. Your email address cannot be changed.",
    },
    {
        "category": "Account",
        "question": "Can I change my password?",
        "answer": "Password changes are handled by support. Open a ticket in the "
                  "Account Issues category and we'll help you out.",
    },
    {
        "category": "Features",
        "question": "What is the feedback system?",
        "answer": "You can rate your experience from 1 to 5 stars and leave a "
                  "comment. We read every submission.",
    },
    {
        "category": "Technical",
        "question": "Is my data secure?",
        "answer": "Yes. Passwords are hashed, every request is checked against "
                  "your account, and only you and authorized admins can see "
                  "your records.",
    },
    {
        "category": "Technical",
        "question": "What browsers are supported?",
        "answer": "Any modern browser: Chrome, Firefox, Safari and Edge.",
    },
    {
        "category": "Billing",
        "question": "Is RoyalCRM free to use?",
        "answer": "RoyalCRM has a free tier with the core features. Contact our "
                  "sales team for enterprise pricing.",
    },
]

FAQ_CATEGORIES = [ALL] + sorted({item["category"] for item in FAQ_ITEMS})


@main_bp.route("/")
def index():
    """Landing page for visitors, dashboard redirect for logged-in users."""
    if current_user.is_authenticated:
        if current_user.is_admin:
            return redirect(url_for("admin.dashboard"))
        return redirect(url_for("account.dashboard"))
    return render_template("main/home.html")


@main_bp.route("/about")
def about():
    return render_template("main/about.html")


@main_bp.route("/faq")
def faq():
    """FAQ with free-text search and category filter."""
    search = request.args.get("q", "")
    category = request.args.get("category", ALL)
    if category not in FAQ_CATEGORIES:
        category = ALL

    items = filter_faq(FAQ_ITEMS, search=search, category=category)
    return render_template(
        "main/faq.html",
        items=items,
        search=search,
        category=category,
        categories=FAQ_CATEGORIES,
    )


@main_bp.route("/terms")
def terms():
    return render_template("main/terms.html")


@main_bp.route("/privacy")
def privacy():
    return render_template("main/privacy.html")


@main_bp.route("/contact")
def contact():
    return render_template("main/contact.html", form_data={}, errors={})
