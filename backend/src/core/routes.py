"""Logical client routes returned as redirect targets."""
from enum import StrEnum


class Route(StrEnum):
    """Destinations in the web client. Opaque to the API."""

    ENTRY = "/"
    DISCLAIMER = "/disclaimer"
    PROFILE_SETUP = "/profile-setup"
    DASHBOARD = "/dashboard"
    PRICING = "/pricing"
    HELP = "/help"
    FAQ = "/faq"
    ABOUT = "/about"
    CONTACT = "/contact"
