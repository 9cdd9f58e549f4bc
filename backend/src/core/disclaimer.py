"""
Medical disclaimer consent lifecycle.

A user is prompted for the medical disclaimer when any of the following holds:

- the disclaimer has never been shown to them,
- they did not tick "don't show this again" the last time they accepted,
- the last acceptance is older than the re-consent window (30 days).

The "don't show again" preference therefore only suppresses the prompt inside
the window; acceptance always expires after it.

The consent checkbox stays disabled until the disclaimer viewport has been
scrolled to within SCROLL_END_TOLERANCE_PX of its end. Once reached, it stays
enabled for the rest of the flow.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

from services.utils import as_utc

REPROMPT_WINDOW = timedelta(days=30)
SCROLL_END_TOLERANCE_PX = 10


class DisclaimerState(StrEnum):
    """States of the per-session consent flow."""

    UNKNOWN = "unknown"
    PROMPT_REQUIRED = "prompt_required"
    PROMPT_SUPPRESSED = "prompt_suppressed"
    AWAITING_SCROLL_COMPLETION = "awaiting_scroll_completion"
    CONSENT_GRANTED = "consent_granted"


class InvalidTransitionError(Exception):
    """Raised when a consent flow action is not valid in its current state."""

    def __init__(self, state: DisclaimerState, action: str) -> None:
        self.state = state
        self.action = action
        super().__init__(f"Cannot {action} while in state '{state}'")


def requires_disclaimer(
    last_shown: datetime | None,
    dont_show: bool,
    now: datetime,
    window: timedelta = REPROMPT_WINDOW,
) -> bool:
    """
    Decide whether the disclaimer prompt must be shown.

    Args:
        last_shown: When consent was last granted, None if never.
        dont_show: The user's "don't show this again" preference.
        now: Current time.
        window: Re-consent window; acceptance older than this expires.

    Returns:
        True if the user must (re-)consent.
    """
    if last_shown is None:
        return True
    if not dont_show:
        return True
    return as_utc(now) - as_utc(last_shown) > window


def next_prompt_at(
    last_shown: datetime | None,
    window: timedelta = REPROMPT_WINDOW,
) -> datetime | None:
    """Moment after which the last acceptance expires (None if never accepted)."""
    if last_shown is None:
        return None
    return as_utc(last_shown) + window


def is_scrolled_to_end(scroll_top: float, client_height: float, scroll_height: float) -> bool:
    """Check whether a scroll position is within tolerance of the content end."""
    return scroll_top + client_height >= scroll_height - SCROLL_END_TOLERANCE_PX


@dataclass
class ScrollGate:
    """
    Latch that opens once the disclaimer text has been scrolled to its end.

    Opening is monotonic: scrolling back up never closes the gate again.
    """

    is_open: bool = False

    def observe(self, scroll_top: float, client_height: float, scroll_height: float) -> bool:
        """Record a scroll position and return whether the gate is open."""
        if not self.is_open and is_scrolled_to_end(scroll_top, client_height, scroll_height):
            self.is_open = True
        return self.is_open


@dataclass
class ConsentFlow:
    """
    Per-session consent flow.

    unknown -> prompt_required | prompt_suppressed (profile loaded)
    prompt_required -> awaiting_scroll_completion (prompt shown)
    prompt_suppressed -> awaiting_scroll_completion (disclaimer opened directly)
    awaiting_scroll_completion -> consent_granted (writes succeeded)

    Suppression only skips the automatic prompt after login. The disclaimer
    page stays reachable, and accepting it there records a fresh consent and
    restarts the re-consent window.
    """

    window: timedelta = REPROMPT_WINDOW
    state: DisclaimerState = DisclaimerState.UNKNOWN
    gate: ScrollGate = field(default_factory=ScrollGate)
    consent_checked: bool = False
    dont_show_again: bool = False

    def load(self, last_shown: datetime | None, dont_show: bool, now: datetime) -> DisclaimerState:
        """Evaluate the stored disclaimer state of the profile."""
        if self.state is not DisclaimerState.UNKNOWN:
            raise InvalidTransitionError(self.state, "load profile state")
        if requires_disclaimer(last_shown, dont_show, now, self.window):
            self.state = DisclaimerState.PROMPT_REQUIRED
        else:
            self.state = DisclaimerState.PROMPT_SUPPRESSED
        return self.state

    def show_prompt(self) -> None:
        """Display the disclaimer; consent now waits for a full scroll-through."""
        if self.state not in (DisclaimerState.PROMPT_REQUIRED, DisclaimerState.PROMPT_SUPPRESSED):
            raise InvalidTransitionError(self.state, "show prompt")
        self.state = DisclaimerState.AWAITING_SCROLL_COMPLETION

    @property
    def consent_enabled(self) -> bool:
        """Whether the consent checkbox can be interacted with."""
        return self.gate.is_open

    @property
    def can_submit(self) -> bool:
        """Whether the consent button is active."""
        return (
            self.state is DisclaimerState.AWAITING_SCROLL_COMPLETION
            and self.gate.is_open
            and self.consent_checked
        )

    def scroll(self, scroll_top: float, client_height: float, scroll_height: float) -> bool:
        """Report the disclaimer viewport scroll position."""
        return self.gate.observe(scroll_top, client_height, scroll_height)

    def set_consent_checked(self, checked: bool) -> None:
        """Tick or untick the consent checkbox (ignored while disabled)."""
        if self.consent_enabled:
            self.consent_checked = checked

    def set_dont_show_again(self, checked: bool) -> None:
        """Tick or untick the "don't show this again" preference."""
        self.dont_show_again = checked

    def grant(self) -> None:
        """Mark consent as granted after the consent writes succeeded."""
        if not self.can_submit:
            raise InvalidTransitionError(self.state, "grant consent")
        self.state = DisclaimerState.CONSENT_GRANTED


DISCLAIMER_TITLE = "Medical Disclaimer"

DISCLAIMER_PARAGRAPHS: tuple[str, ...] = (
    "Please read and consent to the following disclaimer before using the 2 Rule AIM App",
    "This disclaimer must be reviewed and accepted every 30 days to continue using the app.",
    "The information provided in this app is for general educational and informational "
    "purposes only. It is not intended as, nor should it be considered a substitute for, "
    "professional medical advice, diagnosis, or treatment.",
    "No claims are being made that the information, suggestions, or meal plans provided will "
    "treat, cure, or prevent any disease or health condition. Always consult with a qualified "
    "healthcare provider before making any changes to your diet or lifestyle.",
    "Do not disregard, avoid, or delay obtaining medical or health-related advice from your "
    "healthcare professional because of information provided through this app. Individual "
    "dietary needs and restrictions vary, and it is your responsibility to consult with a "
    "healthcare professional before making any health-related decisions or changes to your diet.",
    "It is strongly recommended that you be under medical supervision when making significant "
    "dietary changes, especially if you are on medication.",
    "Following the 2 Rule AIM Meal Plan may improve health markers such as blood pressure, "
    "cholesterol, blood sugar, inflammation, and weight, among others. These improvements may "
    "impact your medication needs.",
    "While every effort has been made to provide accurate nutrient values, some calculations are "
    "generated using best-available sources and estimation tools. Nutrient totals (including "
    "fructose and omega-3/omega-6 values) are based on standard food composition databases, such "
    "as the USDA FoodData Central, and may not reflect exact values for all food brands, "
    "preparations, or regional variations.",
    "The app uses a combination of automated tools and logic to validate nutrient targets (e.g., "
    "fructose limits and omega balance), but absolute precision cannot be guaranteed in all "
    "cases. Users relying on precise nutritional data for medical or therapeutic reasons are "
    "advised to consult a registered dietitian or healthcare provider.",
    "Nutrient information provided in this app, including, but not limited to, vitamin, mineral, "
    "iron, and trace element values (such as heavy metal content), is based on standardized food "
    "composition data and general assumptions about food sourcing. Actual nutrient and "
    "contaminant levels can vary due to factors such as soil quality, food origin, cooking "
    "methods, and product brand.",
    "The app's estimates are intended for general guidance only and should not be interpreted as "
    "precise laboratory measurements. Users with diagnosed nutrient deficiencies, iron disorders, "
    "or sensitivity to heavy metals should consult a licensed healthcare provider for "
    "personalized assessment and testing.",
    "Important Note on AI-Generated Content: This app uses advanced artificial intelligence (AI) "
    "to generate meal plans, nutritional analysis, and educational content. While we aim for "
    "accuracy and relevance, AI-generated information may occasionally include errors, outdated "
    "data, or unintended omissions.",
    "Users are encouraged to use their own judgment and consult qualified healthcare "
    "professionals before making significant dietary, supplement, or lifestyle changes.",
    "We do not guarantee that all AI-generated content is error-free. By using this app, you "
    "acknowledge that occasional inaccuracies may occur and agree not to hold the developers or "
    "affiliated parties liable for such errors.",
    "By using this app, you acknowledge and accept that the creators are not liable for adverse "
    "outcomes resulting from app usage.",
    "For your safety, this disclaimer will be shown again in 30 days for review.",
)

DONT_SHOW_AGAIN_LABEL = "Don't show this again (will still be shown every 30 days)"
