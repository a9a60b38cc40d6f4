# barber_booking/data.py

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ServiceRule:
    """Matches a free-text service name when it contains every keyword."""

    keywords: Tuple[str, ...]
    duration_minutes: int
    color_id: str  # Google Calendar event colour

    def matches(self, service: str) -> bool:
        lowered = service.lower()
        return all(k in lowered for k in self.keywords)


# Services offered on the booking form
SERVICES = (
    "Haircut & Beard Trim",
    "Haircut",
    "Beard Trim",
    "Straight Razor Shave",
    "Hair Enhancement (Permanent)",
    "Hair Enhancement (Temporary - Air-Brush)",
)

# Checked in order: combined services before single ones, temporary
# enhancement before the generic enhancement.
SERVICE_RULES = (
    ServiceRule(("haircut", "beard"), 60, "6"),      # orange
    ServiceRule(("haircut",), 45, "9"),              # blue
    ServiceRule(("beard",), 30, "10"),               # green
    ServiceRule(("shave",), 30, "7"),                # teal
    ServiceRule(("enhancement", "temporary"), 15, "4"),
    ServiceRule(("enhancement",), 45, "4"),          # red
)

DEFAULT_DURATION_MINUTES = 60
DEFAULT_COLOR_ID = "1"  # lavender


def match_service(service: str, rules: Tuple[ServiceRule, ...] = SERVICE_RULES) -> Optional[ServiceRule]:
    for rule in rules:
        if rule.matches(service or ""):
            return rule
    return None


def offered_service(service: str) -> Optional[str]:
    """The catalogue spelling of ``service``, ignoring case and spacing; None if not offered."""
    wanted = " ".join((service or "").split()).casefold()
    return next((s for s in SERVICES if s.casefold() == wanted), None)
