"""Expiry badges for licenses and subscriptions."""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime

from django.utils import timezone

from ..models import NON_EXPIRING_PERIODS

PERMANENT = "permanent"
NORMAL = "normal"
EXPIRING = "expiring"
EXPIRED = "expired"

BADGE_KINDS = (PERMANENT, NORMAL, EXPIRING, EXPIRED)


@dataclass(frozen=True)
class ExpiryBadge:
    kind: str
    label: str


def classify_expiry(
    operational_period: str,
    renewal_date: date | None,
    today: date | None = None,
) -> ExpiryBadge:
    """Classify an asset by how long until its renewal date.

    Non-expiring operational periods are permanent whatever the
    renewal date says.
    """
    if operational_period in NON_EXPIRING_PERIODS:
        return ExpiryBadge(PERMANENT, "No Expiration")
    if renewal_date is None:
        return ExpiryBadge(EXPIRING, "No Expiration Date")

    if isinstance(renewal_date, datetime):
        renewal_date = timezone.localdate(renewal_date)
    today = today or timezone.localdate()
    days_left = (renewal_date - today).days

    if days_left < 0:
        return ExpiryBadge(EXPIRED, f"Expired {abs(days_left)} day(s) ago")
    if days_left == 0:
        return ExpiryBadge(EXPIRING, "Expires today")
    if days_left <= 30:
        return ExpiryBadge(EXPIRING, f"{days_left} day(s) left")
    if days_left <= 90:
        return ExpiryBadge(NORMAL, f"{math.ceil(days_left / 7)} week(s) left")
    return ExpiryBadge(NORMAL, f"{math.ceil(days_left / 30)} month(s) left")


def summarize_expiry(assets, today: date | None = None) -> dict[str, int]:
    """Count assets per badge kind, including empty kinds."""
    counts = Counter(
        classify_expiry(a.operational_period, a.renewal_date, today).kind
        for a in assets
    )
    return {kind: counts[kind] for kind in BADGE_KINDS}
