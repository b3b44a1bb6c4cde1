"""Fixed-price program for old, non-drivable cars.

Cars that do not drive and are 2001 or older get a flat $300 offer with free
towing.  A caller may counter once:

  - desired <= cap  -> accepted at the desired price
  - desired >  cap  -> a final offer at the cap, which the caller accepts or
                       rejects; rejecting it is the only route to a manager

The cap is $350 for Toyota and Honda, $300 for everything else.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

INITIAL_OFFER = 300
DEFAULT_CAP = 300
PREMIUM_CAP = 350
PREMIUM_MAKES = ("toyota", "honda")
MAX_ELIGIBLE_YEAR = 2001

_DESIRED_DIGITS = re.compile(r"[0-9]{2,7}")
_PREMIUM_WORD = re.compile(r"\b(" + "|".join(PREMIUM_MAKES) + r")\b")


class OfferDecisionKind(str, Enum):
    ACCEPT_DESIRED = "ACCEPT_DESIRED"
    CAP_AT_MAX = "CAP_AT_MAX"
    INVALID_DESIRED = "INVALID_DESIRED"


@dataclass(frozen=True)
class OfferDecision:
    max_offer: int

    decision = OfferDecisionKind.INVALID_DESIRED

    @property
    def accepted(self) -> bool:
        return False

    @property
    def final_offer(self) -> int | None:
        return None

    @property
    def message(self) -> str:
        return "Could not parse desired price."


@dataclass(frozen=True)
class InvalidDesired(OfferDecision):
    pass


@dataclass(frozen=True)
class AcceptDesired(OfferDecision):
    desired_price: int = 0

    decision = OfferDecisionKind.ACCEPT_DESIRED

    @property
    def accepted(self) -> bool:
        return True

    @property
    def final_offer(self) -> int:
        return self.desired_price

    @property
    def message(self) -> str:
        return f"Accepted at ${self.desired_price}."


@dataclass(frozen=True)
class CapAtMax(OfferDecision):
    desired_price: int = 0

    decision = OfferDecisionKind.CAP_AT_MAX

    @property
    def final_offer(self) -> int:
        return self.max_offer

    @property
    def message(self) -> str:
        return (
            f"Desired ${self.desired_price} is above cap. "
            f"Final offer at ${self.max_offer}."
        )


def _parse_year(year: str | int | None) -> int | None:
    try:
        return int(str(year).strip())
    except (TypeError, ValueError):
        return None


def normalize_make(make: str | None) -> str:
    return str(make or "").strip().lower()


def is_old_non_drivable_eligible(drivable: bool | None, year: str | int | None) -> bool:
    y = _parse_year(year)
    return drivable is False and y is not None and y <= MAX_ELIGIBLE_YEAR


def is_early_premium_eligible(
    drivable: bool | None, year: str | int | None, make: str | None,
) -> bool:
    """Stricter variant checked right after the make: Toyota/Honda only."""
    if not is_old_non_drivable_eligible(drivable, year):
        return False
    return bool(_PREMIUM_WORD.search(normalize_make(make)))


def get_initial_offer(year: str | int | None = None) -> int:
    # The year hook is kept for future tiers; every year gets the flat offer.
    return INITIAL_OFFER


def get_max_offer(make: str | None) -> int:
    m = normalize_make(make)
    if any(brand in m for brand in PREMIUM_MAKES):
        return PREMIUM_CAP
    return DEFAULT_CAP


def parse_desired_price(raw: str | int | None) -> int | None:
    """First run of 2-7 digits after dropping thousands separators."""
    text = str(raw if raw is not None else "").replace(",", "")
    match = _DESIRED_DIGITS.search(text)
    if not match:
        return None
    value = int(match.group(0))
    return value if value > 0 else None


def evaluate_counter_offer(make: str | None, desired: str | int | None) -> OfferDecision:
    max_offer = get_max_offer(make)

    if isinstance(desired, int) and not isinstance(desired, bool):
        value = desired if 10 <= desired <= 9_999_999 else None
    else:
        value = parse_desired_price(desired)

    if value is None:
        return InvalidDesired(max_offer=max_offer)
    if value <= max_offer:
        return AcceptDesired(max_offer=max_offer, desired_price=value)
    return CapAtMax(max_offer=max_offer, desired_price=value)


def needs_manager_review(accepted_final: bool | None) -> bool:
    """Only an explicit rejection of the final (capped) offer escalates."""
    return accepted_final is False
