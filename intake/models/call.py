"""Pydantic model tracking one caller through the intake conversation."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from intake.workflows.schema import Step


class Disposition(str, Enum):
    QUOTED = "quoted"
    ACCEPTED = "accepted"
    ESCALATED = "escalated"
    ERROR = "error"


class OfferStatus(str, Enum):
    ACCEPTED_300 = "ACCEPTED_300"
    ACCEPTED_COUNTER = "ACCEPTED_COUNTER"
    COUNTERED_AT_MAX = "COUNTERED_AT_MAX"
    ACCEPTED_MAX = "ACCEPTED_MAX"
    MANAGER_REVIEW = "MANAGER_REVIEW"
    ACCEPTED_BELOW_300 = "ACCEPTED_BELOW_300"
    OFFERED_350 = "OFFERED_350"
    ACCEPTED_350 = "ACCEPTED_350"


ACCEPTED_STATUSES = frozenset({
    OfferStatus.ACCEPTED_300,
    OfferStatus.ACCEPTED_COUNTER,
    OfferStatus.ACCEPTED_MAX,
    OfferStatus.ACCEPTED_BELOW_300,
    OfferStatus.ACCEPTED_350,
})
PROPOSAL_STATUSES = frozenset({OfferStatus.COUNTERED_AT_MAX, OfferStatus.OFFERED_350})


class OfferStateError(RuntimeError):
    """Raised when an offer would move out of an accepted or escalated status."""


class NormalizedValue(BaseModel):
    raw: str = ""
    normalized: str = ""
    score: float = 0.0

    @property
    def value(self) -> str:
        return self.normalized or self.raw


class OfferState(BaseModel):
    """Fixed-price program state.

    ``final`` is only ever set together with an accepted status; a capped
    proposal waiting for the caller's answer lives in ``proposed``.
    """

    eligible: bool = False
    initial: Optional[int] = None
    proposed: Optional[int] = None
    final: Optional[int] = None
    status: Optional[OfferStatus] = None
    desired_price: Optional[int] = None

    @property
    def is_settled(self) -> bool:
        return self.status in ACCEPTED_STATUSES or self.status == OfferStatus.MANAGER_REVIEW

    def _check_open(self) -> None:
        if self.is_settled:
            raise OfferStateError(f"Offer already settled as {self.status.value}")

    def propose(self, amount: int, status: OfferStatus) -> None:
        if status not in PROPOSAL_STATUSES:
            raise ValueError(f"{status.value} is not a proposal status")
        self._check_open()
        self.proposed = amount
        self.status = status

    def accept(self, amount: int, status: OfferStatus) -> None:
        if status not in ACCEPTED_STATUSES:
            raise ValueError(f"{status.value} is not an accepted status")
        self._check_open()
        self.final = amount
        self.status = status

    def escalate(self) -> None:
        self._check_open()
        self.status = OfferStatus.MANAGER_REVIEW


class CallbackState(BaseModel):
    use_same_number: bool = True
    number: str = ""


LEAD_COLUMNS = [
    "timestamp",
    "caller_name",
    "caller_number",
    "year",
    "make",
    "model",
    "drives",
    "mileage_km",
    "price_given",
    "city",
    "notes",
    "asking_price",
    "distance_km",
    "pickup_postal",
    "city_raw",
    "city_score",
    "pricing_rule",
    "offer_eligible",
    "offer_initial",
    "offer_final",
    "offer_status",
    "callback_best_number",
    "callback_number",
    "desired_price",
    "disposition",
]


def _text(value: object) -> str:
    return "" if value is None else str(value)


class CallState(BaseModel):
    """Mutable session state for a single inbound call.

    Fields are populated progressively as the caller answers each prompt.
    The record is dropped as soon as the call reaches a terminal outcome.
    """

    call_id: str
    step: Step = Step.DRIVES
    caller_number: str = ""
    callee_number: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_seen: float = Field(default_factory=time.monotonic)

    # Vehicle
    drivable: Optional[bool] = None
    year: str = ""
    make: NormalizedValue = Field(default_factory=NormalizedValue)
    model: NormalizedValue = Field(default_factory=NormalizedValue)
    mileage_km: Optional[int] = None
    asking_price: Optional[int] = None
    condition: str = ""
    condition_flags: list[str] = []

    # Location
    city: NormalizedValue = Field(default_factory=NormalizedValue)
    pickup_postal: str = ""
    postal_confidence: str = ""
    postal_attempts: int = 0
    distance_km: Optional[float] = None

    # Outcome
    pricing_rule: str = "N/A"
    price_range_text: str = ""
    offer: OfferState = Field(default_factory=OfferState)
    callback: CallbackState = Field(default_factory=CallbackState)
    disposition: Optional[Disposition] = None

    # Per-step count of rejected inputs
    reprompts: dict[str, int] = {}

    @property
    def is_done(self) -> bool:
        return self.step == Step.DONE

    def set_rule(self, rule: str) -> None:
        self.pricing_rule = rule

    def to_lead_record(self) -> dict[str, str]:
        """Flatten the call into one row for the lead sheet."""
        notes = " | ".join(
            part for part in (
                f"CallId={self.call_id}",
                f"To={self.callee_number}",
                f"Condition={self.condition}" if self.condition else "",
                f"Flags={','.join(self.condition_flags)}" if self.condition_flags else "",
                f"Model={self.model.raw}" if self.model.raw and self.model.raw != self.model.value else "",
            ) if part
        )

        if self.offer.final is not None:
            price_given = f"${self.offer.final}"
        elif self.offer.proposed is not None:
            price_given = f"${self.offer.proposed} (not accepted)"
        else:
            price_given = self.price_range_text

        record = {
            "timestamp": self.created_at.isoformat(),
            "caller_name": "",
            "caller_number": self.caller_number,
            "year": self.year,
            "make": self.make.value,
            "model": self.model.value,
            "drives": "" if self.drivable is None else ("Yes" if self.drivable else "No"),
            "mileage_km": _text(self.mileage_km),
            "price_given": price_given,
            "city": self.city.value,
            "notes": notes,
            "asking_price": _text(self.asking_price),
            "distance_km": _text(self.distance_km),
            "pickup_postal": self.pickup_postal,
            "city_raw": self.city.raw,
            "city_score": _text(self.city.score) if self.city.raw else "",
            "pricing_rule": self.pricing_rule,
            "offer_eligible": "Yes" if self.offer.eligible else "No",
            "offer_initial": _text(self.offer.initial),
            "offer_final": _text(self.offer.final),
            "offer_status": self.offer.status.value if self.offer.status else "",
            "callback_best_number": "Yes" if self.callback.use_same_number else "No",
            "callback_number": self.callback.number,
            "desired_price": _text(self.offer.desired_price),
            "disposition": self.disposition.value if self.disposition else "",
        }
        return {column: record[column] for column in LEAD_COLUMNS}
