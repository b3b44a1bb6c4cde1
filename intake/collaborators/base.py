"""Abstract base classes for the intake collaborators.

The engine never talks to these directly: the service performs the lookup or
write and hands the result back.  Any backend (Google, a fake in tests, a
CRM) implements these ABCs.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from intake.session import redact_pii

log = logging.getLogger("intake.collaborators")


@dataclass(frozen=True)
class DistanceResult:
    """Outcome of one driving distance lookup."""

    ok: bool
    km: Optional[float] = None
    error: str = ""


class DistanceLookup(ABC):
    """Driving distance between two postal codes."""

    @abstractmethod
    async def driving_distance_km(self, origin_postal: str, dest_postal: str) -> DistanceResult:
        """Return the driving distance in km, rounded to one decimal.

        Failures are reported as ``ok=False`` with an error string rather
        than raised.
        """


class LeadSink(ABC):
    """Destination for completed call records."""

    @abstractmethod
    async def write_lead(self, record: dict[str, str]) -> None:
        """Persist one lead record (keys in ``LEAD_COLUMNS`` order)."""


class LoggingLeadSink(LeadSink):
    """Writes leads to the log when no spreadsheet is configured."""

    async def write_lead(self, record: dict[str, str]) -> None:
        log.info(
            "Lead: caller=%s vehicle=%s %s %s rule=%s price=%s disposition=%s",
            redact_pii(record.get("caller_number", "")),
            record.get("year", ""),
            record.get("make", ""),
            record.get("model", ""),
            record.get("pricing_rule", ""),
            record.get("price_given", ""),
            record.get("disposition", ""),
        )
