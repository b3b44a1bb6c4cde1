"""Data models for the intake layer."""

from .call import (
    LEAD_COLUMNS,
    CallbackState,
    CallState,
    Disposition,
    NormalizedValue,
    OfferState,
    OfferStateError,
    OfferStatus,
)
from .turn import InboundTurn, OutboundTurn

__all__ = [
    "LEAD_COLUMNS",
    "CallState",
    "CallbackState",
    "Disposition",
    "InboundTurn",
    "NormalizedValue",
    "OfferState",
    "OfferStateError",
    "OfferStatus",
    "OutboundTurn",
]
