"""Quote range and fixed-price offer rules."""

from .offers import (
    AcceptDesired,
    CapAtMax,
    InvalidDesired,
    OfferDecision,
    OfferDecisionKind,
    evaluate_counter_offer,
    get_initial_offer,
    get_max_offer,
    is_early_premium_eligible,
    is_old_non_drivable_eligible,
    needs_manager_review,
    parse_desired_price,
)
from .price_range import PriceRange, calculate_price_range, condition_flags

__all__ = [
    "AcceptDesired",
    "CapAtMax",
    "InvalidDesired",
    "OfferDecision",
    "OfferDecisionKind",
    "PriceRange",
    "calculate_price_range",
    "condition_flags",
    "evaluate_counter_offer",
    "get_initial_offer",
    "get_max_offer",
    "is_early_premium_eligible",
    "is_old_non_drivable_eligible",
    "needs_manager_review",
    "parse_desired_price",
]
