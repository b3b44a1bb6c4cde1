"""Pydantic models for the intake workflow definition.

Each state carries its spoken prompt, the corrective reprompts keyed by
validation code, acknowledgement/exit messages keyed by intent, the input it
collects, and the intent -> target transitions.  Targets are either a state
id or ``exit:<disposition>``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class Step(str, Enum):
    DRIVES = "drives"
    YEAR = "year"
    MAKE = "make"
    EARLY_ASK_PRICE = "early_ask_price"
    EARLY_OFFER_CONFIRM = "early_offer_350_confirm"
    MODEL = "model"
    MILEAGE = "mileage"
    ASKING_PRICE = "asking_price"
    CITY = "city"
    CITY_CONFIRM = "city_confirm"
    POSTAL = "postal"
    POSTAL_CONFIRM = "postal_confirm"
    CONDITION = "condition"
    AUTO_OFFER_PRESENT = "auto_offer_present"
    AUTO_OFFER_COUNTER = "auto_offer_counter"
    AUTO_OFFER_CAP_CONFIRM = "auto_offer_cap_confirm"
    CALLBACK_BEST_NUMBER = "callback_best_number"
    CALLBACK_NUMBER = "callback_number"
    DONE = "done"


class IntakeStateDef(BaseModel):
    """One state in the intake workflow."""

    id: str
    on_enter: str = ""                     # Prompt spoken when entering
    reprompts: dict[str, str] = {}         # validation code -> corrective prompt
    messages: dict[str, str] = {}          # intent -> spoken before the next prompt
    transitions: dict[str, str] = {}       # intent -> target state or exit:<disposition>
    collection_mode: str = "digits"        # "digits", "speech" or "either"
    num_digits: int | None = None
    finish_on_key: str | None = None
    hints: str = ""                        # "cities" / "makes" -> vocabulary hints


class IntakeWorkflowDef(BaseModel):
    """A complete intake workflow definition."""

    id: str
    initial_state: str = ""
    greeting: str = ""
    error_message: str = ""
    reprompt_limit_message: str = ""
    states: dict[str, IntakeStateDef] = {}
