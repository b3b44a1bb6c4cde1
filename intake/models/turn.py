"""Transport-neutral inbound and outbound conversation turns."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

CollectionMode = Literal["digits", "speech", "either"]
NextAction = Literal["collect-more", "terminal"]


class InboundTurn(BaseModel):
    """One caller response: keypad digits and/or recognized speech."""

    call_id: str
    callee_number: str = ""
    caller_number: str = ""
    speech: str = ""
    digits: str = ""


class OutboundTurn(BaseModel):
    """What to say next and how to listen for the answer."""

    prompt_text: str
    next_action: NextAction = "collect-more"
    collection_mode: CollectionMode = "digits"
    num_digits: Optional[int] = None
    finish_on_key: Optional[str] = None
    hints: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.next_action == "terminal"
