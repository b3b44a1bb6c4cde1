"""Step transition engine for the vehicle intake call.

One ``IntakeEngine`` serves every call.  It holds no per-call state: each
turn reads the caller's ``CallState``, runs the handler for the current step
and routes the resulting intent through the workflow definition:

  1. The handler parses the input.  A ``ValidationError`` re-prompts the same
     step with the corrective message for its code; nothing is committed.
  2. Otherwise the handler commits values to the call and returns an intent
     ("committed", "confirmed", "retry", "eligible", "accepted", ...).
  3. The intent is looked up in the state's transitions: either the next step
     (whose prompt is returned) or ``exit:<disposition>`` (terminal).

Collaborator I/O (distance lookup, lead sheet) is performed by the caller of
the engine; ``StepOutcome.lookup_distance`` asks for the lookup and
``record_distance`` applies its result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from intake.collaborators.base import DistanceResult
from intake.models.call import CallState, Disposition, NormalizedValue, OfferStatus, PROPOSAL_STATUSES
from intake.models.turn import InboundTurn, OutboundTurn
from intake.normalize.postal import extract_postal_code
from intake.normalize.reference import normalize_city, normalize_make, normalize_model
from intake.normalize.vocabulary import KNOWN_CITIES, KNOWN_MAKES
from intake.pricing.offers import (
    CapAtMax,
    InvalidDesired,
    evaluate_counter_offer,
    get_initial_offer,
    get_max_offer,
    is_early_premium_eligible,
    is_old_non_drivable_eligible,
    needs_manager_review,
)
from intake.pricing.price_range import calculate_price_range, condition_flags
from intake.validators import (
    ValidationError,
    parse_asking_price,
    parse_callback_number,
    parse_choice,
    parse_desired,
    parse_drives,
    parse_mileage,
    parse_phrase,
    parse_year,
)
from intake.workflows.schema import IntakeStateDef, IntakeWorkflowDef, Step
from intake.workflows.vehicle_intake import WORKFLOW_DEF as _DEFAULT_WORKFLOW

log = logging.getLogger("intake.engine")

_HINTS = {
    "cities": ", ".join(KNOWN_CITIES),
    "makes": ", ".join(KNOWN_MAKES),
}
_CALLBACK_STEPS = (Step.CALLBACK_BEST_NUMBER, Step.CALLBACK_NUMBER)


class EngineError(RuntimeError):
    """The workflow cannot continue (unknown step, missing transition)."""


@dataclass
class StepOutcome:
    outbound: OutboundTurn
    committed: bool = False
    lookup_distance: bool = False
    disposition: Optional[Disposition] = None

    @property
    def terminal(self) -> bool:
        return self.outbound.is_terminal


Handler = Callable[[CallState, InboundTurn], str]


class IntakeEngine:
    """Drives one call's ``CallState`` through the intake workflow.

    Typical use::

        engine = IntakeEngine()
        call = CallState(call_id="CA123")
        greeting = engine.start(call)
        # -> speak greeting, collect input

        outcome = engine.advance(call, InboundTurn(call_id="CA123", digits="2"))
        if outcome.lookup_distance:
            engine.record_distance(call, await distance.driving_distance_km(...))
    """

    def __init__(
        self,
        workflow: IntakeWorkflowDef | None = None,
        *,
        current_year: int | None = None,
        max_reprompts: int = 0,
        postal_fallback_after: int = 2,
        early_offer_enabled: bool = True,
    ) -> None:
        self._workflow = workflow or _DEFAULT_WORKFLOW
        self._current_year = current_year
        self._max_reprompts = max_reprompts
        self._postal_fallback_after = postal_fallback_after
        self._early_offer_enabled = early_offer_enabled

        self._handlers: dict[Step, Handler] = {
            Step.DRIVES: self._on_drives,
            Step.YEAR: self._on_year,
            Step.MAKE: self._on_make,
            Step.EARLY_ASK_PRICE: self._on_early_ask_price,
            Step.EARLY_OFFER_CONFIRM: self._on_early_offer_confirm,
            Step.MODEL: self._on_model,
            Step.MILEAGE: self._on_mileage,
            Step.ASKING_PRICE: self._on_asking_price,
            Step.CITY: self._on_city,
            Step.CITY_CONFIRM: self._on_city_confirm,
            Step.POSTAL: self._on_postal,
            Step.POSTAL_CONFIRM: self._on_postal_confirm,
            Step.CONDITION: self._on_condition,
            Step.AUTO_OFFER_PRESENT: self._on_auto_offer_present,
            Step.AUTO_OFFER_COUNTER: self._on_auto_offer_counter,
            Step.AUTO_OFFER_CAP_CONFIRM: self._on_auto_offer_cap_confirm,
            Step.CALLBACK_BEST_NUMBER: self._on_callback_best_number,
            Step.CALLBACK_NUMBER: self._on_callback_number,
        }

    # ── Public API ────────────────────────────────────────────

    @property
    def workflow(self) -> IntakeWorkflowDef:
        return self._workflow

    @property
    def current_year(self) -> int:
        return self._current_year or datetime.now().year

    def start(self, call: CallState) -> OutboundTurn:
        """Greeting plus the prompt for the call's current step."""
        state = self._get_state(call.step)
        text = _join(self._render(self._workflow.greeting, call), self._render(state.on_enter, call))
        return self._collect(state, text)

    def advance(self, call: CallState, turn: InboundTurn) -> StepOutcome:
        """Apply one caller turn to the call and decide what to say next."""
        handler = self._handlers.get(call.step)
        if handler is None:
            raise EngineError(f"No handler for step {call.step.value!r}")
        state = self._get_state(call.step)

        try:
            intent = handler(call, turn)
        except ValidationError as exc:
            return self._reprompt(call, state, exc)

        call.reprompts.pop(state.id, None)
        outcome = self._resolve_transition(call, state, intent)
        outcome.lookup_distance = state.id == Step.POSTAL_CONFIRM.value and intent == "confirmed"
        return outcome

    def record_distance(self, call: CallState, result: DistanceResult) -> None:
        """Apply a distance lookup made after the postal code was confirmed."""
        if result.ok:
            call.distance_km = result.km
            if call.pricing_rule in ("", "N/A"):
                call.set_rule("PostalDistanceUsed")
        else:
            log.error("Distance lookup failed for %s: %s", call.call_id, result.error)
            call.distance_km = None
            call.set_rule(f"DistanceFailed:{result.error}")

    def apology(self) -> OutboundTurn:
        """Terminal turn for an internal fault."""
        return OutboundTurn(prompt_text=self._workflow.error_message, next_action="terminal")

    # ── Internal: routing ─────────────────────────────────────

    def _get_state(self, step: Step) -> IntakeStateDef:
        state = self._workflow.states.get(step.value)
        if state is None:
            raise EngineError(f"Workflow {self._workflow.id} has no state {step.value!r}")
        return state

    def _resolve_transition(self, call: CallState, state: IntakeStateDef, intent: str) -> StepOutcome:
        target = state.transitions.get(intent)
        if not target:
            raise EngineError(f"No transition for intent {intent!r} from {state.id}")

        message = self._render(state.messages.get(intent, ""), call)

        if target.startswith("exit"):
            _, _, disposition_name = target.partition(":")
            disposition = Disposition(disposition_name or Disposition.QUOTED.value)
            call.step = Step.DONE
            call.disposition = disposition
            log.info("FSM exit from %s via intent '%s' (%s)", state.id, intent, disposition.value)
            return StepOutcome(
                outbound=OutboundTurn(prompt_text=message or "Goodbye.", next_action="terminal"),
                committed=True,
                disposition=disposition,
            )

        try:
            call.step = Step(target)
        except ValueError:
            raise EngineError(f"Unknown target {target!r} from {state.id}") from None
        next_state = self._get_state(call.step)
        log.info("FSM advance: %s → %s (intent: %s)", state.id, target, intent)
        text = _join(message, self._render(next_state.on_enter, call))
        return StepOutcome(outbound=self._collect(next_state, text), committed=True)

    def _reprompt(self, call: CallState, state: IntakeStateDef, exc: ValidationError) -> StepOutcome:
        count = call.reprompts.get(state.id, 0) + 1
        call.reprompts[state.id] = count
        log.info("Re-prompting %s (code=%s, attempt=%d)", state.id, exc.code, count)

        if self._max_reprompts and count > self._max_reprompts:
            return self._escalate_after_reprompts(call, state)

        template = state.reprompts.get(exc.code) or state.on_enter
        return StepOutcome(outbound=self._collect(state, self._render(template, call)))

    def _escalate_after_reprompts(self, call: CallState, state: IntakeStateDef) -> StepOutcome:
        log.warning("Reprompt limit reached in %s for %s", state.id, call.call_id)
        call.set_rule(f"RepromptLimit:{state.id}")
        call.reprompts.clear()
        prefix = self._render(self._workflow.reprompt_limit_message, call)
        callback_state = self._get_state(Step.CALLBACK_BEST_NUMBER)

        if call.step in _CALLBACK_STEPS:
            goodbye = self._render(callback_state.messages.get("confirmed", ""), call)
            call.step = Step.DONE
            call.disposition = Disposition.ESCALATED
            return StepOutcome(
                outbound=OutboundTurn(prompt_text=_join(prefix, goodbye), next_action="terminal"),
                disposition=Disposition.ESCALATED,
            )

        if call.offer.status in PROPOSAL_STATUSES:
            call.offer.escalate()
        call.step = Step.CALLBACK_BEST_NUMBER
        text = _join(prefix, self._render(callback_state.on_enter, call))
        return StepOutcome(outbound=self._collect(callback_state, text))

    def _collect(self, state: IntakeStateDef, text: str) -> OutboundTurn:
        return OutboundTurn(
            prompt_text=text,
            next_action="collect-more",
            collection_mode=state.collection_mode,
            num_digits=state.num_digits,
            finish_on_key=state.finish_on_key,
            hints=_HINTS.get(state.hints, state.hints),
        )

    def _render(self, template: str, call: CallState) -> str:
        """Replace {{placeholder}} patterns with values from the call."""
        if not template or "{{" not in template:
            return template

        distance_phrase = ""
        if call.distance_km is not None:
            distance_phrase = f" about {call.distance_km:g} kilometers away"

        replacements = {
            "{{current_year}}": str(self.current_year),
            "{{year}}": call.year,
            "{{make}}": call.make.value,
            "{{model}}": call.model.value,
            "{{city}}": call.city.value,
            "{{postal}}": call.pickup_postal,
            "{{distance_phrase}}": distance_phrase,
            "{{price_text}}": call.price_range_text,
            "{{offer_initial}}": _text(call.offer.initial),
            "{{offer_proposed}}": _text(call.offer.proposed),
            "{{offer_final}}": _text(call.offer.final),
        }
        for placeholder, value in replacements.items():
            template = template.replace(placeholder, value)
        return template

    # ── Step handlers: vehicle ────────────────────────────────

    def _on_drives(self, call: CallState, turn: InboundTurn) -> str:
        call.drivable = parse_drives(turn.digits)
        return "committed"

    def _on_year(self, call: CallState, turn: InboundTurn) -> str:
        call.year = parse_year(turn.digits, self.current_year)
        return "committed"

    def _on_make(self, call: CallState, turn: InboundTurn) -> str:
        result = normalize_make(parse_phrase(turn.speech))
        call.make = NormalizedValue(raw=result.raw, normalized=result.normalized, score=result.score)

        if self._early_offer_enabled and is_early_premium_eligible(
            call.drivable, call.year, call.make.value,
        ):
            call.set_rule("EarlyToyotaHondaOldNonDrive")
            return "early_offer"
        return "committed"

    def _on_model(self, call: CallState, turn: InboundTurn) -> str:
        raw, normalized = normalize_model(parse_phrase(turn.speech))
        call.model = NormalizedValue(raw=raw, normalized=normalized, score=1.0)
        return "committed"

    def _on_mileage(self, call: CallState, turn: InboundTurn) -> str:
        call.mileage_km = parse_mileage(turn.digits)
        return "committed"

    def _on_asking_price(self, call: CallState, turn: InboundTurn) -> str:
        call.asking_price = parse_asking_price(turn.digits)
        return "committed"

    def _on_condition(self, call: CallState, turn: InboundTurn) -> str:
        call.condition = parse_phrase(turn.speech)
        call.condition_flags = condition_flags(call.condition)

        if is_old_non_drivable_eligible(call.drivable, call.year):
            call.offer.eligible = True
            call.offer.initial = get_initial_offer(call.year)
            return "eligible"

        price = calculate_price_range(
            drivable=bool(call.drivable),
            year=call.year,
            location=call.city.value,
            distance_km=call.distance_km,
        )
        call.price_range_text = price.text
        return "quoted"

    # ── Step handlers: location ───────────────────────────────

    def _on_city(self, call: CallState, turn: InboundTurn) -> str:
        result = normalize_city(parse_phrase(turn.speech))
        call.city = NormalizedValue(raw=result.raw, normalized=result.normalized, score=result.score)
        return "committed"

    def _on_city_confirm(self, call: CallState, turn: InboundTurn) -> str:
        if parse_choice(turn.digits, turn.speech):
            return "confirmed"
        call.city = NormalizedValue()
        return "retry"

    def _on_postal(self, call: CallState, turn: InboundTurn) -> str:
        result = extract_postal_code(turn.speech)
        if result.ok:
            call.pickup_postal = result.postal if result.confidence == "high" else result.fsa
            call.postal_confidence = result.confidence
            call.postal_attempts = 0
            return "committed"

        call.postal_attempts += 1
        if self._postal_fallback_after and call.postal_attempts >= self._postal_fallback_after:
            log.info("Postal code not understood after %d attempts; using city only", call.postal_attempts)
            call.pickup_postal = ""
            call.postal_confidence = ""
            call.set_rule("PostalSkipped")
            return "skipped"
        raise ValidationError("invalid", f"no postal code in {turn.speech!r}")

    def _on_postal_confirm(self, call: CallState, turn: InboundTurn) -> str:
        if parse_choice(turn.digits, turn.speech):
            return "confirmed"
        call.pickup_postal = ""
        call.postal_confidence = ""
        return "retry"

    # ── Step handlers: fixed-price offer ──────────────────────

    def _on_early_ask_price(self, call: CallState, turn: InboundTurn) -> str:
        desired = parse_desired(turn.digits, turn.speech)
        call.offer.desired_price = desired
        call.offer.eligible = True

        if desired < get_initial_offer(call.year):
            call.offer.accept(desired, OfferStatus.ACCEPTED_BELOW_300)
            call.set_rule("EarlyAcceptedBelow300")
            return "accepted"

        call.offer.propose(get_max_offer(call.make.value), OfferStatus.OFFERED_350)
        call.set_rule("EarlyOffer350")
        return "offered"

    def _on_early_offer_confirm(self, call: CallState, turn: InboundTurn) -> str:
        if parse_choice(turn.digits, turn.speech):
            call.offer.accept(call.offer.proposed, OfferStatus.ACCEPTED_350)
            call.set_rule("EarlyAccepted350")
            return "accepted"
        call.offer.escalate()
        call.set_rule("EarlyRejected350")
        return "rejected"

    def _on_auto_offer_present(self, call: CallState, turn: InboundTurn) -> str:
        if parse_choice(turn.digits, turn.speech):
            call.offer.accept(call.offer.initial, OfferStatus.ACCEPTED_300)
            call.set_rule("AutoOfferAccepted")
            return "accepted"
        return "counter"

    def _on_auto_offer_counter(self, call: CallState, turn: InboundTurn) -> str:
        desired = parse_desired(turn.digits, turn.speech)
        decision = evaluate_counter_offer(call.make.value, desired)
        if isinstance(decision, InvalidDesired):
            raise ValidationError("invalid", decision.message)

        call.offer.desired_price = desired
        log.info("Counter offer for %s: %s", call.call_id, decision.message)

        if isinstance(decision, CapAtMax):
            call.offer.propose(decision.final_offer, OfferStatus.COUNTERED_AT_MAX)
            call.set_rule("AutoOfferCappedToMax")
            return "capped"

        call.offer.accept(decision.final_offer, OfferStatus.ACCEPTED_COUNTER)
        call.set_rule("AutoOfferCounterAccepted")
        return "accepted"

    def _on_auto_offer_cap_confirm(self, call: CallState, turn: InboundTurn) -> str:
        accepted = parse_choice(turn.digits, turn.speech)
        if needs_manager_review(accepted_final=accepted):
            call.offer.escalate()
            call.set_rule("AutoOfferRejectedFinal")
            return "rejected"
        call.offer.accept(call.offer.proposed, OfferStatus.ACCEPTED_MAX)
        call.set_rule("AutoOfferMaxAccepted")
        return "accepted"

    # ── Step handlers: callback ───────────────────────────────

    def _on_callback_best_number(self, call: CallState, turn: InboundTurn) -> str:
        if parse_choice(turn.digits, turn.speech):
            call.callback.use_same_number = True
            call.callback.number = ""
            return "confirmed"
        call.callback.use_same_number = False
        return "different"

    def _on_callback_number(self, call: CallState, turn: InboundTurn) -> str:
        call.callback.number = parse_callback_number(turn.digits)
        return "committed"


def _join(*parts: str) -> str:
    return " ".join(p.strip() for p in parts if p and p.strip())


def _text(value: object) -> str:
    return "" if value is None else str(value)
