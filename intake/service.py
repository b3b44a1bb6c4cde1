"""Per-call coordinator: session lock, engine, collaborators, cleanup.

The HTTP layer hands every webhook to ``IntakeService``.  It looks up (or
creates) the call under its lock, lets the engine decide the next turn,
performs any distance lookup the engine asks for, writes the lead when the
call ends and drops the session.  Nothing here raises to the caller: an
unexpected error becomes a spoken apology and a terminal turn.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from intake.collaborators.base import DistanceLookup, DistanceResult, LeadSink, LoggingLeadSink
from intake.engine import IntakeEngine
from intake.models.call import CallState, Disposition
from intake.models.turn import InboundTurn, OutboundTurn
from intake.session import InMemorySessionStore, SessionStore, redact_pii

log = logging.getLogger("intake.service")


@dataclass
class TurnResult:
    outbound: OutboundTurn
    disposition: Optional[Disposition] = None

    @property
    def terminal(self) -> bool:
        return self.outbound.is_terminal


class IntakeService:
    """Runs intake calls end to end against pluggable collaborators."""

    def __init__(
        self,
        store: SessionStore | None = None,
        engine: IntakeEngine | None = None,
        distance: DistanceLookup | None = None,
        sink: LeadSink | None = None,
        yard_postal: str = "V6V 1M7",
    ) -> None:
        self._store = store if store is not None else InMemorySessionStore()
        self._engine = engine or IntakeEngine()
        self._distance = distance
        self._sink = sink or LoggingLeadSink()
        self._yard_postal = yard_postal

    @property
    def store(self) -> SessionStore:
        return self._store

    @property
    def engine(self) -> IntakeEngine:
        return self._engine

    def _factory(self, turn: InboundTurn):
        def create() -> CallState:
            return CallState(
                call_id=turn.call_id,
                caller_number=turn.caller_number,
                callee_number=turn.callee_number,
            )
        return create

    async def start_call(self, turn: InboundTurn) -> TurnResult:
        """Greeting for a newly connected call."""
        try:
            async with self._store.session(turn.call_id, self._factory(turn)) as call:
                log.info(
                    "Call started: %s from=%s step=%s",
                    call.call_id, redact_pii(call.caller_number), call.step.value,
                )
                return TurnResult(outbound=self._engine.start(call))
        except Exception:
            log.exception("Failed to start call %s", turn.call_id)
            return self._fail(turn.call_id)

    async def handle_turn(self, turn: InboundTurn) -> TurnResult:
        """Apply one caller response and return what to say next."""
        try:
            async with self._store.session(turn.call_id, self._factory(turn)) as call:
                outcome = self._engine.advance(call, turn)

                if outcome.lookup_distance:
                    await self._lookup_distance(call)

                if outcome.terminal:
                    await self._write_lead(call)
                    self._store.delete(call.call_id)
                    log.info(
                        "Call finished: %s disposition=%s rule=%s",
                        call.call_id,
                        call.disposition.value if call.disposition else "",
                        call.pricing_rule,
                    )
                return TurnResult(outbound=outcome.outbound, disposition=outcome.disposition)
        except Exception:
            log.exception("Internal fault handling turn for %s", turn.call_id)
            return self._fail(turn.call_id)

    def evict_stale(self, max_idle_seconds: float) -> int:
        return self._store.evict_stale(max_idle_seconds)

    # ── Internal ──────────────────────────────────────────────

    def _fail(self, call_id: str) -> TurnResult:
        self._store.delete(call_id)
        return TurnResult(outbound=self._engine.apology(), disposition=Disposition.ERROR)

    async def _lookup_distance(self, call: CallState) -> None:
        if self._distance is None:
            result = DistanceResult(ok=False, error="No distance service configured")
        else:
            try:
                result = await self._distance.driving_distance_km(self._yard_postal, call.pickup_postal)
            except Exception as exc:
                log.exception("Distance lookup raised for %s", call.call_id)
                result = DistanceResult(ok=False, error=type(exc).__name__)
        self._engine.record_distance(call, result)

    async def _write_lead(self, call: CallState) -> None:
        try:
            await self._sink.write_lead(call.to_lead_record())
        except Exception:
            log.exception("Lead sink failed for %s", call.call_id)
