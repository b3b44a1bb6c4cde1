"""FastAPI application: Twilio webhooks for the vehicle intake line.

Endpoints:

  POST /twilio/voice      Twilio webhook for a new call: greeting + first question
  POST /twilio/collect    Twilio <Gather> action: one caller answer per request
  GET  /health            Health check

The Twilio flow:
  1. Incoming call hits POST /twilio/voice
  2. We return TwiML with a <Gather> whose action is /twilio/collect
  3. Each answer posts Digits / SpeechResult to /twilio/collect
  4. The service advances the call and returns the next <Gather>, or a
     closing <Say> + <Hangup> once the call reaches an outcome
"""

from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
import time
from contextlib import asynccontextmanager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from intake.channels.twilio_channel import parse_inbound, render_twiml, validate_signature
from intake.collaborators.base import LeadSink, LoggingLeadSink
from intake.collaborators.distance_matrix import GoogleDistanceMatrix
from intake.config import Settings, settings as default_settings
from intake.engine import IntakeEngine
from intake.service import IntakeService, TurnResult

log = logging.getLogger("intake.app")

_START_TIME = time.time()

COLLECT_PATH = "/twilio/collect"


def build_service(cfg: Settings) -> IntakeService:
    """Wire the service from settings: engine policy, distance, lead sink."""
    engine = IntakeEngine(
        max_reprompts=cfg.max_reprompts,
        postal_fallback_after=cfg.postal_fallback_after,
        early_offer_enabled=cfg.early_offer_enabled,
    )

    sink: LeadSink = LoggingLeadSink()
    if cfg.lead_sheet_enabled:
        from intake.collaborators.google_sheets import GoogleSheetsLeadSink
        sink = GoogleSheetsLeadSink(
            spreadsheet_id=cfg.google_sheet_id,
            service_account=cfg.google_service_account_json,
            tab=cfg.google_sheet_tab,
        )

    return IntakeService(
        engine=engine,
        distance=GoogleDistanceMatrix(cfg.google_maps_api_key),
        sink=sink,
        yard_postal=cfg.yard_postal,
    )


def create_app(settings: Settings | None = None, service: IntakeService | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    cfg = settings or default_settings
    base_url = cfg.public_base_url.rstrip("/")
    action_url = f"{base_url}{COLLECT_PATH}"
    _service: dict[str, IntakeService] = {}

    def get_service() -> IntakeService:
        if "svc" not in _service:
            _service["svc"] = service or build_service(cfg)
        return _service["svc"]

    async def _evict_loop() -> None:
        while True:
            await asyncio.sleep(cfg.eviction_interval_seconds)
            try:
                get_service().evict_stale(cfg.session_idle_ttl_seconds)
            except Exception:
                log.exception("Session eviction failed")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        for warning in cfg.validate_startup():
            log.warning(warning)
        get_service()
        task = asyncio.create_task(_evict_loop())
        try:
            yield
        finally:
            task.cancel()

    app = FastAPI(
        title="Cash Car BC Intake",
        description="Phone intake and fixed-price offers for vehicles over Twilio",
        version="0.1.0",
        lifespan=lifespan,
    )

    async def _check_signature(request: Request, params: dict[str, str]) -> Response | None:
        """Return an error response when the Twilio signature does not verify."""
        if not cfg.validate_signatures:
            return None

        signature = request.headers.get("x-twilio-signature", "")
        if not signature:
            log.warning("Missing X-Twilio-Signature header")
            return PlainTextResponse("Forbidden", status_code=403)

        if not base_url or not cfg.twilio_auth_token:
            log.error("PUBLIC_BASE_URL or TWILIO_AUTH_TOKEN missing; cannot validate")
            return PlainTextResponse("Server misconfigured", status_code=500)

        # Must match the exact URL configured in the Twilio console
        url = base_url + request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"

        if not validate_signature(cfg.twilio_auth_token, url, params, signature):
            log.warning("Invalid Twilio signature for %s", url)
            return PlainTextResponse("Forbidden", status_code=403)
        return None

    def _twiml(result: TurnResult) -> Response:
        twiml = render_twiml(
            result.outbound,
            action_url=action_url,
            voice=cfg.tts_voice,
            language=cfg.tts_language,
            timeout=cfg.gather_timeout_seconds,
        )
        return Response(content=twiml, media_type="application/xml")

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check, confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({
            "status": "ok",
            "uptime": uptime,
            "active_calls": len(get_service().store),
        })

    # ── Twilio webhooks ────────────────────────────────────────

    @app.post("/twilio/voice")
    async def twilio_voice(request: Request) -> Response:
        """Twilio webhook for incoming calls: greet and ask the first question."""
        params = {k: str(v) for k, v in (await request.form()).items()}
        rejected = await _check_signature(request, params)
        if rejected is not None:
            return rejected

        turn = parse_inbound(params)
        log.info("Twilio voice webhook: call %s", turn.call_id)
        return _twiml(await get_service().start_call(turn))

    @app.post(COLLECT_PATH)
    async def twilio_collect(request: Request) -> Response:
        """Twilio <Gather> action: apply one answer and ask the next question."""
        params = {k: str(v) for k, v in (await request.form()).items()}
        rejected = await _check_signature(request, params)
        if rejected is not None:
            return rejected

        turn = parse_inbound(params)
        return _twiml(await get_service().handle_turn(turn))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("intake.app:app", host=default_settings.host, port=default_settings.port, reload=default_settings.debug)
