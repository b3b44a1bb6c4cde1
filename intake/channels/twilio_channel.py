"""Twilio Programmable Voice adapter: webhook form in, TwiML out.

Each caller response arrives as an ``application/x-www-form-urlencoded`` POST
from a ``<Gather>``:

  CallSid=CA...&From=+1604...&To=+1778...&Digits=1&SpeechResult=Toyota

and the reply is a TwiML document that either gathers the next answer or
says goodbye and hangs up:

  <Response>
    <Gather input="dtmf speech" action=".../twilio/collect" method="POST" ...>
      <Say voice="Polly.Matthew-Neural" language="en-CA">prompt</Say>
    </Gather>
    <Say ...>Sorry, I did not get that.</Say>
    <Redirect method="POST">.../twilio/collect</Redirect>
  </Response>
"""

from __future__ import annotations

import logging
import re
import time
from typing import Mapping
from xml.etree.ElementTree import Element, SubElement, tostring

from twilio.request_validator import RequestValidator

from intake.models.turn import InboundTurn, OutboundTurn

log = logging.getLogger("intake.channels.twilio")

NO_INPUT_MESSAGE = "Sorry, I did not get that."

_GATHER_INPUT = {
    "digits": "dtmf",
    "speech": "speech",
    "either": "dtmf speech",
}
_NON_DIGIT = re.compile(r"[^0-9]")


def parse_inbound(form: Mapping[str, str]) -> InboundTurn:
    """Build an InboundTurn from Twilio's webhook parameters."""
    call_id = (form.get("CallSid") or "").strip()
    if not call_id:
        call_id = f"no-callsid-{int(time.time() * 1000)}"
        log.warning("Webhook without CallSid; using %s", call_id)

    return InboundTurn(
        call_id=call_id,
        callee_number=(form.get("To") or "").strip(),
        caller_number=(form.get("From") or "").strip(),
        speech=(form.get("SpeechResult") or "").strip(),
        # Digits may carry the finishOnKey character or spaces
        digits=_NON_DIGIT.sub("", form.get("Digits") or ""),
    )


def _say(parent: Element, text: str, voice: str, language: str) -> Element:
    say_el = SubElement(parent, "Say")
    say_el.set("voice", voice)
    say_el.set("language", language)
    say_el.text = text
    return say_el


def render_twiml(
    outbound: OutboundTurn,
    action_url: str,
    voice: str = "Polly.Matthew-Neural",
    language: str = "en-CA",
    timeout: int = 12,
) -> str:
    """Render an OutboundTurn as a TwiML document."""
    response_el = Element("Response")

    if outbound.is_terminal:
        _say(response_el, outbound.prompt_text, voice, language)
        SubElement(response_el, "Hangup")
    else:
        gather_el = SubElement(response_el, "Gather")
        gather_el.set("input", _GATHER_INPUT.get(outbound.collection_mode, "dtmf speech"))
        gather_el.set("action", action_url)
        gather_el.set("method", "POST")
        gather_el.set("timeout", str(timeout))
        gather_el.set("speechTimeout", "auto")
        gather_el.set("language", language)
        if outbound.hints:
            gather_el.set("hints", outbound.hints)
        if outbound.num_digits:
            gather_el.set("numDigits", str(outbound.num_digits))
        if outbound.finish_on_key:
            gather_el.set("finishOnKey", outbound.finish_on_key)
        _say(gather_el, outbound.prompt_text, voice, language)

        # Only reached when the Gather captured nothing
        _say(response_el, NO_INPUT_MESSAGE, voice, language)
        redirect_el = SubElement(response_el, "Redirect")
        redirect_el.set("method", "POST")
        redirect_el.text = action_url

    return tostring(response_el, encoding="unicode", xml_declaration=True)


def validate_signature(
    auth_token: str, url: str, params: Mapping[str, str], signature: str,
) -> bool:
    """Check X-Twilio-Signature against the exact URL Twilio called."""
    if not signature:
        return False
    return RequestValidator(auth_token).validate(url, dict(params), signature)
