"""Tests for the Twilio webhook adapter: form parsing, TwiML, signatures."""

from xml.etree.ElementTree import fromstring

from twilio.request_validator import RequestValidator

from intake.channels.twilio_channel import parse_inbound, render_twiml, validate_signature
from intake.models import OutboundTurn

ACTION = "https://example.test/twilio/collect"


class TestParseInbound:
    def test_fields(self):
        turn = parse_inbound({
            "CallSid": "CA123",
            "From": "+16045551234",
            "To": "+17785550000",
            "SpeechResult": "  Toyota ",
            "Digits": "1 #",
        })
        assert turn.call_id == "CA123"
        assert turn.caller_number == "+16045551234"
        assert turn.callee_number == "+17785550000"
        assert turn.speech == "Toyota"
        assert turn.digits == "1"

    def test_missing_call_sid(self):
        turn = parse_inbound({"Digits": "2"})
        assert turn.call_id.startswith("no-callsid-")
        assert turn.speech == ""


class TestRenderTwiml:
    def test_gather_for_digits(self):
        outbound = OutboundTurn(prompt_text="Enter the year.", collection_mode="digits", num_digits=4)
        root = fromstring(render_twiml(outbound, ACTION))
        assert root.tag == "Response"

        gather = root.find("Gather")
        assert gather.get("input") == "dtmf"
        assert gather.get("action") == ACTION
        assert gather.get("method") == "POST"
        assert gather.get("timeout") == "12"
        assert gather.get("speechTimeout") == "auto"
        assert gather.get("language") == "en-CA"
        assert gather.get("numDigits") == "4"
        assert gather.get("finishOnKey") is None
        assert gather.get("hints") is None

        say = gather.find("Say")
        assert say.text == "Enter the year."
        assert say.get("voice") == "Polly.Matthew-Neural"

    def test_no_input_fallback(self):
        outbound = OutboundTurn(prompt_text="Say the city.", collection_mode="speech", hints="Surrey, Delta")
        root = fromstring(render_twiml(outbound, ACTION))
        children = [child.tag for child in root]
        assert children == ["Gather", "Say", "Redirect"]
        assert root.find("Gather").get("input") == "speech"
        assert root.find("Gather").get("hints") == "Surrey, Delta"
        assert root.find("Say").text == "Sorry, I did not get that."
        assert root.find("Redirect").text == ACTION
        assert root.find("Redirect").get("method") == "POST"

    def test_either_mode_and_finish_key(self):
        outbound = OutboundTurn(prompt_text="Price?", collection_mode="either", finish_on_key="#")
        gather = fromstring(render_twiml(outbound, ACTION)).find("Gather")
        assert gather.get("input") == "dtmf speech"
        assert gather.get("finishOnKey") == "#"

    def test_terminal_hangs_up(self):
        outbound = OutboundTurn(prompt_text="Goodbye.", next_action="terminal")
        root = fromstring(render_twiml(outbound, ACTION, voice="Polly.Joanna", language="en-US"))
        assert [child.tag for child in root] == ["Say", "Hangup"]
        assert root.find("Say").text == "Goodbye."
        assert root.find("Say").get("voice") == "Polly.Joanna"

    def test_custom_timeout(self):
        outbound = OutboundTurn(prompt_text="Hi")
        gather = fromstring(render_twiml(outbound, ACTION, timeout=7)).find("Gather")
        assert gather.get("timeout") == "7"

    def test_escapes_text(self):
        outbound = OutboundTurn(prompt_text="Fish & chips <3", next_action="terminal")
        assert fromstring(render_twiml(outbound, ACTION)).find("Say").text == "Fish & chips <3"


class TestValidateSignature:
    URL = "https://example.test/twilio/voice"
    PARAMS = {"CallSid": "CA1", "From": "+16045551234"}

    def test_valid(self):
        signature = RequestValidator("secret").compute_signature(self.URL, self.PARAMS)
        assert validate_signature("secret", self.URL, self.PARAMS, signature) is True

    def test_wrong_token(self):
        signature = RequestValidator("other").compute_signature(self.URL, self.PARAMS)
        assert validate_signature("secret", self.URL, self.PARAMS, signature) is False

    def test_tampered_params(self):
        signature = RequestValidator("secret").compute_signature(self.URL, self.PARAMS)
        tampered = {**self.PARAMS, "Digits": "1"}
        assert validate_signature("secret", self.URL, tampered, signature) is False

    def test_missing(self):
        assert validate_signature("secret", self.URL, self.PARAMS, "") is False
