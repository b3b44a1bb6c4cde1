"""Tests for the call state model and its lead record."""

import pytest

from intake.models import (
    LEAD_COLUMNS,
    CallState,
    Disposition,
    NormalizedValue,
    OfferState,
    OfferStateError,
    OfferStatus,
)
from intake.workflows import Step


class TestNormalizedValue:
    def test_value_prefers_normalized(self):
        assert NormalizedValue(raw="surry", normalized="Surrey").value == "Surrey"

    def test_value_falls_back_to_raw(self):
        assert NormalizedValue(raw="Kelowna").value == "Kelowna"


class TestOfferState:
    def test_propose_then_accept(self):
        offer = OfferState(eligible=True, initial=300)
        offer.propose(350, OfferStatus.COUNTERED_AT_MAX)
        assert offer.final is None
        offer.accept(350, OfferStatus.ACCEPTED_MAX)
        assert offer.final == 350
        assert offer.is_settled

    def test_accepted_offer_is_final(self):
        offer = OfferState()
        offer.accept(300, OfferStatus.ACCEPTED_300)
        with pytest.raises(OfferStateError):
            offer.propose(350, OfferStatus.COUNTERED_AT_MAX)
        with pytest.raises(OfferStateError):
            offer.escalate()

    def test_escalated_offer_is_final(self):
        offer = OfferState()
        offer.escalate()
        assert offer.status == OfferStatus.MANAGER_REVIEW
        with pytest.raises(OfferStateError):
            offer.accept(300, OfferStatus.ACCEPTED_300)

    def test_wrong_status_kind(self):
        offer = OfferState()
        with pytest.raises(ValueError):
            offer.propose(300, OfferStatus.ACCEPTED_300)
        with pytest.raises(ValueError):
            offer.accept(300, OfferStatus.OFFERED_350)


class TestCallState:
    def test_defaults(self):
        call = CallState(call_id="CA1")
        assert call.step == Step.DRIVES
        assert call.pricing_rule == "N/A"
        assert call.is_done is False
        assert call.reprompts == {}

    def test_mutable_defaults_not_shared(self):
        a = CallState(call_id="A")
        b = CallState(call_id="B")
        a.reprompts["year"] = 1
        a.condition_flags.append("rust")
        assert b.reprompts == {}
        assert b.condition_flags == []


class TestLeadRecord:
    def _call(self, **kwargs):
        defaults = dict(
            call_id="CA1",
            caller_number="+16045551234",
            callee_number="+17785550000",
            drivable=False,
            year="1999",
            make=NormalizedValue(raw="toyota", normalized="Toyota", score=1.0),
            model=NormalizedValue(raw="corolla", normalized="Corolla", score=1.0),
            city=NormalizedValue(raw="surry", normalized="Surrey", score=0.833),
            condition="engine issue",
            condition_flags=["engine"],
        )
        defaults.update(kwargs)
        return CallState(**defaults)

    def test_columns_in_order(self):
        record = self._call().to_lead_record()
        assert list(record) == LEAD_COLUMNS
        assert all(isinstance(v, str) for v in record.values())

    def test_vehicle_and_city_fields(self):
        record = self._call().to_lead_record()
        assert record["drives"] == "No"
        assert record["make"] == "Toyota"
        assert record["city"] == "Surrey"
        assert record["city_raw"] == "surry"
        assert record["city_score"] == "0.833"
        assert "CallId=CA1" in record["notes"]
        assert "Flags=engine" in record["notes"]

    def test_drives_column(self):
        assert self._call(drivable=True).to_lead_record()["drives"] == "Yes"
        assert self._call(drivable=None).to_lead_record()["drives"] == ""

    def test_price_given_final(self):
        call = self._call()
        call.offer.accept(300, OfferStatus.ACCEPTED_300)
        call.disposition = Disposition.ACCEPTED
        record = call.to_lead_record()
        assert record["price_given"] == "$300"
        assert record["offer_final"] == "300"
        assert record["offer_status"] == "ACCEPTED_300"
        assert record["disposition"] == "accepted"

    def test_price_given_unaccepted_proposal(self):
        call = self._call()
        call.offer.propose(350, OfferStatus.COUNTERED_AT_MAX)
        call.offer.escalate()
        record = call.to_lead_record()
        assert record["price_given"] == "$350 (not accepted)"
        assert record["offer_final"] == ""
        assert record["offer_status"] == "MANAGER_REVIEW"

    def test_price_given_quote(self):
        record = self._call(price_range_text="$120 to $350").to_lead_record()
        assert record["price_given"] == "$120 to $350"
