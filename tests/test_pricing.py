"""Tests for the rough price range and the fixed-price offer rules."""

from intake.pricing import (
    AcceptDesired,
    CapAtMax,
    InvalidDesired,
    OfferDecisionKind,
    calculate_price_range,
    condition_flags,
    evaluate_counter_offer,
    get_initial_offer,
    get_max_offer,
    is_early_premium_eligible,
    is_old_non_drivable_eligible,
    needs_manager_review,
    parse_desired_price,
)


class TestPriceRange:
    def test_drivable_recent(self):
        price = calculate_price_range(True, "2016", "Surrey", None)
        assert (price.min, price.max) == (400, 800)

    def test_non_drivable_old(self):
        price = calculate_price_range(False, "1999", "", None)
        assert (price.min, price.max) == (120, 350)

    def test_mid_year_band(self):
        price = calculate_price_range(True, "2010", "Surrey", None)
        assert (price.min, price.max) == (350, 750)

    def test_short_distance_and_close_in_city(self):
        price = calculate_price_range(True, "2010", "Burnaby", 10)
        assert (price.min, price.max) == (365, 765)

    def test_fifteen_km_is_short(self):
        price = calculate_price_range(True, "2000", "", 15)
        assert (price.min, price.max) == (325, 725)

    def test_middle_distance_no_change(self):
        price = calculate_price_range(True, "2000", "", 30)
        assert (price.min, price.max) == (300, 700)

    def test_long_distance(self):
        price = calculate_price_range(True, "2000", "", 50)
        assert (price.min, price.max) == (250, 650)

    def test_floor_clamp(self):
        price = calculate_price_range(False, "1999", "Vancouver", 100)
        assert (price.min, price.max) == (50, 190)

    def test_spread_always_at_least_fifty(self):
        for drivable in (True, False):
            for distance in (None, 5, 30, 60, 500):
                price = calculate_price_range(drivable, "1980", "Vancouver", distance)
                assert price.min >= 50
                assert price.max >= price.min + 50

    def test_unparseable_year_ignored(self):
        price = calculate_price_range(True, "abc", "", None)
        assert (price.min, price.max) == (300, 700)

    def test_text(self):
        assert calculate_price_range(True, "2016", "Surrey", None).text == "$400 to $800"


class TestConditionFlags:
    def test_keywords_in_stable_order(self):
        assert condition_flags("Engine blew, some RUST") == ["engine", "rust"]

    def test_none(self):
        assert condition_flags(None) == []


class TestEligibility:
    def test_old_non_drivable(self):
        assert is_old_non_drivable_eligible(False, "2001") is True
        assert is_old_non_drivable_eligible(False, 1985) is True

    def test_too_new(self):
        assert is_old_non_drivable_eligible(False, "2002") is False

    def test_drivable_or_unknown(self):
        assert is_old_non_drivable_eligible(True, "1990") is False
        assert is_old_non_drivable_eligible(None, "1990") is False
        assert is_old_non_drivable_eligible(False, "") is False

    def test_early_premium_needs_whole_word(self):
        assert is_early_premium_eligible(False, "1999", "Toyota") is True
        assert is_early_premium_eligible(False, "1999", "HONDA civic") is True
        assert is_early_premium_eligible(False, "1999", "Hondaish") is False
        assert is_early_premium_eligible(False, "1999", "Ford") is False
        assert is_early_premium_eligible(True, "1999", "Toyota") is False


class TestOfferAmounts:
    def test_initial_offer_is_flat(self):
        assert get_initial_offer() == 300
        assert get_initial_offer("1990") == 300

    def test_cap_by_make(self):
        assert get_max_offer("Toyota") == 350
        assert get_max_offer(" honda ") == 350
        assert get_max_offer("Ford") == 300
        assert get_max_offer(None) == 300

    def test_cap_uses_substring(self):
        assert get_max_offer("Hondaish") == 350


class TestParseDesiredPrice:
    def test_thousands_separator(self):
        assert parse_desired_price("$1,200") == 1200

    def test_digits_in_speech(self):
        assert parse_desired_price("about 450 dollars") == 450

    def test_single_digit_rejected(self):
        assert parse_desired_price("5") is None

    def test_zero_rejected(self):
        assert parse_desired_price("00") is None

    def test_none(self):
        assert parse_desired_price(None) is None


class TestEvaluateCounterOffer:
    def test_above_premium_cap(self):
        decision = evaluate_counter_offer("Toyota", "400")
        assert isinstance(decision, CapAtMax)
        assert decision.decision == OfferDecisionKind.CAP_AT_MAX
        assert decision.final_offer == 350
        assert decision.accepted is False

    def test_at_cap_is_accepted(self):
        decision = evaluate_counter_offer("Toyota", "350")
        assert isinstance(decision, AcceptDesired)
        assert decision.final_offer == 350
        assert decision.accepted is True

    def test_one_over_default_cap(self):
        decision = evaluate_counter_offer("Ford", "301")
        assert isinstance(decision, CapAtMax)
        assert decision.final_offer == 300
        assert "$301" in decision.message

    def test_below_cap(self):
        decision = evaluate_counter_offer("Ford", 250)
        assert isinstance(decision, AcceptDesired)
        assert decision.final_offer == 250

    def test_invalid(self):
        for desired in ("abc", "5", None, 5):
            decision = evaluate_counter_offer("Ford", desired)
            assert isinstance(decision, InvalidDesired)
            assert decision.decision == OfferDecisionKind.INVALID_DESIRED
            assert decision.final_offer is None
            assert decision.max_offer == 300


class TestManagerReview:
    def test_only_explicit_rejection(self):
        assert needs_manager_review(False) is True
        assert needs_manager_review(True) is False
        assert needs_manager_review(None) is False
