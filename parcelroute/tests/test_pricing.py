"""
Test tier parsing and the tier pricing engine.
"""

import math
import random

from ..errors import ConfigurationError, ValidationError
from ..i18n import get_localizer
from ..models.pricing import PricingPolicy, PricingTier
from ..processing.pricing import TierPricingEngine, parse_range, validate_tiers
from .helpers import STANDARD_TIERS


def _engine() -> TierPricingEngine:
    return TierPricingEngine(localizer=get_localizer("en"), currency="RUB")


def _tiers(*pairs) -> list[PricingTier]:
    return [PricingTier(range=r, price=p) for r, p in pairs]


def test_parse_range():
    """Test the accepted range notations."""
    print("\n=== Testing Range Parsing ===")

    assert parse_range("0-3") == (0, 3)
    assert parse_range("0-3 km") == (0, 3)
    assert parse_range(" 1 - 2 ") == (1, 2)
    assert parse_range("2,5-4 км") == (2.5, 4)
    assert parse_range("5") == (5, 5)
    assert parse_range("10+") == (10, math.inf)
    assert parse_range("10+ km").max == math.inf

    print("✓ Range notations parse")


def test_parse_range_malformed():
    for text in ["", "abc", "5-3", "-", "1-2-3", "+10", "3..5"]:
        try:
            parse_range(text)
        except ConfigurationError as e:
            assert e.code == "invalid_tier_range"
            assert e.params["range"] == text
        else:
            raise AssertionError(f"parse_range({text!r}) did not raise")

    print("✓ Malformed ranges rejected")


def test_price_in_middle_tier():
    """4.2 km with the standard tiers costs 20."""
    print("\n=== Testing Tier Match ===")

    result = _engine().price(4.2, STANDARD_TIERS)
    assert result.price == 20
    assert result.distance_km == 4.2
    assert result.tier.range == "3-5"
    assert result.policy == PricingPolicy.MATCHED
    assert "3-5" in result.explanation
    assert "4.20" in result.explanation

    print(f"✓ {result.explanation}")


def test_price_open_ended_tier():
    """12 km lands in "10+" and the text says it exceeds 10 km."""
    result = _engine().price(12.0, STANDARD_TIERS)
    assert result.price == 50
    assert result.tier.range == "10+"
    assert result.policy == PricingPolicy.MATCHED
    assert "exceeds 10 km" in result.explanation

    print(f"✓ {result.explanation}")


def test_price_exactly_at_open_tier_start():
    # 10 km is in both "5-10" and "10+": lower bound order makes "5-10" win
    result = _engine().price(10.0, STANDARD_TIERS)
    assert result.price == 30
    assert result.tier.range == "5-10"


def test_boundary_goes_to_lower_tier():
    result = _engine().price(3.0, STANDARD_TIERS)
    assert result.price == 10
    assert result.tier.range == "0-3"


def test_overflow_bounded_tiers():
    """Past every bounded tier the highest tier applies."""
    result = _engine().price(7.0, _tiers(("0-3", 10), ("3-5", 20)))
    assert result.price == 20
    assert result.tier.range == "3-5"
    assert result.policy == PricingPolicy.OVERFLOW
    assert "exceeds the maximum tier" in result.explanation

    print("✓ Overflow applies highest tier")


def test_gap_between_tiers():
    tiers = _tiers(("0-3", 10), ("5-10", 30))
    result = _engine().price(4.0, tiers)
    assert result.price == 30
    assert result.policy == PricingPolicy.GAP
    assert "matches no tier" in result.explanation

    below = _engine().price(1.0, _tiers(("2-5", 15), ("5-8", 25)))
    assert below.price == 25
    assert below.policy == PricingPolicy.GAP

    print("✓ Gaps apply highest tier")


def test_no_tiers():
    result = _engine().price(5.0, [])
    assert result.price == 0
    assert result.tier is None
    assert result.policy == PricingPolicy.NO_TIERS
    assert result.explanation == "No applicable pricing tier was found for this distance."


def test_rounding_before_matching():
    """Matching uses the 2-decimal distance that is displayed."""
    low = _engine().price(3.004, STANDARD_TIERS)
    assert low.distance_km == 3.0
    assert low.price == 10

    high = _engine().price(3.006, STANDARD_TIERS)
    assert high.distance_km == 3.01
    assert high.price == 20

    print("✓ Rounding precedes matching")


def test_unsorted_tiers():
    shuffled = list(reversed(STANDARD_TIERS))
    for distance in (0.5, 3.0, 4.2, 7.5, 10.0, 25.0):
        assert _engine().price(distance, shuffled).price == _engine().price(distance, STANDARD_TIERS).price


def test_overlapping_tiers_first_match_wins():
    tiers = _tiers(("0-5", 10), ("3-8", 20))
    assert _engine().price(4.0, tiers).price == 10
    assert _engine().price(6.0, tiers).price == 20


def test_equal_lower_bounds_keep_definition_order():
    tiers = _tiers(("0-5", 10), ("0-3", 99))
    assert _engine().price(2.0, tiers).price == 10


def test_invalid_distance():
    for distance in (-0.1, math.nan, math.inf, None):
        try:
            _engine().price(distance, STANDARD_TIERS)
        except ValidationError as e:
            assert e.code == "invalid_distance"
        else:
            raise AssertionError(f"price({distance!r}) did not raise")

    print("✓ Invalid distances rejected")


def test_malformed_tier_raises():
    try:
        _engine().price(1.0, _tiers(("0-3", 10), ("three-five", 20)))
    except ConfigurationError as e:
        assert e.code == "invalid_tier_range"
    else:
        raise AssertionError("malformed tier was accepted")


def test_every_distance_gets_a_configured_price():
    rng = random.Random(7)
    tier_sets = [
        STANDARD_TIERS,
        _tiers(("0-3", 10), ("3-5", 20)),
        _tiers(("1-2", 5), ("4-6", 15), ("9", 40)),
        _tiers(("0-5", 10), ("3-8", 20), ("20+", 90)),
    ]
    for tiers in tier_sets:
        prices = {t.price for t in tiers}
        for _ in range(200):
            result = _engine().price(rng.uniform(0, 60), tiers)
            assert result.price in prices
            assert result.explanation

    print("✓ Pricing is total over non-negative distances")


def test_default_russian_explanation():
    result = TierPricingEngine().price(4.2, STANDARD_TIERS)
    assert "соответствует тарифу" in result.explanation
    assert "руб." in result.explanation


def test_validate_tiers_warnings():
    """Overlaps warn; touching ends do not."""
    print("\n=== Testing Tier Validation ===")

    assert validate_tiers(STANDARD_TIERS) == []
    warnings = validate_tiers(_tiers(("0-5", 10), ("3-8", 20)))
    assert len(warnings) == 1
    assert '"3-8"' in warnings[0] and '"0-5"' in warnings[0]

    # Each tier inside a wide one is reported against the wide one
    nested = validate_tiers(_tiers(("0-100", 10), ("10-20", 20), ("30-40", 30)))
    assert len(nested) == 2

    try:
        validate_tiers(_tiers(("0-3", 10), ("oops", 20)))
    except ConfigurationError:
        pass
    else:
        raise AssertionError("malformed tier passed validation")

    print("✓ Tier validation reports overlaps")


def run_all_tests():
    """Run all pricing tests."""
    print("\n" + "=" * 60)
    print("TIER PRICING - TEST SUITE")
    print("=" * 60)

    test_parse_range()
    test_parse_range_malformed()
    test_price_in_middle_tier()
    test_price_open_ended_tier()
    test_price_exactly_at_open_tier_start()
    test_boundary_goes_to_lower_tier()
    test_overflow_bounded_tiers()
    test_gap_between_tiers()
    test_no_tiers()
    test_rounding_before_matching()
    test_unsorted_tiers()
    test_overlapping_tiers_first_match_wins()
    test_equal_lower_bounds_keep_definition_order()
    test_invalid_distance()
    test_malformed_tier_raises()
    test_every_distance_gets_a_configured_price()
    test_default_russian_explanation()
    test_validate_tiers_warnings()

    print("\n" + "=" * 60)
    print("✅ ALL PRICING TESTS PASSED!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()
