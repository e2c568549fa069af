"""Tests for market reweighting and band deltas on sector multiples."""

from decimal import Decimal

import pytest

from smevaluator.domain.models.sector import MultipleRange
from smevaluator.domain.services.valuation.multiple_adjuster import (
    MARKET_REWEIGHTED,
    MARKET_SAMPLE_TOO_SMALL,
    MULTIPLE_CLAMPED,
    MultipleAdjuster,
)

EBITDA_RANGE = MultipleRange(min=Decimal("4"), max=Decimal("6"))


@pytest.fixture
def adjuster(settings):
    return MultipleAdjuster(settings)


class TestBandDelta:
    def test_mid_size_company_has_no_delta(self, adjuster):
        delta, components = adjuster.band_delta(Decimal("1000000"), None, None)
        assert delta == Decimal("0")
        assert components == {"size": Decimal("0")}

    def test_components_are_summed(self, adjuster):
        delta, components = adjuster.band_delta(Decimal("3000000"), "metropole", Decimal("0.05"))
        assert components == {"size": Decimal("0.05"), "location": Decimal("0.02"), "growth": Decimal("0")}
        assert delta == Decimal("0.07")

    def test_sum_is_bounded_above(self, adjuster):
        delta, _ = adjuster.band_delta(Decimal("6000000"), "ile_de_france", Decimal("0.25"))
        assert delta == Decimal("0.25")

    def test_sum_is_bounded_below(self, adjuster):
        delta, _ = adjuster.band_delta(Decimal("400000"), "rural", Decimal("-0.2"))
        assert delta == Decimal("-0.25")

    def test_unknown_location_band_contributes_nothing(self, adjuster):
        _, components = adjuster.band_delta(None, "atlantis", None)
        assert components == {"location": Decimal("0")}


class TestAdjust:
    def test_reference_range_unchanged_without_delta(self, adjuster):
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("1000000"), None, None)
        assert (multiple.low, multiple.high) == (Decimal("4"), Decimal("6"))
        assert multiple.flags == ()

    def test_small_company_clamped_into_range(self, adjuster):
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("400000"), None, None)
        assert multiple.low == Decimal("4")
        assert multiple.high == Decimal("5.1")
        assert MULTIPLE_CLAMPED in multiple.flags

    def test_result_stays_within_reference_range(self, adjuster):
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("9000000"), "ile_de_france", Decimal("0.3"))
        assert EBITDA_RANGE.min <= multiple.low <= multiple.high <= EBITDA_RANGE.max


class TestMarketBlend:
    def test_small_sample_is_ignored(self, adjuster):
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("1000000"), None, None, Decimal("10"), 2)
        assert (multiple.low, multiple.high) == (Decimal("4"), Decimal("6"))
        assert multiple.flags == (MARKET_SAMPLE_TOO_SMALL,)

    def test_large_sample_reweights_range(self, adjuster):
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("1000000"), None, None, Decimal("5"), 5)
        assert multiple.low == Decimal("4")
        assert multiple.high == Decimal("6")
        assert multiple.flags == (MARKET_REWEIGHTED,)

    def test_reweighted_range_clamped_into_sector_range(self, adjuster):
        """A 10x market average blends to 5.2-7.8x; the top is held at the sector's 6x."""
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("1000000"), None, None, Decimal("10"), 5)
        assert multiple.low == Decimal("5.2")
        assert multiple.high == Decimal("6")
        assert multiple.flags == (MARKET_REWEIGHTED, MULTIPLE_CLAMPED)

    def test_outlier_market_average_cannot_leave_sector_range(self, adjuster):
        multiple = adjuster.adjust(EBITDA_RANGE, Decimal("1000000"), None, None, Decimal("20"), 5)
        assert (multiple.low, multiple.high) == (Decimal("6"), Decimal("6"))
        assert MULTIPLE_CLAMPED in multiple.flags

    def test_missing_average_is_ignored(self, adjuster):
        low, high, flags = adjuster.market_blend(EBITDA_RANGE, None, 10)
        assert (low, high, flags) == (Decimal("4"), Decimal("6"), [])
