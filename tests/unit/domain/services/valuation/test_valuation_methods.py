"""Tests for the individual valuation methods."""

from decimal import Decimal

import pytest

from smevaluator.domain.models.financials import FinancialStatement
from smevaluator.domain.models.numbers import quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.ebitda_normalizer import EbitdaNormalizer
from smevaluator.domain.services.valuation.models import (
    METHOD_CLASSES,
    AssetBasedMethod,
    DCFMethod,
    EbitdaMultipleMethod,
    EquipmentValueMethod,
    FleetValueMethod,
    GoodwillMethod,
    MethodNotApplicable,
    PracticeScaleMethod,
    PractitionersMethod,
    RevenueMultipleMethod,
    TradeGoodwillMethod,
    ValuationContext,
)


@pytest.fixture
def context_for(settings, services_profile):
    def build(*statements, profile=None, asset_revaluation=Decimal("0")):
        series = tuple(FinancialStatement.from_dict({"year": 2024 - i, **s}) for i, s in enumerate(statements))
        return ValuationContext(
            normalized=EbitdaNormalizer().normalize(series),
            statements=series,
            profile=profile or services_profile,
            settings=settings,
            asset_revaluation=asset_revaluation,
        )

    return build


def test_every_method_has_a_class():
    assert set(METHOD_CLASSES) == set(MethodId)


class TestRevenueMultiple:
    def test_revenue_times_sector_range(self, context_for):
        result = RevenueMultipleMethod(context_for({"revenue": 1000000})).calculate()
        assert isinstance(result, MethodResult)
        assert (result.low, result.high) == (Decimal("600000"), Decimal("900000"))
        assert result.rationale == "REVENUE_X_SECTOR_MULTIPLE"

    def test_missing_revenue(self, context_for):
        result = RevenueMultipleMethod(context_for({"net_result": 10})).calculate()
        assert result == MethodNotApplicable(MethodId.REVENUE_MULTIPLE, "MISSING_REVENUE")

    def test_zero_revenue(self, context_for):
        result = RevenueMultipleMethod(context_for({"revenue": 0})).calculate()
        assert result.reason == "NON_POSITIVE_REVENUE"


class TestEbitdaMultiple:
    def test_normalized_ebitda_times_sector_range(self, context_for):
        result = EbitdaMultipleMethod(context_for({"revenue": 1000000, "reported_ebitda": 150000})).calculate()
        assert (result.low, result.high) == (Decimal("600000"), Decimal("900000"))
        assert result.basis == Decimal("150000")

    def test_negative_ebitda_excluded(self, context_for):
        result = EbitdaMultipleMethod(context_for({"revenue": 1000000, "reported_ebitda": -10})).calculate()
        assert result.reason == "NON_POSITIVE_EBITDA"

    def test_missing_ebitda_excluded(self, context_for):
        result = EbitdaMultipleMethod(context_for({"revenue": 1000000})).calculate()
        assert result.reason == "MISSING_EBITDA"

    def test_partial_ebitda_is_flagged(self, context_for):
        result = EbitdaMultipleMethod(context_for({"revenue": 1000000, "operating_result": 150000})).calculate()
        assert "PARTIAL_EBITDA" in result.flags

    def test_monotonic_in_ebitda(self, context_for):
        lower = EbitdaMultipleMethod(context_for({"revenue": 1000000, "reported_ebitda": 150000})).calculate()
        higher = EbitdaMultipleMethod(context_for({"revenue": 1000000, "reported_ebitda": 200000})).calculate()
        assert higher.low >= lower.low
        assert higher.high >= lower.high


class TestDCF:
    def test_present_value_of_flat_perpetuity(self):
        value = DCFMethod.present_value(Decimal("100"), Decimal("0"), Decimal("0.10"), Decimal("0"), 5)
        assert quantize_money(value) == Decimal("1000.00")

    def test_single_year_uses_default_growth(self, context_for):
        result = DCFMethod(context_for({"revenue": 1000000, "reported_ebitda": 150000})).calculate()
        assert "DEFAULT_GROWTH_USED" in result.flags
        assert result.basis == Decimal("105000.00")
        assert result.low < result.high
        assert result.rationale == "DCF_5Y_GORDON_TERMINAL"

    def test_trailing_growth_is_clamped(self, context_for):
        result = DCFMethod(
            context_for({"revenue": 2000000, "reported_ebitda": 150000}, {"revenue": 1000000})
        ).calculate()
        assert result.flags == ("GROWTH_CLAMPED",)

    def test_non_positive_ebitda_excluded(self, context_for):
        result = DCFMethod(context_for({"revenue": 1000000, "reported_ebitda": 0})).calculate()
        assert result.reason == "NON_POSITIVE_EBITDA"


class TestAssetBased:
    def test_book_equity_range(self, context_for):
        result = AssetBasedMethod(context_for({"equity": 400000})).calculate()
        assert (result.low, result.high) == (Decimal("360000"), Decimal("440000"))
        assert result.rationale == "BOOK_EQUITY"

    def test_revaluation_added(self, context_for):
        result = AssetBasedMethod(context_for({"equity": 400000}, asset_revaluation=Decimal("100000"))).calculate()
        assert result.basis == Decimal("500000")
        assert result.rationale == "EQUITY_PLUS_REVALUATION"

    def test_missing_equity(self, context_for):
        assert AssetBasedMethod(context_for({"revenue": 1})).calculate().reason == "MISSING_EQUITY"

    def test_negative_net_assets(self, context_for):
        assert AssetBasedMethod(context_for({"equity": -5})).calculate().reason == "NON_POSITIVE_NET_ASSETS"


class TestPractitioners:
    def test_mean_of_assets_and_capitalized_earnings(self, context_for):
        result = PractitionersMethod(context_for({"equity": 400000, "net_result": 80000})).calculate()
        assert result.basis == Decimal("600000")
        assert (result.low, result.high) == (Decimal("510000"), Decimal("690000"))

    def test_missing_net_result(self, context_for):
        result = PractitionersMethod(context_for({"equity": 400000})).calculate()
        assert result.reason == "MISSING_NET_RESULT"

    def test_non_positive_value(self, context_for):
        result = PractitionersMethod(context_for({"equity": 10000, "net_result": -50000})).calculate()
        assert result.reason == "NON_POSITIVE_PRACTITIONERS_VALUE"


class TestGoodwill:
    def test_net_assets_plus_capitalized_excess_profit(self, context_for):
        """80k profit less a 5% return on 400k equity leaves 60k, worth 400k at 15%."""
        result = GoodwillMethod(context_for({"equity": 400000, "net_result": 80000})).calculate()
        assert result.basis == Decimal("800000")
        assert (result.low, result.high) == (Decimal("680000"), Decimal("920000"))
        assert result.rationale == "NET_ASSETS_PLUS_EXCESS_PROFIT"

    def test_no_excess_profit_leaves_net_assets(self, context_for):
        result = GoodwillMethod(context_for({"equity": 400000, "net_result": 10000})).calculate()
        assert result.basis == Decimal("400000")
        assert result.rationale == "NET_ASSETS_NO_EXCESS_PROFIT"

    def test_missing_inputs(self, context_for):
        assert GoodwillMethod(context_for({"net_result": 1})).calculate().reason == "MISSING_EQUITY"
        assert GoodwillMethod(context_for({"equity": 1})).calculate().reason == "MISSING_NET_RESULT"

    def test_insolvent_loss_maker_excluded(self, context_for):
        result = GoodwillMethod(context_for({"equity": -100000, "net_result": -20000})).calculate()
        assert result.reason == "NON_POSITIVE_GOODWILL_VALUE"


class TestOperatingAssets:
    def test_fleet_is_share_of_revenue(self, context_for):
        result = FleetValueMethod(context_for({"revenue": 1000000})).calculate()
        assert (result.low, result.high) == (Decimal("245000"), Decimal("350000"))
        assert (result.multiple_low, result.multiple_high) == (Decimal("0.245"), Decimal("0.35"))
        assert result.rationale == "FLEET_ESTIMATED_FROM_REVENUE"

    def test_equipment_is_share_of_revenue(self, context_for):
        result = EquipmentValueMethod(context_for({"revenue": 1000000})).calculate()
        assert (result.low, result.high) == (Decimal("120000"), Decimal("200000"))

    @pytest.mark.parametrize("method", [FleetValueMethod, EquipmentValueMethod])
    def test_needs_positive_revenue(self, context_for, method):
        assert method(context_for({"equity": 1})).calculate().reason == "MISSING_REVENUE"
        assert method(context_for({"revenue": 0})).calculate().reason == "NON_POSITIVE_REVENUE"


class TestTransferScales:
    def test_trade_goodwill_applies_sector_range_as_is(self, context_for, registry):
        """A small shop gets no size discount on the published scale."""
        commerce = registry.get("commerce").profile
        result = TradeGoodwillMethod(context_for({"revenue": 400000}, profile=commerce)).calculate()
        assert (result.low, result.high) == (Decimal("80000"), Decimal("200000"))
        assert result.flags == ()

    def test_practice_scale_for_dental_practice(self, context_for, registry):
        dentaire = registry.get("86.23Z").profile
        result = PracticeScaleMethod(context_for({"revenue": 1000000}, profile=dentaire)).calculate()
        assert result.method is MethodId.PRACTICE_SCALE
        assert (result.low, result.high) == (Decimal("400000"), Decimal("600000"))
        assert result.rationale == "REVENUE_X_PRACTICE_SCALE"

    def test_profile_without_revenue_range(self, context_for, registry):
        holding = registry.get("holding").profile
        result = TradeGoodwillMethod(context_for({"revenue": 1000000}, profile=holding)).calculate()
        assert result.reason == "NO_REVENUE_MULTIPLE_RANGE"
