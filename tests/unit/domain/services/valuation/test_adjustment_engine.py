"""Tests for discounts, premiums and the equity bridge."""

from decimal import Decimal

import pytest

from smevaluator.domain.exceptions import InvalidStatement
from smevaluator.domain.models.risk import KeyPersonDependence, RiskProfile
from smevaluator.domain.models.sector import FactorDirection
from smevaluator.domain.models.valuation import (
    Adjustment,
    AdjustmentKind,
    BlendedValuation,
    NetDebtBreakdown,
)
from smevaluator.domain.services.valuation.adjustment_engine import (
    DISCOUNT_CEILING_EXCEEDED,
    NEGATIVE_EQUITY_PRICE,
    AdjustmentEngine,
)

BLENDED = BlendedValuation(low=Decimal("600000"), medium=Decimal("750000"), high=Decimal("900000"), methods=())


def _net_debt(amount):
    amount = Decimal(amount)
    return NetDebtBreakdown(lines=(), total_debt=amount, total_cash=Decimal("0"), net_debt=amount)


@pytest.fixture
def engine(settings):
    return AdjustmentEngine(settings)


class TestBuildAdjustments:
    def test_minority_with_key_person(self, engine, services_profile):
        risk = RiskProfile(ownership_fraction=Decimal("0.3"), key_person_dependence=KeyPersonDependence.HIGH)
        chain = engine.build_adjustments(services_profile, risk)
        assert [a.rationale for a in chain] == ["KEY_PERSON_HIGH_NO_TRANSITION", "MINORITY_STAKE"]
        assert [a.rate for a in chain] == [Decimal("0.20"), Decimal("0.20")]

    def test_minority_is_last(self, engine, services_profile):
        risk = RiskProfile(
            ownership_fraction=Decimal("0.2"),
            top_client_share=Decimal("0.35"),
            approval_clause=True,
            illiquid_shares=True,
            sector_factors=("high_turnover",),
        )
        chain = engine.build_adjustments(services_profile, risk)
        assert [a.kind for a in chain] == [
            AdjustmentKind.SECTOR_FACTOR,
            AdjustmentKind.CONCENTRATION,
            AdjustmentKind.AGREEMENT_CLAUSE,
            AdjustmentKind.ILLIQUIDITY,
            AdjustmentKind.MINORITY,
        ]

    def test_whole_company_has_no_adjustments(self, engine, services_profile):
        assert engine.build_adjustments(services_profile, RiskProfile()) == []

    def test_controlling_block_gets_premium(self, engine, services_profile):
        [premium] = engine.build_adjustments(services_profile, RiskProfile(ownership_fraction=Decimal("0.6")))
        assert premium.kind is AdjustmentKind.CONTROL_PREMIUM
        assert premium.direction is FactorDirection.PREMIUM
        assert premium.rate == Decimal("0.15")

    def test_transition_commitment_halves_key_person_discount(self, engine, services_profile):
        risk = RiskProfile(key_person_dependence=KeyPersonDependence.HIGH, transition_commitment=True)
        [adjustment] = engine.build_adjustments(services_profile, risk)
        assert adjustment.rate == Decimal("0.10")
        assert adjustment.rationale == "KEY_PERSON_HIGH_WITH_TRANSITION"

    @pytest.mark.parametrize(
        "top, top3, rationale",
        [
            (Decimal("0.55"), None, "TOP_CLIENT_MAJORITY"),
            (Decimal("0.35"), Decimal("0.80"), "TOP_CLIENT_HEAVY"),
            (Decimal("0.25"), Decimal("0.75"), "TOP3_CLIENTS_HEAVY"),
        ],
    )
    def test_single_strongest_concentration_discount(self, engine, services_profile, top, top3, rationale):
        risk = RiskProfile(top_client_share=top, top3_client_share=top3)
        [adjustment] = engine.build_adjustments(services_profile, risk)
        assert adjustment.rationale == rationale

    def test_sector_factor_uses_midpoint(self, engine, services_profile):
        [adjustment] = engine.build_adjustments(services_profile, RiskProfile(sector_factors=("recurring_revenue",)))
        assert adjustment.rate == Decimal("0.225")
        assert adjustment.direction is FactorDirection.PREMIUM
        assert adjustment.rationale == "SECTOR_FACTOR_RECURRING_REVENUE"

    def test_unknown_sector_factor(self, engine, services_profile):
        with pytest.raises(InvalidStatement) as exc_info:
            engine.build_adjustments(services_profile, RiskProfile(sector_factors=("patents",)))
        assert exc_info.value.issues[0].field == "sector_factors.patents"


class TestCumulativeDiscount:
    def test_discounts_multiply(self, engine, services_profile):
        """Two 20% discounts give 36%, not 40%."""
        risk = RiskProfile(ownership_fraction=Decimal("0.3"), key_person_dependence=KeyPersonDependence.HIGH)
        chain = engine.build_adjustments(services_profile, risk)
        cumulative, premium = engine.cumulative_discount(chain)
        assert cumulative == Decimal("0.36")
        assert premium == Decimal("1")

        adjusted = engine.apply(BLENDED, chain, _net_debt(0), risk.ownership_fraction)
        assert adjusted.cumulative_discount == Decimal("0.36")
        assert not adjusted.ceiling_exceeded
        assert adjusted.discount_ceiling == Decimal("0.45")

    def test_order_independent(self, engine):
        chain = [
            Adjustment(AdjustmentKind.MINORITY, FactorDirection.DISCOUNT, Decimal("0.20"), "A"),
            Adjustment(AdjustmentKind.ILLIQUIDITY, FactorDirection.DISCOUNT, Decimal("0.15"), "B"),
            Adjustment(AdjustmentKind.SECTOR_FACTOR, FactorDirection.PREMIUM, Decimal("0.10"), "C"),
            Adjustment(AdjustmentKind.KEY_PERSON, FactorDirection.DISCOUNT, Decimal("0.05"), "D"),
        ]
        expected = engine.cumulative_discount(chain)
        assert engine.cumulative_discount(list(reversed(chain))) == expected
        assert engine.cumulative_discount(chain[2:] + chain[:2]) == expected

    def test_ceiling_exceeded_is_flagged_not_clamped(self, engine, services_profile):
        risk = RiskProfile(
            ownership_fraction=Decimal("0.3"),
            key_person_dependence=KeyPersonDependence.HIGH,
            top_client_share=Decimal("0.55"),
            approval_clause=True,
            illiquid_shares=True,
        )
        chain = engine.build_adjustments(services_profile, risk)
        adjusted = engine.apply(BLENDED, chain, _net_debt(0), risk.ownership_fraction)
        assert adjusted.cumulative_discount == Decimal("0.58384")
        assert adjusted.ceiling_exceeded
        assert DISCOUNT_CEILING_EXCEEDED in adjusted.flags


class TestApply:
    def test_equity_bridge_for_minority_stake(self, engine, services_profile):
        risk = RiskProfile(ownership_fraction=Decimal("0.3"), key_person_dependence=KeyPersonDependence.HIGH)
        chain = engine.build_adjustments(services_profile, risk)
        adjusted = engine.apply(BLENDED, chain, _net_debt(380000), risk.ownership_fraction)
        assert adjusted.enterprise_value.low == Decimal("384000")
        assert adjusted.enterprise_value.high == Decimal("576000")
        assert adjusted.equity_price.low == Decimal("1200")
        assert adjusted.equity_price.medium == Decimal("30000")
        assert adjusted.equity_price.high == Decimal("58800")

    def test_whole_company_equity_is_ev_less_net_debt(self, engine):
        adjusted = engine.apply(BLENDED, [], _net_debt(380000))
        assert adjusted.overall_factor == Decimal("1")
        assert adjusted.equity_price.low == Decimal("220000")
        assert adjusted.equity_price.high == Decimal("520000")

    def test_premium_raises_value(self, engine, services_profile):
        chain = engine.build_adjustments(services_profile, RiskProfile(ownership_fraction=Decimal("0.6")))
        adjusted = engine.apply(BLENDED, chain, _net_debt(0), Decimal("0.6"))
        assert adjusted.premium_factor == Decimal("1.15")
        assert adjusted.enterprise_value.low == Decimal("690000")

    def test_negative_equity_is_flagged(self, engine):
        adjusted = engine.apply(BLENDED, [], _net_debt(1000000))
        assert adjusted.equity_price.low == Decimal("-400000")
        assert NEGATIVE_EQUITY_PRICE in adjusted.flags
