"""Tests for the net debt bridge."""

from decimal import Decimal

from smevaluator.config.settings import DiscountSettings
from smevaluator.domain.models.financials import DebtLikeItems, FinancialStatement, NormalizationInputs
from smevaluator.domain.models.risk import LitigationClaim, LitigationSeverity, RiskProfile
from smevaluator.domain.services.valuation.net_debt import compute_net_debt, litigation_provision

RATES = DiscountSettings().litigation_provision_rates


def _statement(**figures):
    return FinancialStatement.from_dict({"year": 2024, **figures})


class TestNetDebt:
    def test_debt_less_cash(self):
        breakdown = compute_net_debt(_statement(financial_debt=500000, cash=120000))
        assert breakdown.net_debt == Decimal("380000")
        assert [line.code for line in breakdown.lines] == ["financial_debt", "cash"]
        assert breakdown.total_debt == Decimal("500000")
        assert breakdown.total_cash == Decimal("120000")

    def test_net_cash_position_is_negative_net_debt(self):
        breakdown = compute_net_debt(_statement(financial_debt=0, cash=300000))
        assert breakdown.net_debt == Decimal("-300000")

    def test_overdraft_counts_as_debt(self):
        breakdown = compute_net_debt(_statement(financial_debt=100000, cash=-20000))
        assert breakdown.net_debt == Decimal("120000")
        assert breakdown.lines[-1].code == "bank_overdraft"
        assert breakdown.total_cash == Decimal("0")

    def test_missing_figures_add_no_line(self):
        breakdown = compute_net_debt(_statement(revenue=1000))
        assert breakdown.lines == ()
        assert breakdown.net_debt == Decimal("0")

    def test_debt_like_items(self):
        inputs = NormalizationInputs(
            finance_lease_principal=Decimal("40000"), shareholder_account_repayable=Decimal("25000")
        )
        debt_like = DebtLikeItems(
            off_balance_sheet_guarantees=Decimal("10000"),
            employee_profit_sharing_due=Decimal("5000"),
            unfunded_pension_obligations=Decimal("0"),
        )
        breakdown = compute_net_debt(_statement(financial_debt=100000, cash=50000), inputs, debt_like)
        assert breakdown.net_debt == Decimal("130000")
        codes = [line.code for line in breakdown.lines]
        assert "unfunded_pension_obligations" in codes
        assert "finance_lease_principal" in codes

    def test_litigation_provisioned_by_severity(self):
        risk = RiskProfile(
            litigation=(
                LitigationClaim(Decimal("100000"), LitigationSeverity.HIGH),
                LitigationClaim(Decimal("20000"), LitigationSeverity.MEDIUM),
                LitigationClaim(Decimal("50000"), LitigationSeverity.LOW),
            )
        )
        breakdown = compute_net_debt(_statement(financial_debt=0), risk=risk, litigation_rates=RATES)
        assert breakdown.net_debt == Decimal("90000")


class TestLitigationProvision:
    def test_critical_claim_fully_provisioned(self):
        claims = [LitigationClaim(Decimal("30000"), LitigationSeverity.CRITICAL)]
        assert litigation_provision(claims, RATES) == Decimal("30000")

    def test_no_claims(self):
        assert litigation_provision([], RATES) == Decimal("0")
