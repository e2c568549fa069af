# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Anomaly Scanner.

Rule-based checks over one to three fiscal years (N, N-1, N-2, most recent
first). Every rule is an independent function of the series; none reads the
output of another, so the result does not depend on rule order. Rules that
compare years are skipped when the needed prior year is missing.

Rules:
    RECEIVABLE_DAYS_HIGH        DSO > 90 days                          alert    high
    RECEIVABLE_DAYS_RISING      DSO > 45 days and > 1.5× prior DSO     question medium
    INVENTORY_OUTPACING_REVENUE inventory growth > revenue growth +30  question medium
    NEGATIVE_NET_RESULT         net result < 0                         alert    high
    NET_MARGIN_DROP             margin down > 3 pts from a positive    question medium
    NEGATIVE_EQUITY             equity < 0                             alert    high
    EXCESSIVE_LEVERAGE          debt > 4× EBITDA                       alert    high
    NEW_PROVISIONS              provisions charged, none the year prior question medium
    PROVISIONS_DOUBLED          provisions ≥ 2× prior year             alert    high
    REVENUE_DECLINE_SEVERE      revenue < -15%                         alert    high
    REVENUE_DECLINE             revenue < -5%                          question low
    REVENUE_DECLINE_TREND       N below both N-1 and N-2               alert    high
    STRONG_GROWTH               revenue > +20%                         info     low
    AMPLE_CASH                  cash > 3 months of revenue             info     low
    CLIENT_CONCENTRATION_*      top client > 50% / > 30%               alert high / question medium
    TOP3_CONCENTRATION          top 3 clients > 70%                    question medium
    PENDING_LITIGATION          severity of the worst pending claim
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence

from smevaluator.config.settings import AnomalySettings, ConfidenceSettings
from smevaluator.domain.models.financials import FinancialStatement, NormalizationCategory
from smevaluator.domain.models.numbers import HUNDRED, ZERO, quantize_rate, safe_divide
from smevaluator.domain.models.risk import LitigationSeverity, RiskProfile
from smevaluator.domain.models.valuation import Anomaly, AnomalyType, ScanResult, Severity
from smevaluator.domain.services.confidence_grader import ConfidenceGrader

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal(365)
MONTHS_PER_YEAR = Decimal(12)

ALERT = AnomalyType.ALERT
QUESTION = AnomalyType.QUESTION
INFO = AnomalyType.INFO


def _ebitda(statement: FinancialStatement) -> Optional[Decimal]:
    if statement.reported_ebitda is not None:
        return statement.reported_ebitda
    value, _ = statement.accounting_ebitda()
    return value


def _growth(current: Optional[Decimal], prior: Optional[Decimal]) -> Optional[Decimal]:
    if current is None or prior is None or prior <= ZERO:
        return None
    return (current - prior) / prior


def _receivable_days(statement: FinancialStatement) -> Optional[Decimal]:
    if statement.revenue is None or statement.revenue <= ZERO or statement.trade_receivables is None:
        return None
    return statement.trade_receivables / statement.revenue * DAYS_PER_YEAR


def _net_margin(statement: FinancialStatement) -> Optional[Decimal]:
    if statement.revenue is None or statement.revenue <= ZERO or statement.net_result is None:
        return None
    return statement.net_result / statement.revenue * HUNDRED


class AnomalyScanner:
    """Runs every rule over a statement series and grades the confidence."""

    def __init__(
        self,
        settings: Optional[AnomalySettings] = None,
        confidence_settings: Optional[ConfidenceSettings] = None,
    ):
        self.settings = settings or AnomalySettings()
        self.grader = ConfidenceGrader(confidence_settings)
        self._rules: List[Callable[[Sequence[FinancialStatement]], List[Anomaly]]] = [
            self._receivables,
            self._inventory,
            self._profitability,
            self._solvency,
            self._provisions,
            self._revenue_trend,
            self._cash,
        ]

    def scan(
        self,
        statements: Sequence[FinancialStatement],
        risk: Optional[RiskProfile] = None,
        assessed_categories: FrozenSet[NormalizationCategory] = frozenset(),
    ) -> ScanResult:
        anomalies = self.detect(statements, risk)
        confidence = self.grader.grade(statements, anomalies, assessed_categories)
        return ScanResult(anomalies=tuple(anomalies), confidence=confidence)

    def detect(self, statements: Sequence[FinancialStatement], risk: Optional[RiskProfile] = None) -> List[Anomaly]:
        anomalies: List[Anomaly] = []
        if not statements:
            return anomalies
        for rule in self._rules:
            anomalies.extend(rule(statements))
        if risk is not None:
            anomalies.extend(self._concentration(risk))
            anomalies.extend(self._litigation(risk))
            if risk.acknowledged_anomalies:
                anomalies = [
                    replace(a, resolved=True) if a.code in risk.acknowledged_anomalies else a for a in anomalies
                ]

        if anomalies:
            logger.info(f"Scanner raised {len(anomalies)} anomaly(ies): {', '.join(a.code for a in anomalies)}")
        return anomalies

    # ------------------------------------------------------------------
    # Statement rules
    # ------------------------------------------------------------------

    def _receivables(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        s = self.settings
        days = _receivable_days(statements[0])
        if days is None:
            return []
        if days > s.receivable_days_alert:
            return [Anomaly("RECEIVABLE_DAYS_HIGH", ALERT, "liquidity", Severity.HIGH, {"days": quantize_rate(days)})]
        if days > s.receivable_days_question and len(statements) >= 2:
            prior = _receivable_days(statements[1])
            if prior is not None and days > prior * s.receivable_days_trend_factor:
                return [
                    Anomaly(
                        "RECEIVABLE_DAYS_RISING",
                        QUESTION,
                        "liquidity",
                        Severity.MEDIUM,
                        {"days": quantize_rate(days), "prior_days": quantize_rate(prior)},
                    )
                ]
        return []

    def _inventory(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        if len(statements) < 2:
            return []
        current, prior = statements[0], statements[1]
        inventory_growth = _growth(current.inventory, prior.inventory)
        revenue_growth = _growth(current.revenue, prior.revenue)
        if inventory_growth is None or revenue_growth is None:
            return []
        s = self.settings
        if inventory_growth > revenue_growth + s.inventory_growth_gap and inventory_growth > s.inventory_growth_min:
            return [
                Anomaly(
                    "INVENTORY_OUTPACING_REVENUE",
                    QUESTION,
                    "liquidity",
                    Severity.MEDIUM,
                    {
                        "inventory_growth": quantize_rate(inventory_growth),
                        "revenue_growth": quantize_rate(revenue_growth),
                    },
                )
            ]
        return []

    def _profitability(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        anomalies = []
        latest = statements[0]
        if latest.net_result is not None and latest.net_result < ZERO:
            anomalies.append(
                Anomaly("NEGATIVE_NET_RESULT", ALERT, "profitability", Severity.HIGH, {"net_result": latest.net_result})
            )

        if len(statements) >= 2:
            margin, prior_margin = _net_margin(latest), _net_margin(statements[1])
            if (
                margin is not None
                and prior_margin is not None
                and prior_margin > ZERO
                and prior_margin - margin > self.settings.margin_drop_points
            ):
                anomalies.append(
                    Anomaly(
                        "NET_MARGIN_DROP",
                        QUESTION,
                        "profitability",
                        Severity.MEDIUM,
                        {"margin": quantize_rate(margin), "prior_margin": quantize_rate(prior_margin)},
                    )
                )
        return anomalies

    def _solvency(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        anomalies = []
        latest = statements[0]
        if latest.equity is not None and latest.equity < ZERO:
            anomalies.append(Anomaly("NEGATIVE_EQUITY", ALERT, "solvency", Severity.HIGH, {"equity": latest.equity}))

        ebitda = _ebitda(latest)
        debt = latest.financial_debt
        if ebitda is not None and debt is not None and debt > ZERO:
            if ebitda <= ZERO or debt > ebitda * self.settings.leverage_max:
                values: Dict[str, Decimal] = {"financial_debt": debt, "ebitda": ebitda}
                leverage = safe_divide(debt, ebitda) if ebitda > ZERO else None
                if leverage is not None:
                    values["leverage"] = quantize_rate(leverage)
                anomalies.append(Anomaly("EXCESSIVE_LEVERAGE", ALERT, "solvency", Severity.HIGH, values))
        return anomalies

    def _provisions(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        if len(statements) < 2:
            return []
        current, prior = statements[0].provisions_charge, statements[1].provisions_charge
        if current is None or prior is None or current <= ZERO:
            return []
        if prior == ZERO:
            return [Anomaly("NEW_PROVISIONS", QUESTION, "provisions", Severity.MEDIUM, {"provisions": current})]
        if prior > ZERO and current >= prior * self.settings.provision_doubling_factor:
            return [
                Anomaly(
                    "PROVISIONS_DOUBLED",
                    ALERT,
                    "provisions",
                    Severity.HIGH,
                    {"provisions": current, "prior_provisions": prior},
                )
            ]
        return []

    def _revenue_trend(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        if len(statements) < 2:
            return []
        s = self.settings
        anomalies = []
        growth = _growth(statements[0].revenue, statements[1].revenue)
        if growth is not None:
            values = {"growth": quantize_rate(growth)}
            if growth < s.revenue_decline_alert:
                anomalies.append(Anomaly("REVENUE_DECLINE_SEVERE", ALERT, "growth", Severity.HIGH, values))
            elif growth < s.revenue_decline_question:
                anomalies.append(Anomaly("REVENUE_DECLINE", QUESTION, "growth", Severity.LOW, values))
            elif growth > s.strong_growth:
                anomalies.append(Anomaly("STRONG_GROWTH", INFO, "growth", Severity.LOW, values))

        if len(statements) >= 3:
            revenues = [st.revenue for st in statements[:3]]
            if all(r is not None for r in revenues) and revenues[0] < revenues[1] and revenues[0] < revenues[2]:
                anomalies.append(
                    Anomaly(
                        "REVENUE_DECLINE_TREND",
                        ALERT,
                        "growth",
                        Severity.HIGH,
                        {"revenue_n": revenues[0], "revenue_n1": revenues[1], "revenue_n2": revenues[2]},
                    )
                )
        return anomalies

    def _cash(self, statements: Sequence[FinancialStatement]) -> List[Anomaly]:
        latest = statements[0]
        if latest.cash is None or latest.revenue is None or latest.revenue <= ZERO:
            return []
        months = latest.cash / (latest.revenue / MONTHS_PER_YEAR)
        if months > self.settings.cash_months:
            values = {"months_of_revenue": quantize_rate(months)}
            return [Anomaly("AMPLE_CASH", INFO, "liquidity", Severity.LOW, values)]
        return []

    # ------------------------------------------------------------------
    # Qualitative rules
    # ------------------------------------------------------------------

    def _concentration(self, risk: RiskProfile) -> List[Anomaly]:
        s = self.settings
        anomalies = []
        top = risk.top_client_share
        if top is not None:
            if top > s.top_client_alert:
                anomalies.append(
                    Anomaly("CLIENT_CONCENTRATION_CRITICAL", ALERT, "concentration", Severity.HIGH, {"top_client": top})
                )
            elif top > s.top_client_question:
                anomalies.append(
                    Anomaly("CLIENT_CONCENTRATION", QUESTION, "concentration", Severity.MEDIUM, {"top_client": top})
                )
        top3 = risk.top3_client_share
        if top3 is not None and top3 > s.top3_question:
            anomalies.append(
                Anomaly("TOP3_CONCENTRATION", QUESTION, "concentration", Severity.MEDIUM, {"top3_clients": top3})
            )
        return anomalies

    def _litigation(self, risk: RiskProfile) -> List[Anomaly]:
        if not risk.litigation:
            return []
        order = list(LitigationSeverity)
        worst = max((claim.severity for claim in risk.litigation), key=order.index)
        if worst in (LitigationSeverity.HIGH, LitigationSeverity.CRITICAL):
            anomaly_type, severity = ALERT, Severity.HIGH
        elif worst is LitigationSeverity.MEDIUM:
            anomaly_type, severity = QUESTION, Severity.MEDIUM
        else:
            anomaly_type, severity = INFO, Severity.LOW
        total = sum((claim.amount for claim in risk.litigation), ZERO)
        return [
            Anomaly(
                "PENDING_LITIGATION",
                anomaly_type,
                "legal",
                severity,
                {"claims": Decimal(len(risk.litigation)), "total_amount": total},
            )
        ]
