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

"""
Adjustment Engine - discounts, premiums and the equity bridge.

Discounts stack multiplicatively, never additively:

    cumulative discount = 1 - prod(1 - d_i)
    premium factor      = prod(1 + p_i)
    overall factor      = (1 - cumulative discount) × premium factor

Two 20% discounts therefore give 36%, not 40%. The product does not depend on
the order of the list; the list order is kept only for the audit trail.

The cumulative discount is checked against a ceiling (45% by default). Going
over it is flagged, not clamped: the figure stays as computed so the analyst
can see why.

    equity price = (adjusted EV - net debt) × ownership fraction
"""

import logging
from typing import List, Optional, Sequence

from smevaluator.config.settings import EngineSettings
from smevaluator.domain.exceptions import InvalidStatement
from smevaluator.domain.models.numbers import ONE, ZERO, quantize_money, quantize_rate
from smevaluator.domain.models.risk import KeyPersonDependence, RiskProfile
from smevaluator.domain.models.sector import FactorDirection, SectorProfile
from smevaluator.domain.models.valuation import (
    AdjustedValuation,
    Adjustment,
    AdjustmentKind,
    BlendedValuation,
    NetDebtBreakdown,
    PriceRange,
)
from smevaluator.domain.services.statement_validation import ValidationIssue, ValidationSeverity

logger = logging.getLogger(__name__)

DISCOUNT_CEILING_EXCEEDED = "DISCOUNT_CEILING_EXCEEDED"
NEGATIVE_EQUITY_PRICE = "NEGATIVE_EQUITY_PRICE"

DISCOUNT = FactorDirection.DISCOUNT
PREMIUM = FactorDirection.PREMIUM


class AdjustmentEngine:
    """Builds the ordered adjustment chain and applies it to a blended valuation."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()

    def build_adjustments(self, profile: SectorProfile, risk: RiskProfile) -> List[Adjustment]:
        """Ordered chain: sector factors, concentration, key-person, agreement
        clause, illiquidity, control premium, then minority last.

        Raises:
            InvalidStatement: if a selected sector factor is not in the profile
        """
        rates = self.settings.discounts
        chain: List[Adjustment] = []

        unknown = [fid for fid in risk.sector_factors if profile.factor(fid) is None]
        if unknown:
            raise InvalidStatement(
                f"Unknown adjustment factors for sector {profile.code}",
                [
                    ValidationIssue(f"sector_factors.{fid}", ValidationSeverity.ERROR, "not in profile")
                    for fid in unknown
                ],
            )
        for factor_id in risk.sector_factors:
            factor = profile.factor(factor_id)
            chain.append(
                Adjustment(
                    AdjustmentKind.SECTOR_FACTOR,
                    factor.direction,
                    quantize_rate(factor.midpoint_rate),
                    f"SECTOR_FACTOR_{factor.id.upper()}",
                )
            )

        concentration = self._concentration(risk)
        if concentration is not None:
            chain.append(concentration)

        key_person = self._key_person(risk)
        if key_person is not None:
            chain.append(key_person)

        if risk.approval_clause:
            chain.append(
                Adjustment(AdjustmentKind.AGREEMENT_CLAUSE, DISCOUNT, rates.agreement_clause, "APPROVAL_CLAUSE")
            )

        if risk.illiquid_shares:
            chain.append(Adjustment(AdjustmentKind.ILLIQUIDITY, DISCOUNT, rates.illiquidity, "UNLISTED_SHARES"))

        stake = risk.ownership_fraction
        if rates.minority_threshold < stake < ONE:
            chain.append(
                Adjustment(AdjustmentKind.CONTROL_PREMIUM, PREMIUM, rates.control_premium, "CONTROLLING_BLOCK")
            )
        if stake < rates.minority_threshold:
            chain.append(Adjustment(AdjustmentKind.MINORITY, DISCOUNT, rates.minority, "MINORITY_STAKE"))

        return chain

    def _concentration(self, risk: RiskProfile) -> Optional[Adjustment]:
        rates = self.settings.discounts
        top, top3 = risk.top_client_share, risk.top3_client_share
        if top is not None and top > rates.concentration_top_client_high:
            return Adjustment(
                AdjustmentKind.CONCENTRATION, DISCOUNT, rates.concentration_top_client_high_rate, "TOP_CLIENT_MAJORITY"
            )
        if top is not None and top > rates.concentration_top_client_medium:
            return Adjustment(
                AdjustmentKind.CONCENTRATION, DISCOUNT, rates.concentration_top_client_medium_rate, "TOP_CLIENT_HEAVY"
            )
        if top3 is not None and top3 > rates.concentration_top3:
            return Adjustment(
                AdjustmentKind.CONCENTRATION, DISCOUNT, rates.concentration_top3_rate, "TOP3_CLIENTS_HEAVY"
            )
        return None

    def _key_person(self, risk: RiskProfile) -> Optional[Adjustment]:
        rates = self.settings.discounts
        level = risk.key_person_dependence
        with_transition = risk.transition_commitment
        if level is KeyPersonDependence.HIGH:
            rate = rates.key_person_high_with_transition if with_transition else rates.key_person_high
        elif level is KeyPersonDependence.MEDIUM:
            rate = rates.key_person_medium_with_transition if with_transition else rates.key_person_medium
        else:
            return None
        suffix = "WITH_TRANSITION" if with_transition else "NO_TRANSITION"
        return Adjustment(AdjustmentKind.KEY_PERSON, DISCOUNT, rate, f"KEY_PERSON_{level.name}_{suffix}")

    @staticmethod
    def cumulative_discount(adjustments: Sequence[Adjustment]):
        """Return ``(cumulative discount, premium factor)`` for a chain."""
        remaining = ONE
        premium = ONE
        for adj in adjustments:
            if adj.is_discount:
                remaining *= ONE - adj.rate
            else:
                premium *= ONE + adj.rate
        return quantize_rate(ONE - remaining), quantize_rate(premium)

    def apply(
        self,
        blended: BlendedValuation,
        adjustments: Sequence[Adjustment],
        net_debt: NetDebtBreakdown,
        ownership_fraction=ONE,
    ) -> AdjustedValuation:
        cumulative, premium = self.cumulative_discount(adjustments)
        overall = quantize_rate((ONE - cumulative) * premium)
        ceiling = self.settings.discount_ceiling

        flags = []
        exceeded = cumulative > ceiling
        if exceeded:
            logger.warning(f"Cumulative discount {cumulative} exceeds ceiling {ceiling}")
            flags.append(DISCOUNT_CEILING_EXCEEDED)

        enterprise_value = PriceRange(
            low=quantize_money(blended.low * overall),
            medium=quantize_money(blended.medium * overall),
            high=quantize_money(blended.high * overall),
        )
        equity = PriceRange(
            low=quantize_money((enterprise_value.low - net_debt.net_debt) * ownership_fraction),
            medium=quantize_money((enterprise_value.medium - net_debt.net_debt) * ownership_fraction),
            high=quantize_money((enterprise_value.high - net_debt.net_debt) * ownership_fraction),
        )
        if equity.low < ZERO:
            logger.warning(f"Equity price low end is negative ({equity.low}): net debt exceeds adjusted EV")
            flags.append(NEGATIVE_EQUITY_PRICE)

        return AdjustedValuation(
            adjustments=tuple(adjustments),
            cumulative_discount=cumulative,
            premium_factor=premium,
            overall_factor=overall,
            discount_ceiling=ceiling,
            ceiling_exceeded=exceeded,
            enterprise_value=enterprise_value,
            net_debt=net_debt,
            ownership_fraction=ownership_fraction,
            equity_price=equity,
            flags=tuple(flags),
        )
