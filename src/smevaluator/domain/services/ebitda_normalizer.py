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
EBITDA Normalizer - turns reported earnings into what a buyer would earn.

Owner-managed companies carry distortions a buyer will not inherit: a manager
paid far above or below market, rent paid to the owner's property company,
leases booked as operating costs, one-off items, relatives on the payroll.
Each is reversed through a signed ``NormalizationAdjustment``:

    normalized = base EBITDA + sum(adjustment.delta)

Sign convention: a positive delta raises normalized EBITDA (cost added back),
a negative delta lowers it (a cost the buyer will have to bear). An owner paid
20k against a 60k benchmark therefore yields a delta of -40k.

The normalizer does no lookups: every benchmark comes from configuration.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from smevaluator.config.settings import NormalizationSettings, band_value
from smevaluator.domain.exceptions import InvalidStatement
from smevaluator.domain.models.financials import (
    FinancialStatement,
    NormalizationAdjustment,
    NormalizationCategory,
    NormalizationInputs,
    NormalizedEbitda,
)
from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.services.statement_validation import ValidationIssue, ValidationSeverity

logger = logging.getLogger(__name__)

DERIVED = "derived"


class EbitdaNormalizer:
    """Derives normalization adjustments and applies them to the latest year."""

    def __init__(self, settings: Optional[NormalizationSettings] = None):
        self.settings = settings or NormalizationSettings()

    def benchmark_compensation(self, revenue: Decimal, owner_count: int = 1) -> Decimal:
        """Normative loaded compensation for ``owner_count`` managers at this revenue."""
        per_owner = band_value(self.settings.owner_compensation_schedule, revenue)
        return per_owner * owner_count

    def derive_adjustments(
        self, statement: FinancialStatement, inputs: NormalizationInputs
    ) -> List[NormalizationAdjustment]:
        """Build one adjustment per assessed category from raw answers.

        Categories without any answer are left out (not assessed). Differences
        under the materiality threshold are recorded with a zero delta.
        """
        adjustments: List[NormalizationAdjustment] = []

        if inputs.owner_compensation is not None and statement.revenue is None:
            logger.warning("Owner compensation supplied without revenue; no benchmark band applies, not assessed")
        elif inputs.owner_compensation is not None:
            benchmark = self.benchmark_compensation(statement.revenue, inputs.owner_count)
            adjustments.append(
                self._material_difference(
                    NormalizationCategory.OWNER_COMPENSATION,
                    actual=inputs.owner_compensation,
                    reference=benchmark,
                    above="OWNER_PAID_ABOVE_BENCHMARK",
                    below="OWNER_PAID_BELOW_BENCHMARK",
                )
            )

        if NormalizationCategory.RELATED_PARTY_RENT in inputs.assessed_categories():
            if inputs.premises_related_party is False:
                adjustments.append(
                    NormalizationAdjustment(
                        NormalizationCategory.RELATED_PARTY_RENT, ZERO, "NOT_RELATED_PARTY", DERIVED
                    )
                )
            elif inputs.premises_related_party and inputs.rent_paid is not None and inputs.market_rent is not None:
                adjustments.append(
                    self._material_difference(
                        NormalizationCategory.RELATED_PARTY_RENT,
                        actual=inputs.rent_paid,
                        reference=inputs.market_rent,
                        above="RENT_ABOVE_MARKET",
                        below="RENT_BELOW_MARKET",
                    )
                )
            else:
                logger.debug("Related-party premises not confirmed with both rent figures; rent not assessed")

        if inputs.finance_lease_payments is not None:
            adjustments.append(
                NormalizationAdjustment(
                    NormalizationCategory.FINANCE_LEASE,
                    quantize_money(inputs.finance_lease_payments),
                    "LEASE_PAYMENTS_ADDED_BACK",
                    DERIVED,
                )
            )
        elif inputs.finance_lease_principal is not None:
            adjustments.append(
                NormalizationAdjustment(NormalizationCategory.FINANCE_LEASE, ZERO, "PRINCIPAL_TO_NET_DEBT", DERIVED)
            )

        if inputs.non_recurring_charges is not None or inputs.non_recurring_income is not None:
            delta = (inputs.non_recurring_charges or ZERO) - (inputs.non_recurring_income or ZERO)
            adjustments.append(
                NormalizationAdjustment(
                    NormalizationCategory.NON_RECURRING, quantize_money(delta), "NON_RECURRING_NETTED", DERIVED
                )
            )

        if inputs.family_compensation_excess is not None or inputs.family_compensation_shortfall is not None:
            delta = (inputs.family_compensation_excess or ZERO) - (inputs.family_compensation_shortfall or ZERO)
            adjustments.append(
                NormalizationAdjustment(
                    NormalizationCategory.FAMILY_COMPENSATION,
                    quantize_money(delta),
                    "FAMILY_COMPENSATION_NETTED",
                    DERIVED,
                )
            )

        if inputs.shareholder_current_account is not None or inputs.shareholder_account_repayable is not None:
            adjustments.append(
                NormalizationAdjustment(
                    NormalizationCategory.RELATED_PARTY_CURRENT_ACCOUNT, ZERO, "REPAYABLE_TO_NET_DEBT", DERIVED
                )
            )

        return adjustments

    @staticmethod
    def merge_adjustments(
        explicit: Sequence[NormalizationAdjustment], derived: Sequence[NormalizationAdjustment]
    ) -> List[NormalizationAdjustment]:
        """Explicit adjustments win over derived ones for the same category."""
        explicit_categories = {adj.category for adj in explicit}
        return list(explicit) + [adj for adj in derived if adj.category not in explicit_categories]

    def normalize(
        self,
        statements: Sequence[FinancialStatement],
        adjustments: Sequence[NormalizationAdjustment] = (),
    ) -> NormalizedEbitda:
        """Apply adjustments to the latest year's EBITDA.

        Raises:
            InvalidStatement: if a category appears more than once
        """
        if not statements:
            raise InvalidStatement(
                "No statements to normalize",
                [ValidationIssue("statements", ValidationSeverity.CRITICAL, "at least one fiscal year is required")],
            )
        self._check_unique(adjustments)

        latest = statements[0]
        base, source, missing = self._base_ebitda(latest)
        partial = base is None or bool(missing)
        if partial:
            logger.warning(f"EBITDA for {latest.year} is partial or missing (missing: {', '.join(missing) or 'all'})")

        total_delta = quantize_money(sum((adj.delta for adj in adjustments), ZERO))
        value = quantize_money(base + total_delta) if base is not None else None

        return NormalizedEbitda(
            base=quantize_money(base) if base is not None else None,
            base_source=source,
            partial_data=partial,
            adjustments=tuple(adjustments),
            total_delta=total_delta,
            value=value,
            weighted_accounting_ebitda=self.weighted_accounting_ebitda(statements),
            missing_components=tuple(missing),
        )

    def weighted_accounting_ebitda(self, statements: Sequence[FinancialStatement]) -> Optional[Decimal]:
        """Multi-year EBITDA weighted 50/30/20 (most recent first).

        Years without any EBITDA figure are dropped and the remaining weights
        rescaled. Informational only; the methods use the normalized figure.
        """
        pairs: List[Tuple[Decimal, Decimal]] = []
        for statement, weight in zip(statements, self.settings.weighted_years):
            ebitda, _, _ = self._base_ebitda(statement)
            if ebitda is not None:
                pairs.append((ebitda, weight))
        if not pairs:
            return None
        total_weight = sum((w for _, w in pairs), ZERO)
        return quantize_money(sum((e * w for e, w in pairs), ZERO) / total_weight)

    @staticmethod
    def _base_ebitda(statement: FinancialStatement) -> Tuple[Optional[Decimal], str, List[str]]:
        if statement.reported_ebitda is not None:
            return statement.reported_ebitda, "reported", []
        value, missing = statement.accounting_ebitda()
        if value is None:
            return None, "unavailable", missing
        return value, DERIVED, missing

    def _material_difference(
        self,
        category: NormalizationCategory,
        actual: Decimal,
        reference: Decimal,
        above: str,
        below: str,
    ) -> NormalizationAdjustment:
        diff = actual - reference
        if abs(diff) <= reference * self.settings.materiality_threshold:
            return NormalizationAdjustment(category, ZERO, "BELOW_MATERIALITY", DERIVED)
        return NormalizationAdjustment(category, quantize_money(diff), above if diff > ZERO else below, DERIVED)

    @staticmethod
    def _check_unique(adjustments: Sequence[NormalizationAdjustment]) -> None:
        seen: Dict[NormalizationCategory, int] = {}
        for adj in adjustments:
            seen[adj.category] = seen.get(adj.category, 0) + 1
        duplicates = sorted(cat.value for cat, count in seen.items() if count > 1)
        if duplicates:
            raise InvalidStatement(
                "Duplicate normalization adjustments",
                [
                    ValidationIssue(f"adjustments.{cat}", ValidationSeverity.ERROR, "category supplied more than once")
                    for cat in duplicates
                ],
            )
