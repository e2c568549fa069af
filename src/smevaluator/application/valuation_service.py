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
Valuation Service

Single entry point for one valuation request. Wires the components in order:

    validate -> sector lookup -> normalize EBITDA -> multi-method blend
             -> discounts/premiums -> net debt -> equity price

and runs the anomaly scanner over the same statements to attach anomalies
and a confidence grade. Holds no per-request state; one service instance can
value any number of requests.
"""

import logging
from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from smevaluator.config.settings import EngineSettings, get_settings
from smevaluator.domain.exceptions import InvalidStatement
from smevaluator.domain.models.financials import (
    DebtLikeItems,
    FinancialStatement,
    NormalizationAdjustment,
    NormalizationInputs,
)
from smevaluator.domain.models.numbers import ZERO, to_decimal
from smevaluator.domain.models.risk import MarketStatistics, RiskProfile
from smevaluator.domain.models.sector import SectorMatchType
from smevaluator.domain.models.valuation import ValuationResult
from smevaluator.domain.services.anomaly_scanner import AnomalyScanner
from smevaluator.domain.services.ebitda_normalizer import EbitdaNormalizer
from smevaluator.domain.services.sector_registry import SectorRegistry, get_sector_registry
from smevaluator.domain.services.statement_validation import (
    StatementValidator,
    ValidationIssue,
    ValidationSeverity,
)
from smevaluator.domain.services.valuation.adjustment_engine import AdjustmentEngine
from smevaluator.domain.services.valuation.net_debt import compute_net_debt
from smevaluator.domain.services.valuation.valuator import MultiMethodValuator

logger = logging.getLogger(__name__)

SECTOR_DEFAULT_FALLBACK = "SECTOR_DEFAULT_FALLBACK"


@dataclass(frozen=True)
class ValuationRequest:
    """Everything needed to value one company."""

    statements: Tuple[FinancialStatement, ...]
    sector_code: Optional[str] = None
    inputs: NormalizationInputs = field(default_factory=NormalizationInputs)
    adjustments: Tuple[NormalizationAdjustment, ...] = ()
    risk: RiskProfile = field(default_factory=RiskProfile)
    market: Optional[MarketStatistics] = None
    debt_like: DebtLikeItems = field(default_factory=DebtLikeItems)
    asset_revaluation: Decimal = ZERO

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ValuationRequest":
        """Build a request from a parsed JSON document.

        Raises:
            InvalidStatement: if any part of the payload cannot be parsed
        """
        try:
            statements = tuple(FinancialStatement.from_dict(s) for s in payload.get("statements") or ())
            revaluation = to_decimal(payload.get("asset_revaluation"))
            return cls(
                statements=statements,
                sector_code=payload.get("sector_code"),
                inputs=NormalizationInputs.from_dict(payload.get("normalization_inputs")),
                adjustments=tuple(NormalizationAdjustment.from_dict(a) for a in payload.get("adjustments") or ()),
                risk=RiskProfile.from_dict(payload.get("risk")),
                market=MarketStatistics.from_dict(payload.get("market")),
                debt_like=DebtLikeItems.from_dict(payload.get("debt_like")),
                asset_revaluation=revaluation if revaluation is not None else ZERO,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidStatement(
                "Malformed valuation request",
                [ValidationIssue("request", ValidationSeverity.CRITICAL, str(exc))],
            ) from exc

    def other_amounts(self) -> Dict[str, Optional[Decimal]]:
        """Amounts outside the statements and normalization inputs, keyed by request field."""
        amounts: Dict[str, Optional[Decimal]] = {"asset_revaluation": self.asset_revaluation}
        for item in fields(self.debt_like):
            amounts[f"debt_like.{item.name}"] = getattr(self.debt_like, item.name)
        for index, adjustment in enumerate(self.adjustments):
            amounts[f"adjustments[{index}].delta"] = adjustment.delta
        return amounts


class ValuationService:
    """
    Runs the full valuation pipeline.

    Example:
        >>> service = ValuationService()
        >>> result = service.value(ValuationRequest.from_dict(payload))
        >>> result.equity_price.medium
    """

    def __init__(self, settings: Optional[EngineSettings] = None, registry: Optional[SectorRegistry] = None):
        self.settings = settings or get_settings()
        self.registry = registry or get_sector_registry()
        self.validator = StatementValidator(self.settings.score.max_plausible_headcount)
        self.normalizer = EbitdaNormalizer(self.settings.normalization)
        self.valuator = MultiMethodValuator(self.settings)
        self.adjustment_engine = AdjustmentEngine(self.settings)
        self.scanner = AnomalyScanner(self.settings.anomalies, self.settings.confidence)

    def value(self, request: ValuationRequest) -> ValuationResult:
        """Value one company.

        Raises:
            InvalidStatement: if the statements or qualitative inputs are rejected
            InsufficientData: if no valuation method can run
        """
        statements = request.statements
        self.validator.validate_or_raise(statements, request.risk, request.inputs, request.other_amounts())

        match = self.registry.lookup(request.sector_code)
        profile = match.profile
        chain = self.adjustment_engine.build_adjustments(profile, request.risk)

        derived = self.normalizer.derive_adjustments(statements[0], request.inputs)
        merged = self.normalizer.merge_adjustments(request.adjustments, derived)
        normalized = self.normalizer.normalize(statements, merged)

        blended = self.valuator.valuate(
            normalized,
            statements,
            profile,
            market=request.market,
            risk=request.risk,
            asset_revaluation=request.asset_revaluation,
        )

        net_debt = compute_net_debt(
            statements[0],
            request.inputs,
            request.debt_like,
            request.risk,
            self.settings.discounts.litigation_provision_rates,
        )
        adjusted = self.adjustment_engine.apply(blended, chain, net_debt, request.risk.ownership_fraction)

        scan = self.scanner.scan(statements, request.risk, normalized.assessed_categories)

        flags: List[str] = []
        if match.matched_by is SectorMatchType.DEFAULT:
            flags.append(SECTOR_DEFAULT_FALLBACK)
        for flag in blended.flags + adjusted.flags:
            if flag not in flags:
                flags.append(flag)

        result = ValuationResult(
            sector_code=profile.code,
            sector_name=profile.name,
            sector_matched_by=match.matched_by.value,
            normalized_ebitda=normalized,
            blended=blended,
            adjustments=adjusted.adjustments,
            cumulative_discount=adjusted.cumulative_discount,
            premium_factor=adjusted.premium_factor,
            overall_factor=adjusted.overall_factor,
            discount_ceiling=adjusted.discount_ceiling,
            ceiling_exceeded=adjusted.ceiling_exceeded,
            enterprise_value=adjusted.enterprise_value,
            net_debt=adjusted.net_debt,
            ownership_fraction=adjusted.ownership_fraction,
            equity_price=adjusted.equity_price,
            anomalies=scan.anomalies,
            confidence=scan.confidence,
            flags=tuple(flags),
        )
        logger.info(
            f"Valued {profile.code} ({match.matched_by.value}): EV {adjusted.enterprise_value.low}-"
            f"{adjusted.enterprise_value.high}, equity {adjusted.equity_price.medium}, "
            f"confidence {scan.confidence.grade.value}, {len(scan.anomalies)} anomaly(ies)"
        )
        return result
