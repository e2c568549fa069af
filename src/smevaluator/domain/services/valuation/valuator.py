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
Multi-Method Valuator - computes and blends per-method enterprise values.

The valuator knows no sector: it iterates the profile's method list, runs the
matching method class, records every exclusion with its reason code, and
blends what is left with weights renormalized to 1:

    low  = sum(w_i × low_i)
    high = sum(w_i × high_i)
    medium = (low + high) / 2

If no method can run, ``InsufficientData`` is raised; a zero valuation is
never returned.
"""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from smevaluator.config.settings import EngineSettings
from smevaluator.domain.exceptions import InsufficientData
from smevaluator.domain.models.financials import FinancialStatement, NormalizedEbitda
from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.risk import MarketStatistics, RiskProfile
from smevaluator.domain.models.sector import MethodId, SectorProfile
from smevaluator.domain.models.valuation import BlendedValuation, MethodResult
from smevaluator.domain.services.valuation.models import METHOD_CLASSES, MethodNotApplicable, ValuationContext
from smevaluator.domain.services.valuation.scoring import GlobalScorer
from smevaluator.domain.services.weight_normalizer import WeightNormalizer

logger = logging.getLogger(__name__)

ASSET_FLOOR_BELOW_BLEND = "ASSET_FLOOR_BELOW_BLEND"
METHODS_EXCLUDED = "METHODS_EXCLUDED"
WEIGHTS_RENORMALIZED = "WEIGHTS_RENORMALIZED"
PARTIAL_EBITDA = "PARTIAL_EBITDA"


class MultiMethodValuator:
    """Runs the sector's methods and blends their ranges."""

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()
        self.normalizer = WeightNormalizer()
        self.scorer = GlobalScorer(self.settings.score)

    def valuate(
        self,
        normalized: NormalizedEbitda,
        statements: Sequence[FinancialStatement],
        profile: SectorProfile,
        market: Optional[MarketStatistics] = None,
        risk: Optional[RiskProfile] = None,
        asset_revaluation: Decimal = ZERO,
    ) -> BlendedValuation:
        """Blend every applicable method of ``profile``.

        Raises:
            InsufficientData: if every method is excluded
        """
        context = ValuationContext(
            normalized=normalized,
            statements=tuple(statements),
            profile=profile,
            settings=self.settings,
            market=market,
            risk=risk or RiskProfile(),
            asset_revaluation=asset_revaluation,
        )

        included: List[MethodResult] = []
        excluded: Dict[str, str] = {}
        for method_id in profile.methods:
            output = METHOD_CLASSES[method_id](context).calculate()
            if isinstance(output, MethodNotApplicable):
                logger.warning(f"{profile.code}: method {method_id.value} excluded ({output.reason})")
                excluded[method_id.value] = output.reason
            else:
                logger.debug(f"{profile.code}: {method_id.value} {output.low}-{output.high}")
                included.append(output)

        if not included:
            raise InsufficientData(f"No valuation method applicable for sector {profile.code}", excluded)

        weights = self.normalizer.normalize({r.method: profile.methods[r.method] for r in included})
        methods = [replace(r, weight=weights[r.method]) for r in included]

        low = quantize_money(sum((r.weight * r.low for r in methods), ZERO))
        high = quantize_money(sum((r.weight * r.high for r in methods), ZERO))
        medium = quantize_money((low + high) / 2)

        flags: List[str] = []
        if excluded:
            flags.extend([METHODS_EXCLUDED, WEIGHTS_RENORMALIZED])
        if normalized.partial_data:
            flags.append(PARTIAL_EBITDA)
        methods = self._flag_asset_floor(methods, medium, flags)
        for result in methods:
            for flag in result.flags:
                if flag not in flags:
                    flags.append(flag)

        breakdown = self.scorer.score(context.latest, normalized, profile, context.risk)
        for flag in breakdown.flags:
            if flag not in flags:
                flags.append(flag)

        logger.info(
            f"{profile.code}: blended EV {low}-{high} from {len(methods)} method(s), {len(excluded)} excluded"
        )
        return BlendedValuation(
            low=low,
            medium=medium,
            high=high,
            methods=tuple(methods),
            excluded_methods=excluded,
            global_score=breakdown.score,
            score_factors=breakdown.factors,
            flags=tuple(flags),
        )

    @staticmethod
    def _flag_asset_floor(methods: List[MethodResult], medium: Decimal, flags: List[str]) -> List[MethodResult]:
        """Keep the asset method in the blend, flagged when it sits below the blend."""
        result = []
        for method in methods:
            if method.method is MethodId.ASSET_BASED and method.mid < medium:
                method = replace(method, flags=method.flags + (ASSET_FLOOR_BELOW_BLEND,))
                flags.append(ASSET_FLOOR_BELOW_BLEND)
            result.append(method)
        return result
