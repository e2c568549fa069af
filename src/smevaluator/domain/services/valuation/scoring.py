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
Global 0-100 score attached to a blended valuation.

Score = base (50) + size points + age points + margin gap vs the sector
benchmark (only beyond ±5 points, capped at ±15) + productivity + location,
then +10 for positive EBITDA and +10 for a margin above the benchmark,
clamped to [0, 100]. Every contribution is returned by name.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional, Tuple

from smevaluator.config.settings import ScoreSettings, band_value
from smevaluator.domain.models.financials import FinancialStatement, NormalizedEbitda
from smevaluator.domain.models.numbers import HUNDRED, ZERO, safe_divide
from smevaluator.domain.models.risk import RiskProfile
from smevaluator.domain.models.sector import SectorProfile

logger = logging.getLogger(__name__)

IMPLAUSIBLE_HEADCOUNT = "IMPLAUSIBLE_HEADCOUNT"


@dataclass(frozen=True)
class ScoreBreakdown:
    score: int
    factors: Dict[str, int]
    flags: Tuple[str, ...] = ()


def _to_int(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


class GlobalScorer:
    """Computes the global score from size, age, profitability and team figures."""

    def __init__(self, settings: Optional[ScoreSettings] = None):
        self.settings = settings or ScoreSettings()

    def score(
        self,
        latest: FinancialStatement,
        normalized: NormalizedEbitda,
        profile: SectorProfile,
        risk: RiskProfile,
    ) -> ScoreBreakdown:
        s = self.settings
        factors: Dict[str, int] = {}
        flags = []
        revenue = latest.revenue

        if revenue is not None:
            factors["size"] = _to_int(band_value(s.size_points, revenue))
        if risk.years_in_operation is not None:
            factors["age"] = _to_int(band_value(s.age_points, Decimal(risk.years_in_operation)))

        margin = None
        if normalized.value is not None and revenue is not None and revenue > ZERO:
            margin = normalized.value / revenue * HUNDRED
            gap = margin - profile.benchmark_net_margin
            if abs(gap) > s.margin_gap_threshold:
                factors["margin_gap"] = max(-s.margin_gap_cap, min(s.margin_gap_cap, _to_int(gap)))

        productivity = self._productivity_points(latest, flags)
        if productivity is not None:
            factors["productivity"] = productivity

        if risk.location_band:
            points = s.location_points.get(risk.location_band, 0)
            if points:
                factors["location"] = points

        if normalized.value is not None and normalized.value > ZERO:
            factors["positive_ebitda"] = s.positive_ebitda_bonus
        if margin is not None and margin > profile.benchmark_net_margin:
            factors["margin_above_benchmark"] = s.margin_bonus

        total = s.base + sum(factors.values())
        return ScoreBreakdown(score=max(0, min(100, total)), factors=factors, flags=tuple(flags))

    def _productivity_points(self, latest: FinancialStatement, flags: list) -> Optional[int]:
        headcount = latest.headcount
        if headcount is None or latest.revenue is None:
            return None
        if not 1 <= headcount <= self.settings.max_plausible_headcount:
            logger.warning(f"Implausible headcount {headcount} ignored in productivity ratio")
            flags.append(IMPLAUSIBLE_HEADCOUNT)
            return None

        per_employee = safe_divide(latest.revenue, Decimal(headcount))
        if per_employee > self.settings.productivity_high:
            return self.settings.productivity_points
        if per_employee < self.settings.productivity_low:
            return -self.settings.productivity_points
        return None
