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
Multiple Adjuster - moves a sector multiple range for one company.

Two independent corrections, applied in this order:

1. Market reweighting. When an upstream collaborator supplies observed
   transaction statistics with a large enough sample, the sector range is
   blended 70/30 with an observed range (average × 0.8 .. average × 1.2).
2. Band deltas. Size, location and growth bands each contribute a relative
   delta; their bounded sum is applied to both ends of the blended range.

The result is always clamped into the sector's configured range, so neither
observed transactions nor band deltas can leave it. A binding clamp is flagged.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from smevaluator.config.settings import EngineSettings, band_value
from smevaluator.domain.models.numbers import ZERO, clamp, quantize_rate
from smevaluator.domain.models.sector import MultipleRange

logger = logging.getLogger(__name__)

MULTIPLE_CLAMPED = "MULTIPLE_CLAMPED"
MARKET_SAMPLE_TOO_SMALL = "MARKET_SAMPLE_TOO_SMALL"
MARKET_REWEIGHTED = "MARKET_REWEIGHTED"


@dataclass(frozen=True)
class AdjustedMultiple:
    low: Decimal
    high: Decimal
    delta: Decimal
    components: Dict[str, Decimal]
    flags: Tuple[str, ...] = ()


class MultipleAdjuster:
    """Applies market reweighting and band deltas to a multiple range."""

    def __init__(self, settings: EngineSettings):
        self.settings = settings

    def band_delta(
        self,
        revenue: Optional[Decimal],
        location_band: Optional[str],
        growth: Optional[Decimal],
    ) -> Tuple[Decimal, Dict[str, Decimal]]:
        """Bounded sum of the size, location and growth deltas, with its parts."""
        bands = self.settings.bands
        components: Dict[str, Decimal] = {}
        if revenue is not None:
            components["size"] = band_value(bands.size_bands, revenue)
        if location_band:
            components["location"] = bands.location_bands.get(location_band, ZERO)
        if growth is not None:
            components["growth"] = band_value(bands.growth_bands, growth)

        total = sum(components.values(), ZERO)
        bounded = clamp(total, -bands.max_total_delta, bands.max_total_delta)
        return bounded, components

    def market_blend(
        self,
        reference: MultipleRange,
        observed_average: Optional[Decimal],
        transaction_count: int,
    ) -> Tuple[Decimal, Decimal, List[str]]:
        """Blend the reference range with observed transactions when the sample allows."""
        if observed_average is None or observed_average <= ZERO:
            return reference.min, reference.max, []
        if transaction_count < self.settings.market_min_sample:
            logger.info(
                f"Market sample of {transaction_count} below minimum {self.settings.market_min_sample}, ignored"
            )
            return reference.min, reference.max, [MARKET_SAMPLE_TOO_SMALL]

        weight = self.settings.market_weight
        low = reference.min * (1 - weight) + observed_average * self.settings.market_low_factor * weight
        high = reference.max * (1 - weight) + observed_average * self.settings.market_high_factor * weight
        return low, high, [MARKET_REWEIGHTED]

    def adjust(
        self,
        reference: MultipleRange,
        revenue: Optional[Decimal],
        location_band: Optional[str],
        growth: Optional[Decimal],
        observed_average: Optional[Decimal] = None,
        transaction_count: int = 0,
    ) -> AdjustedMultiple:
        low_bound, high_bound, flags = self.market_blend(reference, observed_average, transaction_count)
        delta, components = self.band_delta(revenue, location_band, growth)

        low = low_bound * (1 + delta)
        high = high_bound * (1 + delta)
        clamped_low = clamp(low, reference.min, reference.max)
        clamped_high = clamp(high, reference.min, reference.max)
        if clamped_low != low or clamped_high != high:
            flags.append(MULTIPLE_CLAMPED)

        return AdjustedMultiple(
            low=quantize_rate(clamped_low),
            high=quantize_rate(clamped_high),
            delta=delta,
            components=components,
            flags=tuple(flags),
        )
