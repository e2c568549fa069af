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

"""Revenue multiple valuation method."""

from __future__ import annotations

import logging

from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput
from smevaluator.domain.services.valuation.multiple_adjuster import MultipleAdjuster

logger = logging.getLogger(__name__)


class RevenueMultipleMethod(BaseValuationMethod):
    method_id = MethodId.REVENUE_MULTIPLE

    def calculate(self) -> MethodOutput:
        ctx = self.context
        revenue = ctx.revenue
        if revenue is None:
            return self.not_applicable("MISSING_REVENUE")
        if revenue <= ZERO:
            return self.not_applicable("NON_POSITIVE_REVENUE")
        if ctx.profile.revenue_multiple is None:
            return self.not_applicable("NO_REVENUE_MULTIPLE_RANGE")

        market = ctx.market
        multiple = MultipleAdjuster(ctx.settings).adjust(
            ctx.profile.revenue_multiple,
            revenue=revenue,
            location_band=ctx.risk.location_band,
            growth=ctx.revenue_growth,
            observed_average=market.average_revenue_multiple if market else None,
            transaction_count=market.transaction_count if market else 0,
        )
        logger.debug(f"Revenue multiple {multiple.low}-{multiple.high}x (delta {multiple.delta}) on {revenue}")

        return MethodResult(
            method=self.method_id,
            low=quantize_money(revenue * multiple.low),
            high=quantize_money(revenue * multiple.high),
            rationale="REVENUE_X_SECTOR_MULTIPLE",
            multiple_low=multiple.low,
            multiple_high=multiple.high,
            basis=revenue,
            flags=multiple.flags,
        )
