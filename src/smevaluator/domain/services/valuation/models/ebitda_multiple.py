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
Normalized EBITDA multiple valuation method.

The multiple is picked from the sector range and moved by the company's size,
location and growth bands; it never depends on the EBITDA figure itself, so a
higher normalized EBITDA can only raise the estimate.
"""

from __future__ import annotations

import logging

from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput
from smevaluator.domain.services.valuation.multiple_adjuster import MultipleAdjuster

logger = logging.getLogger(__name__)

PARTIAL_EBITDA = "PARTIAL_EBITDA"


class EbitdaMultipleMethod(BaseValuationMethod):
    method_id = MethodId.EBITDA_MULTIPLE

    def calculate(self) -> MethodOutput:
        ctx = self.context
        ebitda = ctx.ebitda
        if ebitda is None:
            return self.not_applicable("MISSING_EBITDA")
        if ebitda <= ZERO:
            return self.not_applicable("NON_POSITIVE_EBITDA")
        if ctx.profile.ebitda_multiple is None:
            return self.not_applicable("NO_EBITDA_MULTIPLE_RANGE")

        market = ctx.market
        multiple = MultipleAdjuster(ctx.settings).adjust(
            ctx.profile.ebitda_multiple,
            revenue=ctx.revenue,
            location_band=ctx.risk.location_band,
            growth=ctx.revenue_growth,
            observed_average=market.average_ebitda_multiple if market else None,
            transaction_count=market.transaction_count if market else 0,
        )
        flags = multiple.flags + ((PARTIAL_EBITDA,) if ctx.normalized.partial_data else ())
        logger.debug(f"EBITDA multiple {multiple.low}-{multiple.high}x on normalized EBITDA {ebitda}")

        return MethodResult(
            method=self.method_id,
            low=quantize_money(ebitda * multiple.low),
            high=quantize_money(ebitda * multiple.high),
            rationale="NORMALIZED_EBITDA_X_SECTOR_MULTIPLE",
            multiple_low=multiple.low,
            multiple_high=multiple.high,
            basis=ebitda,
            flags=flags,
        )
