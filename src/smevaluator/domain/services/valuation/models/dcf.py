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
Simplified discounted cash flow for SMEs without a business plan.

    FCF0 = normalized EBITDA × conversion ratio
    EV   = sum(FCF0 × (1+g)^t / (1+r)^t, t=1..N) + TV / (1+r)^N
    TV   = FCF_N × (1+g_terminal) / (r - g_terminal)

``g`` is the trailing revenue growth clamped to configured bounds, or the
long-term default when there is no usable prior year.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from smevaluator.domain.models.numbers import ZERO, clamp, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput

logger = logging.getLogger(__name__)

GROWTH_CLAMPED = "GROWTH_CLAMPED"
DEFAULT_GROWTH_USED = "DEFAULT_GROWTH_USED"


class DCFMethod(BaseValuationMethod):
    method_id = MethodId.DCF

    def calculate(self) -> MethodOutput:
        ctx = self.context
        params = ctx.settings.dcf
        ebitda = ctx.ebitda
        if ebitda is None:
            return self.not_applicable("MISSING_EBITDA")
        if ebitda <= ZERO:
            return self.not_applicable("NON_POSITIVE_EBITDA")

        flags = []
        trailing = ctx.revenue_growth
        if trailing is None:
            growth = params.default_growth
            flags.append(DEFAULT_GROWTH_USED)
        else:
            growth = clamp(trailing, params.min_growth, params.max_growth)
            if growth != trailing:
                flags.append(GROWTH_CLAMPED)

        fcf0 = ebitda * params.fcf_conversion
        enterprise_value = self.present_value(
            fcf0, growth, params.discount_rate, params.terminal_growth, params.horizon_years
        )
        low, high = self.spread(enterprise_value, params.range_spread)
        logger.debug(f"DCF: FCF0 {fcf0}, growth {growth}, EV {enterprise_value}")

        return MethodResult(
            method=self.method_id,
            low=quantize_money(low),
            high=quantize_money(high),
            rationale=f"DCF_{params.horizon_years}Y_GORDON_TERMINAL",
            multiple_low=params.discount_rate,
            multiple_high=params.discount_rate,
            basis=quantize_money(fcf0),
            flags=tuple(flags),
        )

    @staticmethod
    def present_value(
        fcf0: Decimal, growth: Decimal, discount_rate: Decimal, terminal_growth: Decimal, years: int
    ) -> Decimal:
        total = ZERO
        fcf = fcf0
        for year in range(1, years + 1):
            fcf = fcf * (1 + growth)
            total += fcf / (1 + discount_rate) ** year
        terminal_value = fcf * (1 + terminal_growth) / (discount_rate - terminal_growth)
        return total + terminal_value / (1 + discount_rate) ** years
