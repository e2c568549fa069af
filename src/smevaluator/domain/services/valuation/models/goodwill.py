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
Goodwill method: net assets plus capitalized excess profit.

    excess profit = max(0, net result - net assets × required return)
    value         = max(0, net assets) + excess profit / capitalization rate
"""

from __future__ import annotations

from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput


class GoodwillMethod(BaseValuationMethod):
    method_id = MethodId.GOODWILL

    def calculate(self) -> MethodOutput:
        ctx = self.context
        latest = ctx.latest
        if latest.equity is None:
            return self.not_applicable("MISSING_EQUITY")
        if latest.net_result is None:
            return self.not_applicable("MISSING_NET_RESULT")

        params = ctx.settings.methods
        net_assets = latest.equity + ctx.asset_revaluation
        excess_profit = max(ZERO, latest.net_result - net_assets * params.goodwill_equity_return)
        goodwill = excess_profit / params.goodwill_capitalization_rate
        value = max(ZERO, net_assets) + goodwill
        if value <= ZERO:
            return self.not_applicable("NON_POSITIVE_GOODWILL_VALUE")

        low, high = self.spread(value, params.goodwill_range_spread)
        return MethodResult(
            method=self.method_id,
            low=quantize_money(low),
            high=quantize_money(high),
            rationale="NET_ASSETS_PLUS_EXCESS_PROFIT" if goodwill > ZERO else "NET_ASSETS_NO_EXCESS_PROFIT",
            multiple_low=params.goodwill_capitalization_rate,
            multiple_high=params.goodwill_capitalization_rate,
            basis=quantize_money(value),
        )
