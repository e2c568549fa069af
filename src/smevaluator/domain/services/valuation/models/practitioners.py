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
Practitioners' method: mean of net asset value and capitalized earnings.

    value = (net assets + net result / capitalization rate) / 2
"""

from __future__ import annotations

from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput


class PractitionersMethod(BaseValuationMethod):
    method_id = MethodId.PRACTITIONERS

    def calculate(self) -> MethodOutput:
        ctx = self.context
        latest = ctx.latest
        if latest.equity is None:
            return self.not_applicable("MISSING_EQUITY")
        if latest.net_result is None:
            return self.not_applicable("MISSING_NET_RESULT")

        rate = ctx.settings.methods.practitioners_capitalization_rate
        net_assets = latest.equity + ctx.asset_revaluation
        value = (net_assets + latest.net_result / rate) / 2
        if value <= ZERO:
            return self.not_applicable("NON_POSITIVE_PRACTITIONERS_VALUE")

        low, high = self.spread(value, ctx.settings.methods.practitioners_range_spread)
        return MethodResult(
            method=self.method_id,
            low=quantize_money(low),
            high=quantize_money(high),
            rationale="MEAN_NET_ASSETS_CAPITALIZED_EARNINGS",
            multiple_low=rate,
            multiple_high=rate,
            basis=quantize_money(value),
        )
