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
Adjusted net asset value.

Net asset value = book equity + revaluation deltas (property, equipment or
goodwill at market value, supplied by the caller). Used as a floor: the
valuator keeps it in the blend even when it sits below the other methods.
"""

from __future__ import annotations

from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput


class AssetBasedMethod(BaseValuationMethod):
    method_id = MethodId.ASSET_BASED

    def calculate(self) -> MethodOutput:
        ctx = self.context
        equity = ctx.latest.equity
        if equity is None:
            return self.not_applicable("MISSING_EQUITY")

        net_assets = equity + ctx.asset_revaluation
        if net_assets <= ZERO:
            return self.not_applicable("NON_POSITIVE_NET_ASSETS")

        low, high = self.spread(net_assets, ctx.settings.methods.asset_range_spread)
        return MethodResult(
            method=self.method_id,
            low=quantize_money(low),
            high=quantize_money(high),
            rationale="EQUITY_PLUS_REVALUATION" if ctx.asset_revaluation else "BOOK_EQUITY",
            basis=quantize_money(net_assets),
        )
