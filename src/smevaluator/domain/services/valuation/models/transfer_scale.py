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
Revenue scales applied as published, without company-level adjustment.

Business-transfer scales for shops, restaurants and healthcare practices are
quoted as a percentage of revenue. Unlike the revenue multiple method, the
sector range is applied as is: no market reweighting and no size, location
or growth bands.
"""

from __future__ import annotations

from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput


class TradeGoodwillMethod(BaseValuationMethod):
    """Value of the business as a going concern (fonds de commerce)."""

    method_id = MethodId.TRADE_GOODWILL
    rationale = "REVENUE_X_TRANSFER_SCALE"

    def calculate(self) -> MethodOutput:
        ctx = self.context
        revenue = ctx.revenue
        if revenue is None:
            return self.not_applicable("MISSING_REVENUE")
        if revenue <= ZERO:
            return self.not_applicable("NON_POSITIVE_REVENUE")
        scale = ctx.profile.revenue_multiple
        if scale is None:
            return self.not_applicable("NO_REVENUE_MULTIPLE_RANGE")

        return MethodResult(
            method=self.method_id,
            low=quantize_money(revenue * scale.min),
            high=quantize_money(revenue * scale.max),
            rationale=self.rationale,
            multiple_low=scale.min,
            multiple_high=scale.max,
            basis=revenue,
        )


class PracticeScaleMethod(TradeGoodwillMethod):
    """Healthcare practice and pharmacy transfer scales."""

    method_id = MethodId.PRACTICE_SCALE
    rationale = "REVENUE_X_PRACTICE_SCALE"
