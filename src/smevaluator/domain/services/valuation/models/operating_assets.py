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
Operating asset estimates for capital-heavy trades.

Without an inventory of the vehicles or machinery, the assets are estimated
as a share of revenue. The estimate is the top of the range; the bottom is
discounted for wear and resale friction.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Tuple

from smevaluator.domain.models.numbers import ZERO, quantize_money, quantize_rate
from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.models.valuation import MethodResult
from smevaluator.domain.services.valuation.models.base import BaseValuationMethod, MethodOutput


class RevenueShareAssetMethod(BaseValuationMethod):
    """Values an asset base as ``revenue × share``, low end at ``× low factor``."""

    rationale: str

    def parameters(self) -> Tuple[Decimal, Decimal]:
        raise NotImplementedError

    def calculate(self) -> MethodOutput:
        revenue = self.context.revenue
        if revenue is None:
            return self.not_applicable("MISSING_REVENUE")
        if revenue <= ZERO:
            return self.not_applicable("NON_POSITIVE_REVENUE")

        share, low_factor = self.parameters()
        estimate = revenue * share
        return MethodResult(
            method=self.method_id,
            low=quantize_money(estimate * low_factor),
            high=quantize_money(estimate),
            rationale=self.rationale,
            multiple_low=quantize_rate(share * low_factor),
            multiple_high=quantize_rate(share),
            basis=revenue,
        )


class FleetValueMethod(RevenueShareAssetMethod):
    method_id = MethodId.FLEET_VALUE
    rationale = "FLEET_ESTIMATED_FROM_REVENUE"

    def parameters(self) -> Tuple[Decimal, Decimal]:
        params = self.context.settings.methods
        return params.fleet_revenue_share, params.fleet_low_factor


class EquipmentValueMethod(RevenueShareAssetMethod):
    method_id = MethodId.EQUIPMENT_VALUE
    rationale = "EQUIPMENT_ESTIMATED_FROM_REVENUE"

    def parameters(self) -> Tuple[Decimal, Decimal]:
        params = self.context.settings.methods
        return params.equipment_revenue_share, params.equipment_low_factor
