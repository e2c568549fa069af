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
Sector profile schema.

A sector profile is a declarative record: which valuation methods apply and
with what weight, the multiple ranges buyers pay in that sector, the benchmark
net margin, and the sector's own premium/discount factors and questions.
Profiles are validated with Pydantic when the registry loads them and are
frozen afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MethodId(Enum):
    """Valuation methods the engine knows how to compute."""

    REVENUE_MULTIPLE = "revenue_multiple"
    EBITDA_MULTIPLE = "ebitda_multiple"
    DCF = "dcf"
    ASSET_BASED = "asset_based"
    PRACTITIONERS = "practitioners"
    GOODWILL = "goodwill"
    FLEET_VALUE = "fleet_value"
    EQUIPMENT_VALUE = "equipment_value"
    TRADE_GOODWILL = "trade_goodwill"
    PRACTICE_SCALE = "practice_scale"


REVENUE_RANGE_METHODS = frozenset(
    {MethodId.REVENUE_MULTIPLE, MethodId.TRADE_GOODWILL, MethodId.PRACTICE_SCALE}
)


class FactorDirection(Enum):
    PREMIUM = "premium"
    DISCOUNT = "discount"


class MultipleRange(BaseModel):
    """Closed [min, max] range of a valuation multiple."""

    model_config = ConfigDict(frozen=True)

    min: Decimal = Field(gt=0)
    max: Decimal = Field(gt=0)

    @model_validator(mode="after")
    def check_order(self) -> "MultipleRange":
        if self.min > self.max:
            raise ValueError(f"multiple range min {self.min} exceeds max {self.max}")
        return self


class AdjustmentFactor(BaseModel):
    """Sector-specific premium or discount, impact expressed in percent."""

    model_config = ConfigDict(frozen=True)

    id: str
    reason: str
    direction: FactorDirection
    impact_min: Decimal = Field(ge=0, le=100)
    impact_max: Decimal = Field(ge=0, le=100)

    @model_validator(mode="after")
    def check_order(self) -> "AdjustmentFactor":
        if self.impact_min > self.impact_max:
            raise ValueError(f"factor {self.id}: impact_min exceeds impact_max")
        return self

    @property
    def midpoint_rate(self) -> Decimal:
        """Midpoint of the impact range as a fraction."""
        return (self.impact_min + self.impact_max) / Decimal(200)


class SectorProfile(BaseModel):
    """Declarative valuation profile for one sector."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    naf_codes: Tuple[str, ...] = ()
    naf_prefixes: Tuple[str, ...] = ()
    methods: Mapping[MethodId, Decimal]
    revenue_multiple: Optional[MultipleRange] = None
    ebitda_multiple: Optional[MultipleRange] = None
    benchmark_net_margin: Decimal = Decimal("8")
    adjustment_factors: Tuple[AdjustmentFactor, ...] = ()
    questions: Tuple[str, ...] = ()

    @field_validator("methods")
    @classmethod
    def validate_methods(cls, v: Mapping[MethodId, Decimal]) -> Mapping[MethodId, Decimal]:
        if not v:
            raise ValueError("a sector profile needs at least one method")
        for method, weight in v.items():
            if weight <= 0:
                raise ValueError(f"weight for {method.value} must be positive")
        # profiles are shared by every request; the weights stay read-only
        return MappingProxyType(dict(v))

    @model_validator(mode="after")
    def check_multiples(self) -> "SectorProfile":
        needs_revenue_range = sorted(m.value for m in REVENUE_RANGE_METHODS.intersection(self.methods))
        if needs_revenue_range and self.revenue_multiple is None:
            raise ValueError(f"sector {self.code}: {', '.join(needs_revenue_range)} needs a revenue_multiple range")
        if MethodId.EBITDA_MULTIPLE in self.methods and self.ebitda_multiple is None:
            raise ValueError(f"sector {self.code}: ebitda_multiple method needs an ebitda_multiple range")
        return self

    @property
    def weight_total(self) -> Decimal:
        return sum(self.methods.values(), Decimal(0))

    def factor(self, factor_id: str) -> Optional[AdjustmentFactor]:
        for factor in self.adjustment_factors:
            if factor.id == factor_id:
                return factor
        return None


class SectorMatchType(Enum):
    """How a sector code was resolved to a profile."""

    PROFILE_CODE = "profile_code"
    CLASSIFICATION_CODE = "classification_code"
    PREFIX = "prefix"
    DEFAULT = "default"


@dataclass(frozen=True)
class SectorMatch:
    profile: SectorProfile
    matched_by: SectorMatchType
    requested_code: str
