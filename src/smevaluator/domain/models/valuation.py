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
Valuation result types.

``ValuationResult`` is the only externally visible output; everything else
here is an intermediate that ends up embedded in it. All types serialize to
plain JSON primitives through ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from smevaluator.domain.models.financials import NormalizedEbitda
from smevaluator.domain.models.numbers import ONE, ZERO, to_plain
from smevaluator.domain.models.sector import FactorDirection, MethodId


@dataclass(frozen=True)
class MethodResult:
    """Enterprise-value range produced by one valuation method.

    ``multiple_low``/``multiple_high`` hold the multiple actually applied (or
    the discount/capitalization rate for DCF and practitioners) after sector,
    market and band adjustments. ``basis`` is the figure it was applied to.
    """

    method: MethodId
    low: Decimal
    high: Decimal
    rationale: str
    multiple_low: Optional[Decimal] = None
    multiple_high: Optional[Decimal] = None
    basis: Optional[Decimal] = None
    weight: Decimal = ZERO
    flags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.low > self.high:
            raise ValueError(f"{self.method.value}: low {self.low} exceeds high {self.high}")

    @property
    def mid(self) -> Decimal:
        return (self.low + self.high) / 2

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class BlendedValuation:
    """Weighted blend of the included methods, before discounts and premiums."""

    low: Decimal
    medium: Decimal
    high: Decimal
    methods: Tuple[MethodResult, ...]
    excluded_methods: Dict[str, str] = field(default_factory=dict)
    global_score: int = 50
    score_factors: Dict[str, int] = field(default_factory=dict)
    flags: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


class AdjustmentKind(Enum):
    MINORITY = "minority"
    ILLIQUIDITY = "illiquidity"
    KEY_PERSON = "key_person"
    CONCENTRATION = "concentration"
    CONTROL_PREMIUM = "control_premium"
    AGREEMENT_CLAUSE = "agreement_clause"
    SECTOR_FACTOR = "sector_factor"


@dataclass(frozen=True)
class Adjustment:
    """A discount or premium, ``rate`` as a fraction (0.20 means 20%)."""

    kind: AdjustmentKind
    direction: FactorDirection
    rate: Decimal
    rationale: str

    @property
    def is_discount(self) -> bool:
        return self.direction is FactorDirection.DISCOUNT


@dataclass(frozen=True)
class NetDebtLine:
    code: str
    amount: Decimal
    kind: str  # "debt" or "cash"


@dataclass(frozen=True)
class NetDebtBreakdown:
    """Bridge from enterprise value to equity: debts and debt-like items less cash."""

    lines: Tuple[NetDebtLine, ...]
    total_debt: Decimal
    total_cash: Decimal
    net_debt: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class PriceRange:
    low: Decimal
    medium: Decimal
    high: Decimal


@dataclass(frozen=True)
class AdjustedValuation:
    """Output of the adjustment engine: adjusted EV and equity price."""

    adjustments: Tuple[Adjustment, ...]
    cumulative_discount: Decimal
    premium_factor: Decimal
    overall_factor: Decimal
    discount_ceiling: Decimal
    ceiling_exceeded: bool
    enterprise_value: PriceRange
    net_debt: NetDebtBreakdown
    ownership_fraction: Decimal
    equity_price: PriceRange
    flags: Tuple[str, ...] = ()


class AnomalyType(Enum):
    ALERT = "alert"
    QUESTION = "question"
    INFO = "info"


class Severity(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Anomaly:
    """Rule-based observation on the statements. Never alters the figures."""

    code: str
    type: AnomalyType
    category: str
    severity: Severity
    values: Dict[str, Decimal] = field(default_factory=dict)
    resolved: bool = False


class ConfidenceGrade(Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


@dataclass(frozen=True)
class ConfidenceReport:
    grade: ConfidenceGrade
    score: int
    years_available: int
    completeness: Decimal
    normalization_assessed: str  # "full", "partial" or "none"
    unresolved_high: int
    unresolved_medium: int
    reasons: Tuple[str, ...] = ()
    capped: bool = False


@dataclass(frozen=True)
class ScanResult:
    anomalies: Tuple[Anomaly, ...]
    confidence: ConfidenceReport


@dataclass(frozen=True)
class ValuationResult:
    """Complete, serializable answer to one valuation request."""

    sector_code: str
    sector_name: str
    sector_matched_by: str
    normalized_ebitda: NormalizedEbitda
    blended: BlendedValuation
    adjustments: Tuple[Adjustment, ...]
    cumulative_discount: Decimal
    premium_factor: Decimal
    overall_factor: Decimal
    discount_ceiling: Decimal
    ceiling_exceeded: bool
    enterprise_value: PriceRange
    net_debt: NetDebtBreakdown
    ownership_fraction: Decimal
    equity_price: PriceRange
    anomalies: Tuple[Anomaly, ...]
    confidence: ConfidenceReport
    flags: Tuple[str, ...] = ()

    @property
    def methods(self) -> Tuple[MethodResult, ...]:
        return self.blended.methods

    @property
    def is_whole_company(self) -> bool:
        return self.ownership_fraction == ONE

    def to_dict(self) -> Dict[str, Any]:
        payload = to_plain(self)
        payload["methods"] = [m.to_dict() for m in self.methods]
        return payload
