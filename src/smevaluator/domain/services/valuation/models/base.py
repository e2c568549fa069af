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
Common contracts for valuation methods.

Each concrete method inherits from ``BaseValuationMethod`` and returns either a
``MethodResult`` or a ``MethodNotApplicable`` carrying a reason code, so the
valuator can blend outputs and record exclusions the same way for every
method.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence, Tuple, Union

from smevaluator.config.settings import EngineSettings
from smevaluator.domain.models.financials import FinancialStatement, NormalizedEbitda
from smevaluator.domain.models.numbers import ZERO, safe_divide
from smevaluator.domain.models.risk import MarketStatistics, RiskProfile
from smevaluator.domain.models.sector import MethodId, SectorProfile
from smevaluator.domain.models.valuation import MethodResult


@dataclass(frozen=True)
class ValuationContext:
    """Everything a method may read. Shared by all methods of one request."""

    normalized: NormalizedEbitda
    statements: Tuple[FinancialStatement, ...]
    profile: SectorProfile
    settings: EngineSettings
    market: Optional[MarketStatistics] = None
    risk: RiskProfile = field(default_factory=RiskProfile)
    asset_revaluation: Decimal = ZERO

    @property
    def latest(self) -> FinancialStatement:
        return self.statements[0]

    @property
    def revenue(self) -> Optional[Decimal]:
        return self.latest.revenue

    @property
    def ebitda(self) -> Optional[Decimal]:
        return self.normalized.value

    @property
    def revenue_growth(self) -> Optional[Decimal]:
        """Trailing revenue growth N vs N-1, None without a usable prior year."""
        if len(self.statements) < 2:
            return None
        current, prior = self.statements[0].revenue, self.statements[1].revenue
        if current is None or prior is None or prior <= ZERO:
            return None
        return safe_divide(current - prior, prior)


@dataclass(frozen=True)
class MethodNotApplicable:
    """Return type for methods that cannot produce a valuation."""

    method: MethodId
    reason: str


MethodOutput = Union[MethodResult, MethodNotApplicable]


class BaseValuationMethod(ABC):
    """
    Base class for all valuation methods.

    Child classes set ``method_id`` and implement ``calculate``.
    """

    method_id: MethodId

    def __init__(self, context: ValuationContext):
        self.context = context

    @abstractmethod
    def calculate(self) -> MethodOutput:
        """Compute the method's enterprise-value range."""

    def not_applicable(self, reason: str) -> MethodNotApplicable:
        return MethodNotApplicable(self.method_id, reason)

    @staticmethod
    def spread(center: Decimal, spread: Decimal) -> Sequence[Decimal]:
        """Symmetric [center × (1 - spread), center × (1 + spread)] range."""
        return center * (1 - spread), center * (1 + spread)
