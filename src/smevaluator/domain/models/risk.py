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

"""Qualitative risk answers and externally supplied market statistics."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from smevaluator.domain.models.numbers import ONE, to_bool, to_decimal


class KeyPersonDependence(Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LitigationSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class LitigationClaim:
    """A pending claim against the company (labour, tax, commercial...)."""

    amount: Decimal
    severity: LitigationSeverity
    nature: str = "other"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LitigationClaim":
        amount = to_decimal(payload.get("amount"))
        if amount is None:
            raise ValueError("Litigation claim requires an amount")
        return cls(
            amount=amount,
            severity=LitigationSeverity(payload.get("severity", "low")),
            nature=str(payload.get("nature", "other")),
        )


@dataclass(frozen=True)
class RiskProfile:
    """Qualitative answers that drive discounts, premiums and some anomalies.

    Shares are fractions (0.55 means 55%). ``ownership_fraction`` is the stake
    being valued; 1 means the whole company.
    """

    ownership_fraction: Decimal = ONE
    key_person_dependence: KeyPersonDependence = KeyPersonDependence.NONE
    transition_commitment: bool = False
    top_client_share: Optional[Decimal] = None
    top3_client_share: Optional[Decimal] = None
    litigation: Tuple[LitigationClaim, ...] = ()
    approval_clause: bool = False
    illiquid_shares: bool = False
    location_band: Optional[str] = None
    years_in_operation: Optional[int] = None
    sector_factors: Tuple[str, ...] = ()
    acknowledged_anomalies: FrozenSet[str] = frozenset()

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "RiskProfile":
        if not payload:
            return cls()
        ownership = to_decimal(payload.get("ownership_fraction"))
        years = payload.get("years_in_operation")
        return cls(
            ownership_fraction=ownership if ownership is not None else ONE,
            key_person_dependence=KeyPersonDependence(payload.get("key_person_dependence", "none")),
            transition_commitment=to_bool(payload.get("transition_commitment")),
            top_client_share=to_decimal(payload.get("top_client_share")),
            top3_client_share=to_decimal(payload.get("top3_client_share")),
            litigation=tuple(LitigationClaim.from_dict(c) for c in payload.get("litigation") or ()),
            approval_clause=to_bool(payload.get("approval_clause")),
            illiquid_shares=to_bool(payload.get("illiquid_shares")),
            location_band=payload.get("location_band"),
            years_in_operation=int(years) if years is not None else None,
            sector_factors=tuple(payload.get("sector_factors") or ()),
            acknowledged_anomalies=frozenset(payload.get("acknowledged_anomalies") or ()),
        )


@dataclass(frozen=True)
class MarketStatistics:
    """Summary of observed transactions, supplied by an upstream collaborator."""

    transaction_count: int
    average_price: Optional[Decimal] = None
    average_revenue_multiple: Optional[Decimal] = None
    average_ebitda_multiple: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> Optional["MarketStatistics"]:
        if not payload:
            return None
        return cls(
            transaction_count=int(payload.get("transaction_count", 0)),
            average_price=to_decimal(payload.get("average_price")),
            average_revenue_multiple=to_decimal(payload.get("average_revenue_multiple")),
            average_ebitda_multiple=to_decimal(payload.get("average_ebitda_multiple")),
        )
