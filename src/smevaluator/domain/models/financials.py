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

"""Financial statement and earnings-normalization data types.

Every monetary field is ``Optional[Decimal]``. ``None`` means the figure was
not supplied; ``Decimal(0)`` means it was supplied and is zero. Formulas must
keep the two apart.

Attributes of FinancialStatement:
    year: Fiscal year (unique within a submitted series)
    revenue: Net sales
    operating_result: Operating income (EBIT)
    net_result: Net income
    depreciation_amortization: D&A charge for the year
    provisions_charge: Charge to provisions for the year
    inventory: Closing inventory
    trade_receivables: Closing trade receivables
    trade_payables: Closing trade payables
    cash: Available cash (negative means overdraft)
    financial_debt: Bank and other financial borrowings
    equity: Shareholders' equity
    reported_ebitda: Explicit EBITDA when the source provides one
    headcount: Average employees, as reported upstream
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from smevaluator.domain.models.numbers import ZERO, to_bool, to_decimal, to_plain

MONETARY_FIELDS: Tuple[str, ...] = (
    "revenue",
    "operating_result",
    "net_result",
    "depreciation_amortization",
    "provisions_charge",
    "inventory",
    "trade_receivables",
    "trade_payables",
    "cash",
    "financial_debt",
    "equity",
)

EBITDA_COMPONENTS: Tuple[str, ...] = ("operating_result", "depreciation_amortization", "provisions_charge")


@dataclass(frozen=True)
class FinancialStatement:
    """One fiscal year of figures. Immutable once built."""

    year: int
    revenue: Optional[Decimal] = None
    operating_result: Optional[Decimal] = None
    net_result: Optional[Decimal] = None
    depreciation_amortization: Optional[Decimal] = None
    provisions_charge: Optional[Decimal] = None
    inventory: Optional[Decimal] = None
    trade_receivables: Optional[Decimal] = None
    trade_payables: Optional[Decimal] = None
    cash: Optional[Decimal] = None
    financial_debt: Optional[Decimal] = None
    equity: Optional[Decimal] = None
    reported_ebitda: Optional[Decimal] = None
    headcount: Optional[int] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "FinancialStatement":
        """Build a statement from a plain mapping (JSON boundary).

        Raises:
            ValueError: on a missing year, an unknown key or a non-numeric amount
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown statement fields: {', '.join(unknown)}")
        if payload.get("year") is None:
            raise ValueError("Statement is missing its fiscal year")

        values: Dict[str, Any] = {"year": int(payload["year"])}
        for name in MONETARY_FIELDS + ("reported_ebitda",):
            try:
                values[name] = to_decimal(payload.get(name))
            except ValueError as exc:
                raise ValueError(f"{name} ({payload['year']}): {exc}") from exc
        headcount = payload.get("headcount")
        values["headcount"] = int(headcount) if headcount is not None else None
        return cls(**values)

    def present_fields(self) -> List[str]:
        return [name for name in MONETARY_FIELDS if getattr(self, name) is not None]

    def accounting_ebitda(self) -> Tuple[Optional[Decimal], List[str]]:
        """Operating result + D&A + provisions, skipping missing components.

        Returns:
            (value, missing_components). ``value`` is None when every
            component is missing.
        """
        present = [getattr(self, name) for name in EBITDA_COMPONENTS if getattr(self, name) is not None]
        missing = [name for name in EBITDA_COMPONENTS if getattr(self, name) is None]
        if not present:
            return None, missing
        return sum(present, ZERO), missing

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


class NormalizationCategory(Enum):
    """Categories of earnings normalization. One delta per category per year."""

    OWNER_COMPENSATION = "owner_compensation"
    RELATED_PARTY_RENT = "related_party_rent"
    FINANCE_LEASE = "finance_lease"
    NON_RECURRING = "non_recurring"
    FAMILY_COMPENSATION = "family_compensation"
    RELATED_PARTY_CURRENT_ACCOUNT = "related_party_current_account"


@dataclass(frozen=True)
class NormalizationAdjustment:
    """A signed delta applied to reported EBITDA.

    A zero delta is meaningful: the category was checked and needed no
    adjustment.
    """

    category: NormalizationCategory
    delta: Decimal
    rationale: str = "EXPLICIT"
    source: str = "explicit"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NormalizationAdjustment":
        delta = to_decimal(payload.get("delta"))
        if delta is None:
            raise ValueError("Normalization adjustment requires a delta")
        return cls(
            category=NormalizationCategory(payload["category"]),
            delta=delta,
            rationale=str(payload.get("rationale", "EXPLICIT")),
        )


@dataclass(frozen=True)
class NormalizationInputs:
    """Raw answers from which normalization adjustments are derived.

    Every field is optional; a missing field means the point was not assessed.
    """

    owner_compensation: Optional[Decimal] = None
    owner_count: int = 1
    premises_related_party: Optional[bool] = None
    rent_paid: Optional[Decimal] = None
    market_rent: Optional[Decimal] = None
    finance_lease_payments: Optional[Decimal] = None
    finance_lease_principal: Optional[Decimal] = None
    non_recurring_charges: Optional[Decimal] = None
    non_recurring_income: Optional[Decimal] = None
    family_compensation_excess: Optional[Decimal] = None
    family_compensation_shortfall: Optional[Decimal] = None
    shareholder_current_account: Optional[Decimal] = None
    shareholder_account_repayable: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "NormalizationInputs":
        if not payload:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown normalization inputs: {', '.join(unknown)}")
        values: Dict[str, Any] = {}
        for name in known:
            if name not in payload:
                continue
            if name == "owner_count":
                values[name] = int(payload[name])
            elif name == "premises_related_party":
                values[name] = to_bool(payload[name], default=None)
            else:
                values[name] = to_decimal(payload[name])
        return cls(**values)

    def assessed_categories(self) -> FrozenSet[NormalizationCategory]:
        """Categories for which at least one answer was given."""
        assessed = set()
        if self.owner_compensation is not None:
            assessed.add(NormalizationCategory.OWNER_COMPENSATION)
        if self.premises_related_party is not None or self.rent_paid is not None or self.market_rent is not None:
            assessed.add(NormalizationCategory.RELATED_PARTY_RENT)
        if self.finance_lease_payments is not None or self.finance_lease_principal is not None:
            assessed.add(NormalizationCategory.FINANCE_LEASE)
        if self.non_recurring_charges is not None or self.non_recurring_income is not None:
            assessed.add(NormalizationCategory.NON_RECURRING)
        if self.family_compensation_excess is not None or self.family_compensation_shortfall is not None:
            assessed.add(NormalizationCategory.FAMILY_COMPENSATION)
        if self.shareholder_current_account is not None or self.shareholder_account_repayable is not None:
            assessed.add(NormalizationCategory.RELATED_PARTY_CURRENT_ACCOUNT)
        return frozenset(assessed)


@dataclass(frozen=True)
class NormalizedEbitda:
    """Reported earnings turned into the figure a buyer would underwrite."""

    base: Optional[Decimal]
    base_source: str
    partial_data: bool
    adjustments: Tuple[NormalizationAdjustment, ...] = ()
    total_delta: Decimal = ZERO
    value: Optional[Decimal] = None
    weighted_accounting_ebitda: Optional[Decimal] = None
    missing_components: Tuple[str, ...] = ()

    @property
    def assessed_categories(self) -> FrozenSet[NormalizationCategory]:
        return frozenset(adj.category for adj in self.adjustments)

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class DebtLikeItems:
    """Items outside the balance-sheet debt line that a buyer treats as debt."""

    off_balance_sheet_guarantees: Optional[Decimal] = None
    employee_profit_sharing_due: Optional[Decimal] = None
    unfunded_pension_obligations: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> "DebtLikeItems":
        if not payload:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown debt-like items: {', '.join(unknown)}")
        return cls(**{name: to_decimal(payload.get(name)) for name in known})
