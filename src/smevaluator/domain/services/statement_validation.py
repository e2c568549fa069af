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
Statement Validation - pre-flight checks on a valuation request.

Every check runs and every issue is collected, so a caller gets the full list
in one ``InvalidStatement`` instead of fixing problems one at a time. Issues
of severity ERROR or CRITICAL reject the request before any computation;
WARNING and INFO issues are reported but let it through.

Usage:
    from smevaluator.domain.services.statement_validation import StatementValidator

    result = StatementValidator().validate(statements, risk)
    if result.has_errors():
        raise InvalidStatement("Rejected", result.issues)
"""

import logging
from dataclasses import dataclass, field, fields
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from smevaluator.domain.exceptions import InvalidStatement
from smevaluator.domain.models.financials import MONETARY_FIELDS, FinancialStatement, NormalizationInputs
from smevaluator.domain.models.numbers import ONE, ZERO
from smevaluator.domain.models.risk import RiskProfile

logger = logging.getLogger(__name__)

MAX_YEARS = 3

# Amounts that can never be negative on a set of statutory accounts
NON_NEGATIVE_FIELDS = ("revenue", "inventory", "trade_receivables", "trade_payables", "financial_debt")

# Largest accepted absolute amount; every derived figure must still quantize to the cent
MAX_ABS_AMOUNT = Decimal("1e15")


class ValidationSeverity(Enum):
    """Severity levels for validation issues."""

    INFO = "info"  # Informational, no action needed
    WARNING = "warning"  # Suspicious value, computation continues
    ERROR = "error"  # Request rejected
    CRITICAL = "critical"  # Request rejected, series unusable


@dataclass
class ValidationIssue:
    """Represents a single validation issue found in the request."""

    field: str
    severity: ValidationSeverity
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.field}: {self.message}"


@dataclass
class ValidationResult:
    """Result of request validation containing all findings."""

    completeness: Decimal
    issues: List[ValidationIssue] = field(default_factory=list)
    missing_fields: List[str] = field(default_factory=list)

    def has_errors(self) -> bool:
        return any(i.severity in (ValidationSeverity.ERROR, ValidationSeverity.CRITICAL) for i in self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors()

    def get_issues_by_severity(self, severity: ValidationSeverity) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == severity]


class StatementValidator:
    """Validates a statement series and its qualitative bundle before valuation."""

    def __init__(self, max_plausible_headcount: int = 100000, max_abs_amount: Decimal = MAX_ABS_AMOUNT):
        self.max_plausible_headcount = max_plausible_headcount
        self.max_abs_amount = max_abs_amount

    def validate(
        self,
        statements: Sequence[FinancialStatement],
        risk: Optional[RiskProfile] = None,
        inputs: Optional[NormalizationInputs] = None,
        other_amounts: Optional[Mapping[str, Optional[Decimal]]] = None,
    ) -> ValidationResult:
        issues: List[ValidationIssue] = []
        issues.extend(self._check_series(statements))
        for statement in statements:
            issues.extend(self._check_statement(statement))
        if risk is not None:
            issues.extend(self._check_risk(risk))
        if inputs is not None:
            issues.extend(self._check_inputs(inputs))
        issues.extend(self._check_magnitudes(statements, risk, inputs, other_amounts))

        completeness, missing = self.completeness(statements)
        result = ValidationResult(completeness=completeness, issues=issues, missing_fields=missing)
        if issues:
            logger.debug(f"Validation found {len(issues)} issue(s): {'; '.join(str(i) for i in issues)}")
        return result

    def validate_or_raise(
        self,
        statements: Sequence[FinancialStatement],
        risk: Optional[RiskProfile] = None,
        inputs: Optional[NormalizationInputs] = None,
        other_amounts: Optional[Mapping[str, Optional[Decimal]]] = None,
    ) -> ValidationResult:
        """Validate and raise ``InvalidStatement`` when the request must be rejected."""
        result = self.validate(statements, risk, inputs, other_amounts)
        if result.has_errors():
            rejected = [
                i for i in result.issues if i.severity in (ValidationSeverity.ERROR, ValidationSeverity.CRITICAL)
            ]
            raise InvalidStatement("Financial statements rejected", rejected)
        return result

    @staticmethod
    def completeness(statements: Sequence[FinancialStatement]) -> Tuple[Decimal, List[str]]:
        """Share of monetary fields supplied across the series, and the missing ones."""
        if not statements:
            return ZERO, list(MONETARY_FIELDS)
        total = len(MONETARY_FIELDS) * len(statements)
        present = sum(len(s.present_fields()) for s in statements)
        missing = sorted({name for s in statements for name in MONETARY_FIELDS if getattr(s, name) is None})
        return Decimal(present) / Decimal(total), missing

    def _check_series(self, statements: Sequence[FinancialStatement]) -> List[ValidationIssue]:
        issues = []
        if not statements:
            return [ValidationIssue("statements", ValidationSeverity.CRITICAL, "at least one fiscal year is required")]
        if len(statements) > MAX_YEARS:
            issues.append(
                ValidationIssue(
                    "statements",
                    ValidationSeverity.CRITICAL,
                    f"at most {MAX_YEARS} fiscal years are accepted, got {len(statements)}",
                    len(statements),
                )
            )

        years = [s.year for s in statements]
        if len(set(years)) != len(years):
            issues.append(ValidationIssue("year", ValidationSeverity.CRITICAL, "fiscal years must be unique", years))
        elif years != sorted(years, reverse=True):
            issues.append(
                ValidationIssue("year", ValidationSeverity.ERROR, "series must be ordered most-recent-first", years)
            )
        elif any(a - b != 1 for a, b in zip(years, years[1:])):
            issues.append(
                ValidationIssue("year", ValidationSeverity.WARNING, "fiscal years are not consecutive", years)
            )
        return issues

    def _check_statement(self, statement: FinancialStatement) -> List[ValidationIssue]:
        issues = []
        for name in NON_NEGATIVE_FIELDS:
            value = getattr(statement, name)
            if value is not None and value < ZERO:
                issues.append(
                    ValidationIssue(
                        f"{name}[{statement.year}]", ValidationSeverity.ERROR, "must not be negative", value
                    )
                )

        if statement.depreciation_amortization is not None and statement.depreciation_amortization < ZERO:
            issues.append(
                ValidationIssue(
                    f"depreciation_amortization[{statement.year}]",
                    ValidationSeverity.WARNING,
                    "negative depreciation charge (reversal?)",
                    statement.depreciation_amortization,
                )
            )

        if statement.headcount is not None:
            if statement.headcount < 0:
                issues.append(
                    ValidationIssue(
                        f"headcount[{statement.year}]",
                        ValidationSeverity.ERROR,
                        "must not be negative",
                        statement.headcount,
                    )
                )
            elif statement.headcount > self.max_plausible_headcount:
                issues.append(
                    ValidationIssue(
                        f"headcount[{statement.year}]",
                        ValidationSeverity.WARNING,
                        "implausible headcount, ignored in ratios",
                        statement.headcount,
                    )
                )

        if statement.present_fields() == [] and statement.reported_ebitda is None:
            issues.append(
                ValidationIssue(f"statement[{statement.year}]", ValidationSeverity.ERROR, "no figures supplied")
            )
        return issues

    def _check_risk(self, risk: RiskProfile) -> List[ValidationIssue]:
        issues = []
        if not ZERO < risk.ownership_fraction <= ONE:
            issues.append(
                ValidationIssue(
                    "ownership_fraction", ValidationSeverity.ERROR, "must be in (0, 1]", risk.ownership_fraction
                )
            )
        for name in ("top_client_share", "top3_client_share"):
            value = getattr(risk, name)
            if value is not None and not ZERO <= value <= ONE:
                issues.append(ValidationIssue(name, ValidationSeverity.ERROR, "must be a fraction in [0, 1]", value))
        if (
            risk.top_client_share is not None
            and risk.top3_client_share is not None
            and risk.top3_client_share < risk.top_client_share
        ):
            issues.append(
                ValidationIssue(
                    "top3_client_share",
                    ValidationSeverity.ERROR,
                    "top-3 share cannot be below the top client share",
                    risk.top3_client_share,
                )
            )
        for index, claim in enumerate(risk.litigation):
            if claim.amount < ZERO:
                issues.append(
                    ValidationIssue(
                        f"litigation[{index}].amount", ValidationSeverity.ERROR, "must not be negative", claim.amount
                    )
                )
        if risk.years_in_operation is not None and risk.years_in_operation < 0:
            issues.append(
                ValidationIssue(
                    "years_in_operation", ValidationSeverity.ERROR, "must not be negative", risk.years_in_operation
                )
            )
        return issues

    def _check_inputs(self, inputs: NormalizationInputs) -> List[ValidationIssue]:
        issues = []
        if inputs.owner_count < 1:
            issues.append(
                ValidationIssue("owner_count", ValidationSeverity.ERROR, "must be at least 1", inputs.owner_count)
            )
        for name in (
            "owner_compensation",
            "rent_paid",
            "market_rent",
            "finance_lease_payments",
            "finance_lease_principal",
            "non_recurring_charges",
            "non_recurring_income",
            "family_compensation_excess",
            "family_compensation_shortfall",
            "shareholder_account_repayable",
        ):
            value = getattr(inputs, name)
            if value is not None and value < ZERO:
                issues.append(ValidationIssue(name, ValidationSeverity.ERROR, "must not be negative", value))
        if (
            inputs.shareholder_current_account is not None
            and inputs.shareholder_account_repayable is not None
            and inputs.shareholder_account_repayable > inputs.shareholder_current_account
        ):
            issues.append(
                ValidationIssue(
                    "shareholder_account_repayable",
                    ValidationSeverity.ERROR,
                    "repayable portion exceeds the current account balance",
                    inputs.shareholder_account_repayable,
                )
            )
        return issues

    def _check_magnitudes(
        self,
        statements: Sequence[FinancialStatement],
        risk: Optional[RiskProfile],
        inputs: Optional[NormalizationInputs],
        other_amounts: Optional[Mapping[str, Optional[Decimal]]],
    ) -> List[ValidationIssue]:
        """Reject amounts too large to value, wherever they appear in the request."""
        return [
            ValidationIssue(name, ValidationSeverity.ERROR, f"magnitude exceeds {self.max_abs_amount:,.0f}", value)
            for name, value in _request_amounts(statements, risk, inputs, other_amounts)
            if value is not None and abs(value) > self.max_abs_amount
        ]


def _request_amounts(
    statements: Sequence[FinancialStatement],
    risk: Optional[RiskProfile],
    inputs: Optional[NormalizationInputs],
    other_amounts: Optional[Mapping[str, Optional[Decimal]]],
) -> Iterator[Tuple[str, Optional[Decimal]]]:
    for statement in statements:
        for name in MONETARY_FIELDS + ("reported_ebitda",):
            yield f"{name}[{statement.year}]", getattr(statement, name)
    if risk is not None:
        for index, claim in enumerate(risk.litigation):
            yield f"litigation[{index}].amount", claim.amount
    if inputs is not None:
        for item in fields(inputs):
            value = getattr(inputs, item.name)
            if isinstance(value, Decimal):
                yield item.name, value
    if other_amounts:
        yield from other_amounts.items()
