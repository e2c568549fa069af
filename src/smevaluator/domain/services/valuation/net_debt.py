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
Net financial debt: the bridge from enterprise value to equity price.

    net debt = financial debt
             + finance-lease principal
             + repayable shareholder current account
             + off-balance-sheet guarantees
             + employee profit-sharing due
             + unfunded pension obligations
             + litigation provisions (share of each claim by severity)
             + bank overdraft
             - available cash

Each term is a separate line so the result can be audited. Missing inputs add
no line; a supplied zero adds a zero line.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from smevaluator.domain.models.financials import DebtLikeItems, FinancialStatement, NormalizationInputs
from smevaluator.domain.models.numbers import ZERO, quantize_money
from smevaluator.domain.models.risk import LitigationClaim, RiskProfile
from smevaluator.domain.models.valuation import NetDebtBreakdown, NetDebtLine

logger = logging.getLogger(__name__)

DEBT = "debt"
CASH = "cash"


def litigation_provision(claims: List[LitigationClaim], rates: Dict[str, Decimal]) -> Decimal:
    """Expected cost of pending claims: each amount times its severity rate."""
    return sum((claim.amount * rates.get(claim.severity.value, ZERO) for claim in claims), ZERO)


def compute_net_debt(
    statement: FinancialStatement,
    inputs: Optional[NormalizationInputs] = None,
    debt_like: Optional[DebtLikeItems] = None,
    risk: Optional[RiskProfile] = None,
    litigation_rates: Optional[Dict[str, Decimal]] = None,
) -> NetDebtBreakdown:
    """Build the net debt breakdown of the latest statement."""
    inputs = inputs or NormalizationInputs()
    debt_like = debt_like or DebtLikeItems()
    lines: List[NetDebtLine] = []

    def add(code: str, amount: Optional[Decimal], kind: str = DEBT) -> None:
        if amount is not None:
            lines.append(NetDebtLine(code, quantize_money(amount), kind))

    add("financial_debt", statement.financial_debt)
    add("finance_lease_principal", inputs.finance_lease_principal)
    add("shareholder_account_repayable", inputs.shareholder_account_repayable)
    add("off_balance_sheet_guarantees", debt_like.off_balance_sheet_guarantees)
    add("employee_profit_sharing_due", debt_like.employee_profit_sharing_due)
    add("unfunded_pension_obligations", debt_like.unfunded_pension_obligations)

    if risk is not None and risk.litigation:
        add("litigation_provisions", litigation_provision(list(risk.litigation), litigation_rates or {}))

    if statement.cash is not None:
        if statement.cash < ZERO:
            add("bank_overdraft", -statement.cash)
        else:
            add("cash", statement.cash, CASH)

    total_debt = sum((line.amount for line in lines if line.kind == DEBT), ZERO)
    total_cash = sum((line.amount for line in lines if line.kind == CASH), ZERO)
    net_debt = quantize_money(total_debt - total_cash)
    logger.debug(f"Net debt {net_debt} (debt {total_debt}, cash {total_cash})")

    return NetDebtBreakdown(
        lines=tuple(lines),
        total_debt=quantize_money(total_debt),
        total_cash=quantize_money(total_cash),
        net_debt=net_debt,
    )
