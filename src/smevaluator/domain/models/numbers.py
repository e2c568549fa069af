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
Decimal helpers shared by the domain models and services.

Every monetary figure and every rate goes through these helpers so that the
same inputs always quantize the same way, whatever the platform.
"""

from __future__ import annotations

import dataclasses
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

MONEY_QUANTUM = Decimal("0.01")
RATE_QUANTUM = Decimal("0.000001")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Optional[Decimal]:
    """Convert ``value`` to Decimal, keeping ``None`` as missing.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` and not its
    binary expansion.

    Raises:
        ValueError: if the value is not numeric or not finite
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, (float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a numeric amount: {value!r}") from exc
    else:
        raise ValueError(f"Not a numeric amount: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


def to_bool(value: Any, default: Optional[bool] = False) -> Optional[bool]:
    """Accept only real booleans; ``None`` falls back to ``default``.

    Strings such as ``"false"`` are rejected rather than read as truthy.

    Raises:
        ValueError: if the value is not a boolean
    """
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Expected a boolean, got {value!r}")
    return value


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_EVEN)


def quantize_rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_QUANTUM, rounding=ROUND_HALF_EVEN)


def clamp(value: Decimal, lower: Decimal, upper: Decimal) -> Decimal:
    return max(lower, min(value, upper))


def safe_divide(numerator: Optional[Decimal], denominator: Optional[Decimal]) -> Optional[Decimal]:
    """Return numerator / denominator with guards for zero/None."""
    if numerator is None or denominator is None or denominator == ZERO:
        return None
    return numerator / denominator


def to_plain(value: Any) -> Any:
    """Recursively convert a result payload into JSON-safe primitives."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, dict):
        return {str(to_plain(k)): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [to_plain(v) for v in value]
        return sorted(items) if isinstance(value, (set, frozenset)) else items
    return value
