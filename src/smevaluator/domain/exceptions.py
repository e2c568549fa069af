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

"""Exception taxonomy for the valuation engine.

    ValuationError
    ├── UnknownSector            recovered by the registry (default profile)
    ├── InsufficientData         every method excluded, nothing to blend
    ├── InvalidStatement         input rejected before any computation
    └── WeightConfigurationError sector weights do not sum to 1.0 (load time)
"""

from typing import Dict, List, Optional


class ValuationError(Exception):
    """Base exception for valuation engine errors"""

    pass


class UnknownSector(ValuationError):
    """No sector profile matches the supplied classification code."""

    def __init__(self, sector_code: str):
        self.sector_code = sector_code
        super().__init__(f"No sector profile matches code {sector_code!r}")


class InsufficientData(ValuationError):
    """Raised when no valuation method has the data it needs."""

    def __init__(self, message: str, excluded: Optional[Dict[str, str]] = None):
        self.excluded = dict(excluded or {})
        if self.excluded:
            details = ", ".join(f"{method}={reason}" for method, reason in sorted(self.excluded.items()))
            message = f"{message} ({details})"
        super().__init__(message)


class InvalidStatement(ValuationError):
    """Raised when the submitted financial statements fail validation.

    ``issues`` holds the individual ``ValidationIssue`` records so callers can
    report every problem at once instead of the first one only.
    """

    def __init__(self, message: str, issues: Optional[List] = None):
        self.issues = list(issues or [])
        if self.issues:
            message = f"{message}: " + "; ".join(str(issue) for issue in self.issues)
        super().__init__(message)


class WeightConfigurationError(ValuationError):
    """A sector profile's method weights do not sum to 1.0 within tolerance."""

    def __init__(self, sector_code: str, total):
        self.sector_code = sector_code
        self.total = total
        super().__init__(f"Method weights for sector {sector_code!r} sum to {total}, expected 1.0")
