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
Confidence Grader - how much the inputs can be trusted, graded A to E.

Starts from 100 and deducts for:
- missing fiscal years (2 years -10, 1 year -20)
- missing statement fields (up to -20, proportional)
- normalization not assessed (-15) or partly assessed (up to -10)
- each unresolved high (-10) and medium (-3) anomaly

Any unresolved high-severity anomaly caps the grade at B. The valuation
amount never enters the grade.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import FrozenSet, List, Optional, Sequence

from smevaluator.config.settings import ConfidenceSettings
from smevaluator.domain.models.financials import FinancialStatement, NormalizationCategory
from smevaluator.domain.models.numbers import ONE, quantize_rate
from smevaluator.domain.models.valuation import Anomaly, ConfidenceGrade, ConfidenceReport, Severity
from smevaluator.domain.services.statement_validation import MAX_YEARS, StatementValidator

logger = logging.getLogger(__name__)

GRADE_ORDER = [ConfidenceGrade.A, ConfidenceGrade.B, ConfidenceGrade.C, ConfidenceGrade.D, ConfidenceGrade.E]


def _points(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


class ConfidenceGrader:
    """Derives the confidence report from completeness, normalization and anomalies."""

    def __init__(self, settings: Optional[ConfidenceSettings] = None):
        self.settings = settings or ConfidenceSettings()

    def grade(
        self,
        statements: Sequence[FinancialStatement],
        anomalies: Sequence[Anomaly],
        assessed_categories: FrozenSet[NormalizationCategory] = frozenset(),
    ) -> ConfidenceReport:
        s = self.settings
        score = 100
        reasons: List[str] = []

        years = len(statements)
        if years < MAX_YEARS:
            score -= s.one_year_penalty if years <= 1 else s.two_years_penalty
            reasons.append("MISSING_YEARS")

        completeness, _ = StatementValidator.completeness(statements)
        completeness_penalty = _points((ONE - completeness) * s.completeness_max_penalty)
        if completeness_penalty:
            score -= completeness_penalty
            reasons.append("INCOMPLETE_FIELDS")

        total_categories = len(NormalizationCategory)
        assessed = len(assessed_categories)
        if assessed == 0:
            normalization = "none"
            score -= s.normalization_missing_penalty
            reasons.append("NORMALIZATION_NOT_ASSESSED")
        elif assessed < total_categories:
            normalization = "partial"
            missing_share = Decimal(total_categories - assessed) / Decimal(total_categories)
            score -= _points(missing_share * s.normalization_partial_max_penalty)
            reasons.append("NORMALIZATION_PARTIAL")
        else:
            normalization = "full"

        unresolved = [a for a in anomalies if not a.resolved]
        high = sum(1 for a in unresolved if a.severity is Severity.HIGH)
        medium = sum(1 for a in unresolved if a.severity is Severity.MEDIUM)
        if high:
            score -= high * s.high_anomaly_penalty
            reasons.append("UNRESOLVED_HIGH_ANOMALIES")
        if medium:
            score -= medium * s.medium_anomaly_penalty
            reasons.append("UNRESOLVED_MEDIUM_ANOMALIES")

        score = max(0, min(100, score))
        grade = self.score_to_grade(score)

        capped = False
        cap = ConfidenceGrade(s.high_anomaly_grade_cap)
        if high and GRADE_ORDER.index(grade) < GRADE_ORDER.index(cap):
            grade = cap
            capped = True
            reasons.append("GRADE_CAPPED_BY_HIGH_ANOMALY")

        logger.debug(f"Confidence {grade.value} (score {score}, reasons {reasons})")
        return ConfidenceReport(
            grade=grade,
            score=score,
            years_available=years,
            completeness=quantize_rate(completeness),
            normalization_assessed=normalization,
            unresolved_high=high,
            unresolved_medium=medium,
            reasons=tuple(reasons),
            capped=capped,
        )

    def score_to_grade(self, score: int) -> ConfidenceGrade:
        thresholds = self.settings.grade_thresholds
        for grade in GRADE_ORDER[:-1]:
            if score >= thresholds[grade.value]:
                return grade
        return ConfidenceGrade.E
