"""Tests for the confidence grade."""

from decimal import Decimal

import pytest

from smevaluator.config.settings import ConfidenceSettings
from smevaluator.domain.models.financials import FinancialStatement, NormalizationCategory
from smevaluator.domain.models.risk import RiskProfile
from smevaluator.domain.models.valuation import Anomaly, AnomalyType, ConfidenceGrade, Severity
from smevaluator.domain.services.anomaly_scanner import AnomalyScanner
from smevaluator.domain.services.confidence_grader import ConfidenceGrader

ALL_CATEGORIES = frozenset(NormalizationCategory)


@pytest.fixture
def grader():
    return ConfidenceGrader(ConfidenceSettings())


@pytest.fixture
def three_years(full_statement_payload):
    return [FinancialStatement.from_dict({**full_statement_payload, "year": year}) for year in (2024, 2023, 2022)]


def _anomaly(severity, resolved=False):
    return Anomaly("TEST", AnomalyType.ALERT, "test", severity, resolved=resolved)


class TestConfidenceGrader:
    def test_complete_inputs_grade_a(self, grader, three_years):
        report = grader.grade(three_years, [], ALL_CATEGORIES)
        assert report.grade is ConfidenceGrade.A
        assert report.score == 100
        assert report.reasons == ()
        assert report.normalization_assessed == "full"

    def test_missing_years(self, grader, three_years):
        assert grader.grade(three_years[:2], [], ALL_CATEGORIES).score == 90
        report = grader.grade(three_years[:1], [], ALL_CATEGORIES)
        assert report.score == 80
        assert report.years_available == 1
        assert "MISSING_YEARS" in report.reasons

    def test_incomplete_fields(self, grader):
        statements = [FinancialStatement.from_dict({"year": 2024, "revenue": 100})]
        report = grader.grade(statements, [], ALL_CATEGORIES)
        assert report.completeness == Decimal("0.090909")
        # 100 - 20 (one year) - 18 (10 of 11 fields missing)
        assert report.score == 62
        assert report.grade is ConfidenceGrade.C

    def test_normalization_not_assessed(self, grader, three_years):
        report = grader.grade(three_years, [])
        assert report.score == 85
        assert report.normalization_assessed == "none"
        assert "NORMALIZATION_NOT_ASSESSED" in report.reasons

    def test_normalization_partly_assessed(self, grader, three_years):
        report = grader.grade(three_years, [], frozenset({NormalizationCategory.OWNER_COMPENSATION}))
        assert report.score == 92
        assert report.normalization_assessed == "partial"

    def test_anomaly_penalties(self, grader, three_years):
        anomalies = [_anomaly(Severity.MEDIUM), _anomaly(Severity.MEDIUM), _anomaly(Severity.LOW)]
        report = grader.grade(three_years, anomalies, ALL_CATEGORIES)
        assert report.score == 94
        assert report.unresolved_medium == 2

    def test_high_anomaly_caps_grade(self, grader, three_years):
        report = grader.grade(three_years, [_anomaly(Severity.HIGH)], ALL_CATEGORIES)
        assert report.score == 90
        assert report.grade is ConfidenceGrade.B
        assert report.capped
        assert "GRADE_CAPPED_BY_HIGH_ANOMALY" in report.reasons

    def test_resolved_anomalies_are_ignored(self, grader, three_years):
        report = grader.grade(three_years, [_anomaly(Severity.HIGH, resolved=True)], ALL_CATEGORIES)
        assert report.grade is ConfidenceGrade.A
        assert not report.capped

    def test_cap_never_raises_a_grade(self, grader):
        statements = [FinancialStatement.from_dict({"year": 2024, "revenue": 100})]
        report = grader.grade(statements, [_anomaly(Severity.HIGH)] * 3)
        assert report.grade is ConfidenceGrade.E
        assert not report.capped

    def test_score_is_clamped_at_zero(self, grader):
        statements = [FinancialStatement.from_dict({"year": 2024, "revenue": 100})]
        assert grader.grade(statements, [_anomaly(Severity.HIGH)] * 20).score == 0

    @pytest.mark.parametrize(
        "score, grade",
        [
            (85, ConfidenceGrade.A),
            (84, ConfidenceGrade.B),
            (55, ConfidenceGrade.C),
            (40, ConfidenceGrade.D),
            (39, ConfidenceGrade.E),
        ],
    )
    def test_grade_thresholds(self, grader, score, grade):
        assert grader.score_to_grade(score) is grade


class TestTopClientConcentration:
    def test_top_client_above_half_caps_grade_below_a(self, three_years):
        scanner = AnomalyScanner()
        result = scanner.scan(three_years, RiskProfile(top_client_share=Decimal("0.55")), ALL_CATEGORIES)
        [anomaly] = result.anomalies
        assert anomaly.severity is Severity.HIGH
        assert result.confidence.grade is ConfidenceGrade.B
        assert result.confidence.capped
