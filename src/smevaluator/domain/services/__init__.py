"""
Domain Services

Sector registry, statement validation, EBITDA normalization, anomaly
scanning and confidence grading. The valuation pipeline itself lives in
``smevaluator.domain.services.valuation``.
"""

from smevaluator.domain.services.anomaly_scanner import AnomalyScanner
from smevaluator.domain.services.confidence_grader import ConfidenceGrader
from smevaluator.domain.services.ebitda_normalizer import EbitdaNormalizer
from smevaluator.domain.services.sector_registry import SectorRegistry, get_sector_registry
from smevaluator.domain.services.statement_validation import (
    StatementValidator,
    ValidationIssue,
    ValidationResult,
    ValidationSeverity,
)
from smevaluator.domain.services.weight_normalizer import WeightNormalizer, normalize_weights

__all__ = [
    "AnomalyScanner",
    "ConfidenceGrader",
    "EbitdaNormalizer",
    "SectorRegistry",
    "StatementValidator",
    "ValidationIssue",
    "ValidationResult",
    "ValidationSeverity",
    "WeightNormalizer",
    "get_sector_registry",
    "normalize_weights",
]
