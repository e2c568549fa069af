"""
Domain Models

Immutable value objects shared by every service. Amounts are ``Decimal``;
rates and shares are fractions (0.2 means 20%).
"""

from smevaluator.domain.models.financials import (
    DebtLikeItems,
    FinancialStatement,
    NormalizationAdjustment,
    NormalizationCategory,
    NormalizationInputs,
    NormalizedEbitda,
)
from smevaluator.domain.models.risk import (
    KeyPersonDependence,
    LitigationClaim,
    LitigationSeverity,
    MarketStatistics,
    RiskProfile,
)
from smevaluator.domain.models.sector import (
    AdjustmentFactor,
    FactorDirection,
    MethodId,
    MultipleRange,
    SectorMatch,
    SectorMatchType,
    SectorProfile,
)
from smevaluator.domain.models.valuation import (
    AdjustedValuation,
    Adjustment,
    AdjustmentKind,
    Anomaly,
    AnomalyType,
    BlendedValuation,
    ConfidenceGrade,
    ConfidenceReport,
    MethodResult,
    NetDebtBreakdown,
    NetDebtLine,
    PriceRange,
    ScanResult,
    Severity,
    ValuationResult,
)

__all__ = [
    "AdjustedValuation",
    "Adjustment",
    "AdjustmentFactor",
    "AdjustmentKind",
    "Anomaly",
    "AnomalyType",
    "BlendedValuation",
    "ConfidenceGrade",
    "ConfidenceReport",
    "DebtLikeItems",
    "FactorDirection",
    "FinancialStatement",
    "KeyPersonDependence",
    "LitigationClaim",
    "LitigationSeverity",
    "MarketStatistics",
    "MethodId",
    "MethodResult",
    "MultipleRange",
    "NetDebtBreakdown",
    "NetDebtLine",
    "NormalizationAdjustment",
    "NormalizationCategory",
    "NormalizationInputs",
    "NormalizedEbitda",
    "PriceRange",
    "RiskProfile",
    "ScanResult",
    "SectorMatch",
    "SectorMatchType",
    "SectorProfile",
    "Severity",
    "ValuationResult",
]
