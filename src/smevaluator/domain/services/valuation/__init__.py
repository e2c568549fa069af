"""
Valuation pipeline: per-method valuation, blending, discounts and net debt.
"""

from smevaluator.domain.services.valuation.adjustment_engine import AdjustmentEngine
from smevaluator.domain.services.valuation.multiple_adjuster import AdjustedMultiple, MultipleAdjuster
from smevaluator.domain.services.valuation.net_debt import compute_net_debt, litigation_provision
from smevaluator.domain.services.valuation.scoring import GlobalScorer, ScoreBreakdown
from smevaluator.domain.services.valuation.valuator import MultiMethodValuator

__all__ = [
    "AdjustedMultiple",
    "AdjustmentEngine",
    "GlobalScorer",
    "MultiMethodValuator",
    "MultipleAdjuster",
    "ScoreBreakdown",
    "compute_net_debt",
    "litigation_provision",
]
