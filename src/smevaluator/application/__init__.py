"""
Application Layer

Entry points that wire the domain services together for one request.
"""

from smevaluator.application.valuation_service import ValuationRequest, ValuationService

__all__ = ["ValuationRequest", "ValuationService"]
