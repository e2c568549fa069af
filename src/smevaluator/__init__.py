"""
smevaluator - valuation engine for small and medium-sized enterprises.

Turns up to three fiscal years of statements plus a qualitative risk bundle
into a normalized EBITDA, a blended enterprise-value range, an equity price
and a confidence grade.
"""

__version__ = "0.1.0"
