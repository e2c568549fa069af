"""
smevaluator CLI

Usage:
    smevaluator value request.json
    smevaluator sectors
"""

from .main import cli

__all__ = ["cli"]
