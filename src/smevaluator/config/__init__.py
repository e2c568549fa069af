"""
Configuration Layer

Engine configuration with YAML and environment variable support.
"""

from smevaluator.config.settings import (
    AnomalySettings,
    Band,
    ConfidenceSettings,
    DCFSettings,
    DiscountSettings,
    EngineSettings,
    MethodSettings,
    MultipleBandSettings,
    NormalizationSettings,
    ScoreSettings,
    band_value,
    get_settings,
)

__all__ = [
    "AnomalySettings",
    "Band",
    "ConfidenceSettings",
    "DCFSettings",
    "DiscountSettings",
    "EngineSettings",
    "MethodSettings",
    "MultipleBandSettings",
    "NormalizationSettings",
    "ScoreSettings",
    "band_value",
    "get_settings",
]
