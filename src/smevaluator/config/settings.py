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
Pydantic settings models for the valuation engine.

Every business threshold the engine uses lives here: band tables, the owner
compensation schedule, DCF parameters, discount rates, anomaly thresholds and
confidence penalties. Defaults mirror the values practitioners use for French
SMEs; any of them can be overridden from a YAML file (with ``${VAR:-default}``
environment substitution) or from ``SMEVAL_*`` environment variables.
"""

from __future__ import annotations

import os
import re
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECTORS_PATH = Path(__file__).resolve().parent.parent / "data" / "sectors.yaml"


class Band(BaseModel):
    """One row of a band table: applies to values strictly below ``upper``.

    The last row of a table has ``upper=None`` and catches everything above.
    """

    model_config = ConfigDict(frozen=True)

    upper: Optional[Decimal] = None
    value: Decimal


def _validate_bands(bands: List[Band]) -> List[Band]:
    if not bands:
        raise ValueError("band table must not be empty")
    if bands[-1].upper is not None:
        raise ValueError("last band must be open-ended (upper: null)")
    uppers = [b.upper for b in bands[:-1]]
    if any(u is None for u in uppers):
        raise ValueError("only the last band may be open-ended")
    if uppers != sorted(uppers):
        raise ValueError("band upper bounds must be ascending")
    return bands


def band_value(bands: Sequence[Band], x: Decimal) -> Decimal:
    """Value of the first band whose upper bound is above ``x``."""
    for band in bands:
        if band.upper is None or x < band.upper:
            return band.value
    return bands[-1].value


# =============================================================================
# Multiple adjustment bands
# =============================================================================


class MultipleBandSettings(BaseSettings):
    """Relative deltas applied to sector multiples (0.05 means +5%)."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_BANDS_")

    size_bands: List[Band] = Field(
        default_factory=lambda: [
            Band(upper=Decimal("500000"), value=Decimal("-0.15")),
            Band(upper=Decimal("2000000"), value=Decimal("0")),
            Band(upper=Decimal("5000000"), value=Decimal("0.05")),
            Band(upper=None, value=Decimal("0.10")),
        ]
    )
    location_bands: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "ile_de_france": Decimal("0.05"),
            "metropole": Decimal("0.02"),
            "rural": Decimal("-0.05"),
        }
    )
    growth_bands: List[Band] = Field(
        default_factory=lambda: [
            Band(upper=Decimal("-0.10"), value=Decimal("-0.10")),
            Band(upper=Decimal("0"), value=Decimal("-0.05")),
            Band(upper=Decimal("0.10"), value=Decimal("0")),
            Band(upper=Decimal("0.20"), value=Decimal("0.05")),
            Band(upper=None, value=Decimal("0.10")),
        ]
    )
    max_total_delta: Decimal = Field(default=Decimal("0.25"))

    @field_validator("size_bands", "growth_bands")
    @classmethod
    def validate_bands(cls, v: List[Band]) -> List[Band]:
        return _validate_bands(v)

    @field_validator("max_total_delta")
    @classmethod
    def validate_max_total_delta(cls, v: Decimal) -> Decimal:
        """Validate the bound leaves multiples positive."""
        if not Decimal(0) <= v < Decimal(1):
            raise ValueError("max_total_delta must be in [0, 1)")
        return v


# =============================================================================
# Normalization Settings
# =============================================================================


class NormalizationSettings(BaseSettings):
    """EBITDA normalization configuration."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_NORMALIZATION_")

    # Normative loaded compensation of one manager, by revenue band
    owner_compensation_schedule: List[Band] = Field(
        default_factory=lambda: [
            Band(upper=Decimal("500000"), value=Decimal("45000")),
            Band(upper=Decimal("1000000"), value=Decimal("60000")),
            Band(upper=Decimal("2000000"), value=Decimal("80000")),
            Band(upper=Decimal("5000000"), value=Decimal("100000")),
            Band(upper=Decimal("10000000"), value=Decimal("130000")),
            Band(upper=Decimal("20000000"), value=Decimal("160000")),
            Band(upper=None, value=Decimal("200000")),
        ]
    )
    materiality_threshold: Decimal = Field(default=Decimal("0.10"))
    weighted_years: List[Decimal] = Field(
        default_factory=lambda: [Decimal("0.5"), Decimal("0.3"), Decimal("0.2")]
    )

    @field_validator("owner_compensation_schedule")
    @classmethod
    def validate_schedule(cls, v: List[Band]) -> List[Band]:
        return _validate_bands(v)

    @field_validator("materiality_threshold")
    @classmethod
    def validate_materiality(cls, v: Decimal) -> Decimal:
        if not Decimal(0) <= v < Decimal(1):
            raise ValueError("materiality_threshold must be in [0, 1)")
        return v


# =============================================================================
# Method Settings
# =============================================================================


class DCFSettings(BaseSettings):
    """Simplified DCF used for SMEs without a business plan."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_DCF_")

    fcf_conversion: Decimal = Field(default=Decimal("0.7"))
    discount_rate: Decimal = Field(default=Decimal("0.12"))
    terminal_growth: Decimal = Field(default=Decimal("0.02"))
    default_growth: Decimal = Field(default=Decimal("0.02"))
    min_growth: Decimal = Field(default=Decimal("-0.05"))
    max_growth: Decimal = Field(default=Decimal("0.10"))
    horizon_years: int = Field(default=5)
    range_spread: Decimal = Field(default=Decimal("0.20"))

    @field_validator("horizon_years")
    @classmethod
    def validate_horizon(cls, v: int) -> int:
        if not 1 <= v <= 15:
            raise ValueError("horizon_years must be between 1 and 15")
        return v

    @model_validator(mode="after")
    def check_rates(self) -> "DCFSettings":
        if self.terminal_growth >= self.discount_rate:
            raise ValueError("terminal_growth must be below discount_rate")
        if self.min_growth > self.max_growth:
            raise ValueError("min_growth exceeds max_growth")
        return self


class MethodSettings(BaseSettings):
    """Parameters of the methods that do not read a sector multiple range."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_METHODS_")

    asset_range_spread: Decimal = Field(default=Decimal("0.10"))
    practitioners_capitalization_rate: Decimal = Field(default=Decimal("0.10"))
    practitioners_range_spread: Decimal = Field(default=Decimal("0.15"))
    goodwill_equity_return: Decimal = Field(default=Decimal("0.05"))
    goodwill_capitalization_rate: Decimal = Field(default=Decimal("0.15"))
    goodwill_range_spread: Decimal = Field(default=Decimal("0.15"))
    fleet_revenue_share: Decimal = Field(default=Decimal("0.35"))
    fleet_low_factor: Decimal = Field(default=Decimal("0.7"))
    equipment_revenue_share: Decimal = Field(default=Decimal("0.20"))
    equipment_low_factor: Decimal = Field(default=Decimal("0.6"))


# =============================================================================
# Global Score Settings
# =============================================================================


class ScoreSettings(BaseSettings):
    """Points added to the 50-point base of the global score."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_SCORE_")

    base: int = Field(default=50)
    size_points: List[Band] = Field(
        default_factory=lambda: [
            Band(upper=Decimal("500000"), value=Decimal("-15")),
            Band(upper=Decimal("2000000"), value=Decimal("0")),
            Band(upper=Decimal("5000000"), value=Decimal("5")),
            Band(upper=None, value=Decimal("10")),
        ]
    )
    age_points: List[Band] = Field(
        default_factory=lambda: [
            Band(upper=Decimal("3"), value=Decimal("-10")),
            Band(upper=Decimal("5"), value=Decimal("0")),
            Band(upper=Decimal("10"), value=Decimal("5")),
            Band(upper=None, value=Decimal("10")),
        ]
    )
    margin_gap_threshold: Decimal = Field(default=Decimal("5"))
    margin_gap_cap: int = Field(default=15)
    productivity_high: Decimal = Field(default=Decimal("200000"))
    productivity_low: Decimal = Field(default=Decimal("80000"))
    productivity_points: int = Field(default=5)
    location_points: Dict[str, int] = Field(default_factory=lambda: {"ile_de_france": 5})
    positive_ebitda_bonus: int = Field(default=10)
    margin_bonus: int = Field(default=10)
    max_plausible_headcount: int = Field(default=100000)

    @field_validator("size_points", "age_points")
    @classmethod
    def validate_bands(cls, v: List[Band]) -> List[Band]:
        return _validate_bands(v)


# =============================================================================
# Discount Settings
# =============================================================================


class DiscountSettings(BaseSettings):
    """Discount and premium rates, as fractions."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_DISCOUNTS_")

    minority: Decimal = Field(default=Decimal("0.20"))
    minority_threshold: Decimal = Field(default=Decimal("0.50"))
    illiquidity: Decimal = Field(default=Decimal("0.15"))
    key_person_medium_with_transition: Decimal = Field(default=Decimal("0.05"))
    key_person_medium: Decimal = Field(default=Decimal("0.10"))
    key_person_high_with_transition: Decimal = Field(default=Decimal("0.10"))
    key_person_high: Decimal = Field(default=Decimal("0.20"))
    concentration_top_client_high: Decimal = Field(default=Decimal("0.50"))
    concentration_top_client_high_rate: Decimal = Field(default=Decimal("0.15"))
    concentration_top_client_medium: Decimal = Field(default=Decimal("0.30"))
    concentration_top_client_medium_rate: Decimal = Field(default=Decimal("0.05"))
    concentration_top3: Decimal = Field(default=Decimal("0.70"))
    concentration_top3_rate: Decimal = Field(default=Decimal("0.05"))
    agreement_clause: Decimal = Field(default=Decimal("0.10"))
    control_premium: Decimal = Field(default=Decimal("0.15"))
    litigation_provision_rates: Dict[str, Decimal] = Field(
        default_factory=lambda: {
            "low": Decimal("0"),
            "medium": Decimal("0.50"),
            "high": Decimal("0.80"),
            "critical": Decimal("1.00"),
        }
    )

    @field_validator(
        "minority",
        "illiquidity",
        "key_person_medium_with_transition",
        "key_person_medium",
        "key_person_high_with_transition",
        "key_person_high",
        "concentration_top_client_high_rate",
        "concentration_top_client_medium_rate",
        "concentration_top3_rate",
        "agreement_clause",
    )
    @classmethod
    def validate_rate(cls, v: Decimal) -> Decimal:
        """Validate a discount rate is a fraction below 1."""
        if not Decimal(0) <= v < Decimal(1):
            raise ValueError("discount rate must be in [0, 1)")
        return v


# =============================================================================
# Anomaly Settings
# =============================================================================


class AnomalySettings(BaseSettings):
    """Thresholds of the rule-based statement scanner."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_ANOMALIES_")

    receivable_days_alert: Decimal = Field(default=Decimal("90"))
    receivable_days_question: Decimal = Field(default=Decimal("45"))
    receivable_days_trend_factor: Decimal = Field(default=Decimal("1.5"))
    inventory_growth_gap: Decimal = Field(default=Decimal("0.30"))
    inventory_growth_min: Decimal = Field(default=Decimal("0.20"))
    margin_drop_points: Decimal = Field(default=Decimal("3"))
    leverage_max: Decimal = Field(default=Decimal("4"))
    provision_doubling_factor: Decimal = Field(default=Decimal("2"))
    revenue_decline_alert: Decimal = Field(default=Decimal("-0.15"))
    revenue_decline_question: Decimal = Field(default=Decimal("-0.05"))
    strong_growth: Decimal = Field(default=Decimal("0.20"))
    cash_months: Decimal = Field(default=Decimal("3"))
    top_client_alert: Decimal = Field(default=Decimal("0.50"))
    top_client_question: Decimal = Field(default=Decimal("0.30"))
    top3_question: Decimal = Field(default=Decimal("0.70"))


# =============================================================================
# Confidence Settings
# =============================================================================


class ConfidenceSettings(BaseSettings):
    """Penalties deducted from a 100-point confidence score."""

    model_config = SettingsConfigDict(env_prefix="SMEVAL_CONFIDENCE_")

    two_years_penalty: int = Field(default=10)
    one_year_penalty: int = Field(default=20)
    completeness_max_penalty: int = Field(default=20)
    normalization_missing_penalty: int = Field(default=15)
    normalization_partial_max_penalty: int = Field(default=10)
    high_anomaly_penalty: int = Field(default=10)
    medium_anomaly_penalty: int = Field(default=3)
    grade_thresholds: Dict[str, int] = Field(
        default_factory=lambda: {"A": 85, "B": 70, "C": 55, "D": 40}
    )
    high_anomaly_grade_cap: str = Field(default="B")

    @field_validator("high_anomaly_grade_cap")
    @classmethod
    def validate_cap(cls, v: str) -> str:
        if v not in ("A", "B", "C", "D", "E"):
            raise ValueError("high_anomaly_grade_cap must be a grade A-E")
        return v


# =============================================================================
# Main Configuration
# =============================================================================


class EngineSettings(BaseSettings):
    """
    Master configuration of the valuation engine.

    Example:
        >>> settings = EngineSettings.from_yaml("config.yaml")
        >>> settings.discount_ceiling
        Decimal('0.45')
    """

    model_config = SettingsConfigDict(env_prefix="SMEVAL_", extra="ignore")

    sectors_path: Optional[str] = Field(default=None)
    discount_ceiling: Decimal = Field(default=Decimal("0.45"))
    market_min_sample: int = Field(default=3)
    market_weight: Decimal = Field(default=Decimal("0.30"))
    market_low_factor: Decimal = Field(default=Decimal("0.8"))
    market_high_factor: Decimal = Field(default=Decimal("1.2"))

    bands: MultipleBandSettings = Field(default_factory=MultipleBandSettings)
    normalization: NormalizationSettings = Field(default_factory=NormalizationSettings)
    dcf: DCFSettings = Field(default_factory=DCFSettings)
    methods: MethodSettings = Field(default_factory=MethodSettings)
    score: ScoreSettings = Field(default_factory=ScoreSettings)
    discounts: DiscountSettings = Field(default_factory=DiscountSettings)
    anomalies: AnomalySettings = Field(default_factory=AnomalySettings)
    confidence: ConfidenceSettings = Field(default_factory=ConfidenceSettings)

    @field_validator("discount_ceiling", "market_weight")
    @classmethod
    def validate_fraction(cls, v: Decimal) -> Decimal:
        """Validate value is a fraction between 0 and 1."""
        if not Decimal(0) <= v <= Decimal(1):
            raise ValueError("must be between 0 and 1")
        return v

    @field_validator("market_min_sample")
    @classmethod
    def validate_min_sample(cls, v: int) -> int:
        if v < 1:
            raise ValueError("market_min_sample must be positive")
        return v

    @property
    def resolved_sectors_path(self) -> Path:
        return Path(self.sectors_path) if self.sectors_path else DEFAULT_SECTORS_PATH

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "EngineSettings":
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to the YAML file

        Returns:
            Validated EngineSettings instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If config file doesn't exist
            ValueError: If required environment variable is missing
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "r") as f:
            yaml_content = f.read()

        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default_value}
        def env_var_replacer(match):
            var_spec = match.group(1)
            if ":-" in var_spec:
                var_name, default = var_spec.split(":-", 1)
                return os.getenv(var_name, default)
            value = os.getenv(var_spec)
            if value is None:
                raise ValueError(f"Environment variable {var_spec} not set and no default provided")
            return value

        yaml_content = re.sub(r"\$\{([^}]+)\}", env_var_replacer, yaml_content)

        config_dict = yaml.safe_load(yaml_content) or {}
        return cls(**config_dict)


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """
    Get the process-wide engine settings.

    Reads the YAML file named by ``SMEVAL_CONFIG`` when set, defaults otherwise.
    """
    config_path = os.getenv("SMEVAL_CONFIG")
    if config_path:
        return EngineSettings.from_yaml(config_path)
    return EngineSettings()


__all__ = [
    "Band",
    "band_value",
    "AnomalySettings",
    "ConfidenceSettings",
    "DCFSettings",
    "DiscountSettings",
    "EngineSettings",
    "MethodSettings",
    "MultipleBandSettings",
    "NormalizationSettings",
    "ScoreSettings",
    "get_settings",
]
