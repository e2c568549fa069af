"""Test configuration helpers and fixtures."""

import sys
from pathlib import Path
from typing import Any, Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

for candidate in (SRC, ROOT):
    candidate_str = str(candidate)
    if candidate.exists() and candidate_str not in sys.path:
        sys.path.insert(0, candidate_str)

from smevaluator.config.settings import DEFAULT_SECTORS_PATH, EngineSettings  # noqa: E402
from smevaluator.domain.services.sector_registry import SectorRegistry  # noqa: E402


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture(scope="session")
def registry() -> SectorRegistry:
    return SectorRegistry.from_yaml(DEFAULT_SECTORS_PATH)


@pytest.fixture
def services_profile(registry):
    return registry.get("services").profile


@pytest.fixture
def full_statement_payload() -> Dict[str, Any]:
    return {
        "year": 2024,
        "revenue": 1000000,
        "operating_result": 110000,
        "net_result": 80000,
        "depreciation_amortization": 30000,
        "provisions_charge": 10000,
        "inventory": 50000,
        "trade_receivables": 120000,
        "trade_payables": 90000,
        "cash": 150000,
        "financial_debt": 200000,
        "equity": 400000,
        "headcount": 8,
    }


@pytest.fixture
def three_year_request() -> Dict[str, Any]:
    """A complete request for a consulting firm with three fiscal years."""
    return {
        "sector_code": "70.22Z",
        "statements": [
            {
                "year": 2024,
                "revenue": 1200000,
                "operating_result": 150000,
                "net_result": 100000,
                "depreciation_amortization": 30000,
                "provisions_charge": 0,
                "inventory": 0,
                "trade_receivables": 150000,
                "trade_payables": 80000,
                "cash": 200000,
                "financial_debt": 100000,
                "equity": 450000,
                "headcount": 10,
            },
            {
                "year": 2023,
                "revenue": 1100000,
                "operating_result": 140000,
                "net_result": 95000,
                "depreciation_amortization": 28000,
                "provisions_charge": 0,
                "inventory": 0,
                "trade_receivables": 140000,
                "trade_payables": 75000,
                "cash": 180000,
                "financial_debt": 130000,
                "equity": 400000,
                "headcount": 9,
            },
            {
                "year": 2022,
                "revenue": 1000000,
                "operating_result": 120000,
                "net_result": 85000,
                "depreciation_amortization": 25000,
                "provisions_charge": 0,
                "inventory": 0,
                "trade_receivables": 130000,
                "trade_payables": 70000,
                "cash": 150000,
                "financial_debt": 160000,
                "equity": 350000,
                "headcount": 9,
            },
        ],
        "normalization_inputs": {
            "owner_compensation": 100000,
            "owner_count": 1,
            "premises_related_party": False,
            "non_recurring_charges": 10000,
        },
        "risk": {
            "ownership_fraction": 1,
            "key_person_dependence": "medium",
            "transition_commitment": True,
            "top_client_share": 0.2,
            "top3_client_share": 0.45,
            "years_in_operation": 12,
        },
    }
