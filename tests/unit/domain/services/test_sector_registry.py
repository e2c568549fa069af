"""Tests for the sector registry: catalogue loading, lookups and fallback."""

from decimal import Decimal

import pytest

from smevaluator.domain.exceptions import UnknownSector, WeightConfigurationError
from smevaluator.domain.models.sector import FactorDirection, MethodId, SectorMatchType
from smevaluator.domain.services.sector_registry import SectorRegistry, normalize_code


def _profile(methods, **extra):
    payload = {
        "name": "Test",
        "methods": methods,
        "revenue_multiple": {"min": 0.5, "max": 1.0},
        "ebitda_multiple": {"min": 3, "max": 5},
    }
    payload.update(extra)
    return payload


class TestPackagedCatalogue:
    """The catalogue shipped with the package."""

    def test_has_default_profile(self, registry):
        assert "default" in registry.codes()

    def test_expected_profiles(self, registry):
        expected = ("services", "commerce", "restaurant", "industrie", "transport", "saas", "sante", "btp", "holding")
        for code in expected:
            assert code in registry.codes()

    def test_every_profile_weights_sum_to_one(self, registry):
        for profile in registry.profiles.values():
            assert abs(profile.weight_total - Decimal("1")) <= Decimal("0.000001"), profile.code

    def test_factors_are_typed(self, services_profile):
        factor = services_profile.factor("recurring_revenue")
        assert factor.direction is FactorDirection.PREMIUM
        assert factor.midpoint_rate == Decimal("0.225")

    def test_profiles_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.profiles["new"] = registry.get("default").profile

    def test_method_weights_are_read_only(self, registry):
        with pytest.raises(TypeError):
            registry.get("services").profile.methods[MethodId.DCF] = Decimal("5")
        assert MethodId.DCF not in registry.get("services").profile.methods

    def test_capital_heavy_trades_estimate_operating_assets(self, registry):
        assert MethodId.FLEET_VALUE in registry.get("transport").profile.methods
        assert MethodId.EQUIPMENT_VALUE in registry.get("btp").profile.methods
        assert MethodId.ASSET_BASED not in registry.get("transport").profile.methods

    def test_shops_use_transfer_scale(self, registry):
        for code in ("commerce", "restaurant"):
            assert registry.get(code).profile.methods[MethodId.TRADE_GOODWILL] == Decimal("0.5")


class TestLookup:
    """Lookup order: profile code, classification code, prefix, default."""

    def test_normalize_code(self):
        assert normalize_code(" 70.22Z ") == "7022z"

    def test_profile_code(self, registry):
        match = registry.get("services")
        assert match.profile.code == "services"
        assert match.matched_by is SectorMatchType.PROFILE_CODE

    def test_exact_classification_code(self, registry):
        match = registry.get("70.22Z")
        assert match.profile.code == "services"
        assert match.matched_by is SectorMatchType.CLASSIFICATION_CODE

    def test_classification_code_is_case_and_dot_insensitive(self, registry):
        assert registry.get("7022z").profile.code == "services"

    def test_prefix_match(self, registry):
        match = registry.get("62.09Z")
        assert match.profile.code == "saas"
        assert match.matched_by is SectorMatchType.PREFIX

    def test_unknown_code_raises_on_strict_get(self, registry):
        with pytest.raises(UnknownSector) as exc_info:
            registry.get("99.00Z")
        assert exc_info.value.sector_code == "99.00Z"

    def test_unknown_code_falls_back_to_default(self, registry):
        match = registry.lookup("99.00Z")
        assert match.profile.code == "default"
        assert match.matched_by is SectorMatchType.DEFAULT
        assert match.requested_code == "99.00Z"

    def test_missing_code_falls_back_to_default(self, registry):
        assert registry.lookup(None).matched_by is SectorMatchType.DEFAULT

    def test_holding_has_no_multiples(self, registry):
        profile = registry.get("holding").profile
        assert set(profile.methods) == {MethodId.ASSET_BASED, MethodId.GOODWILL, MethodId.PRACTITIONERS}
        assert profile.revenue_multiple is None

    @pytest.mark.parametrize(
        "naf, expected",
        [
            ("47.73Z", "pharmacie"),
            ("86.90B", "labo"),
            ("86.21Z", "medecin"),
            ("86.23Z", "dentaire"),
            ("86.90E", "paramedical"),
            ("86.10Z", "sante"),
            ("86.99Z", "sante"),
        ],
    )
    def test_healthcare_sub_profiles(self, registry, naf, expected):
        profile = registry.get(naf).profile
        assert profile.code == expected
        assert MethodId.PRACTICE_SCALE in profile.methods

    def test_pharmacy_code_wins_over_retail_prefix(self, registry):
        match = registry.get("47.73Z")
        assert match.matched_by is SectorMatchType.CLASSIFICATION_CODE
        assert match.profile.revenue_multiple.min == Decimal("0.7")


class TestCatalogueValidation:
    """Bad catalogues fail at load time."""

    def test_weights_not_summing_to_one(self):
        sectors = {"default": _profile({"ebitda_multiple": 0.5, "revenue_multiple": 0.3})}
        with pytest.raises(WeightConfigurationError) as exc_info:
            SectorRegistry.from_dict(sectors)
        assert exc_info.value.sector_code == "default"
        assert exc_info.value.total == Decimal("0.8")

    def test_missing_default_profile(self):
        with pytest.raises(ValueError, match="default"):
            SectorRegistry.from_dict({"services": _profile({"ebitda_multiple": 1})})

    def test_non_positive_weight(self):
        sectors = {"default": _profile({"ebitda_multiple": 1, "revenue_multiple": 0})}
        with pytest.raises(ValueError, match="Invalid sector profile"):
            SectorRegistry.from_dict(sectors)

    def test_multiple_method_without_range(self):
        sectors = {"default": {"name": "Test", "methods": {"revenue_multiple": 1}}}
        with pytest.raises(ValueError, match="revenue_multiple"):
            SectorRegistry.from_dict(sectors)

    def test_inverted_multiple_range(self):
        sectors = {
            "default": _profile({"ebitda_multiple": 1}, ebitda_multiple={"min": 6, "max": 3}),
        }
        with pytest.raises(ValueError):
            SectorRegistry.from_dict(sectors)

    def test_from_yaml(self, tmp_path):
        catalogue = tmp_path / "sectors.yaml"
        catalogue.write_text(
            "sectors:\n"
            "  default:\n"
            "    name: Generic\n"
            "    methods: {ebitda_multiple: 0.6, revenue_multiple: 0.4}\n"
            "    revenue_multiple: {min: 0.3, max: 0.7}\n"
            "    ebitda_multiple: {min: 3, max: 6}\n"
        )
        registry = SectorRegistry.from_yaml(catalogue)
        assert registry.codes() == ["default"]

    def test_from_yaml_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SectorRegistry.from_yaml(tmp_path / "absent.yaml")
