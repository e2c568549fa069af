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
Sector Registry - immutable catalogue of sector valuation profiles.

Profiles are data, not code: they are loaded once from ``sectors.yaml``,
validated with Pydantic, and never mutated afterwards, so one registry can be
read from any number of threads without locking.

Lookup order for a requested code (after stripping spaces and dots and
case-folding):
1. Profile code (``"services"``)
2. Exact classification code (``"70.22Z"``)
3. Two-digit classification prefix (``"70"``)
4. The ``default`` profile

Usage:
    from smevaluator.domain.services.sector_registry import get_sector_registry

    registry = get_sector_registry()
    match = registry.lookup("70.22Z")
    print(match.profile.code, match.matched_by)
"""

from __future__ import annotations

import logging
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from smevaluator.domain.exceptions import UnknownSector, WeightConfigurationError
from smevaluator.domain.models.sector import SectorMatch, SectorMatchType, SectorProfile

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
WEIGHT_TOLERANCE = Decimal("0.000001")


def normalize_code(code: str) -> str:
    """Strip spaces and dots and case-fold a sector or classification code."""
    return "".join(ch for ch in code if ch not in " .\t").casefold()


class SectorRegistry:
    """Read-only catalogue of sector profiles with fallback lookup."""

    def __init__(self, profiles: Mapping[str, SectorProfile]):
        if DEFAULT_PROFILE not in profiles:
            raise ValueError(f"Sector catalogue has no '{DEFAULT_PROFILE}' profile")

        by_code: Dict[str, SectorProfile] = {}
        by_naf: Dict[str, SectorProfile] = {}
        by_prefix: Dict[str, SectorProfile] = {}
        for profile in profiles.values():
            _check_weights(profile)
            by_code[normalize_code(profile.code)] = profile
            for naf in profile.naf_codes:
                key = normalize_code(naf)
                if key in by_naf and by_naf[key].code != profile.code:
                    logger.warning(
                        f"Classification code {naf} claimed by both {by_naf[key].code} and {profile.code}; "
                        f"keeping {by_naf[key].code}"
                    )
                    continue
                by_naf[key] = profile
            for prefix in profile.naf_prefixes:
                by_prefix.setdefault(normalize_code(prefix), profile)

        self._profiles = MappingProxyType(by_code)
        self._by_naf = MappingProxyType(by_naf)
        self._by_prefix = MappingProxyType(by_prefix)
        logger.info(f"Sector registry loaded with {len(by_code)} profiles")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SectorRegistry":
        """Load and validate a sector catalogue file.

        Raises:
            FileNotFoundError: if the file does not exist
            WeightConfigurationError: if a profile's weights do not sum to 1
            ValueError: if a profile fails schema validation
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Sector catalogue not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
        return cls.from_dict(document.get("sectors") or {})

    @classmethod
    def from_dict(cls, sectors: Mapping[str, Mapping[str, Any]]) -> "SectorRegistry":
        profiles: Dict[str, SectorProfile] = {}
        for code, payload in sectors.items():
            data = dict(payload)
            data.setdefault("code", code)
            try:
                profiles[code] = SectorProfile.model_validate(data)
            except ValidationError as exc:
                raise ValueError(f"Invalid sector profile '{code}': {exc}") from exc
        return cls(profiles)

    @property
    def profiles(self) -> Mapping[str, SectorProfile]:
        return self._profiles

    def codes(self) -> List[str]:
        return sorted(profile.code for profile in self._profiles.values())

    def get(self, sector_code: str) -> SectorMatch:
        """Strict lookup without the default fallback.

        Raises:
            UnknownSector: if nothing matches the code
        """
        key = normalize_code(sector_code or "")
        if not key:
            raise UnknownSector(sector_code)

        profile = self._profiles.get(key)
        if profile is not None:
            return SectorMatch(profile, SectorMatchType.PROFILE_CODE, sector_code)

        profile = self._by_naf.get(key)
        if profile is not None:
            return SectorMatch(profile, SectorMatchType.CLASSIFICATION_CODE, sector_code)

        profile = self._by_prefix.get(key[:2]) if key[:2].isdigit() else None
        if profile is not None:
            return SectorMatch(profile, SectorMatchType.PREFIX, sector_code)

        raise UnknownSector(sector_code)

    def lookup(self, sector_code: Optional[str]) -> SectorMatch:
        """Resolve a code to a profile. Never fails: unknown codes get ``default``."""
        try:
            return self.get(sector_code or "")
        except UnknownSector:
            logger.warning(f"Unknown sector code {sector_code!r}, falling back to '{DEFAULT_PROFILE}'")
            return SectorMatch(self._profiles[DEFAULT_PROFILE], SectorMatchType.DEFAULT, sector_code or "")


def _check_weights(profile: SectorProfile) -> None:
    total = profile.weight_total
    if abs(total - Decimal(1)) > WEIGHT_TOLERANCE:
        raise WeightConfigurationError(profile.code, total)


_registry_instance: Optional[SectorRegistry] = None


def get_sector_registry() -> SectorRegistry:
    """
    Get the process-wide SectorRegistry instance.

    The catalogue is loaded on first access from the path configured in
    ``EngineSettings.sectors_path`` (the packaged ``sectors.yaml`` by default).
    """
    global _registry_instance
    if _registry_instance is None:
        from smevaluator.config import get_settings

        _registry_instance = SectorRegistry.from_yaml(get_settings().resolved_sectors_path)
    return _registry_instance
