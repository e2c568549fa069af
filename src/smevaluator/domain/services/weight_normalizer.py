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
Weight Normalizer Utility

Renormalizes method weights to sum to exactly 1 once some methods have been
excluded from a blend. Weights are quantized to 1e-6 and the rounding residue
is pushed onto the largest weight, so the sum is exact, not approximate.
"""

import logging
from decimal import Decimal
from typing import Dict, Hashable, Mapping

from smevaluator.domain.models.numbers import ONE, RATE_QUANTUM, ZERO, quantize_rate

logger = logging.getLogger(__name__)


class WeightNormalizer:
    """
    Utility for renormalizing method weights.

    Features:
    - Drop zero/negative weights
    - Rescale the rest to sum to 1
    - Quantize and make the sum exact (adjust the largest weight)
    """

    def normalize(self, weights: Mapping[Hashable, Decimal]) -> Dict[Hashable, Decimal]:
        """
        Normalize weights to sum to exactly 1.

        Args:
            weights: Mapping of method → weight, e.g. {ebitda: 0.5, revenue: 0.3}

        Returns:
            Rescaled weights in the same key order, e.g. {ebitda: 0.625, revenue: 0.375}

        Raises:
            ValueError: If weights is empty or every weight is zero or negative
        """
        if not weights:
            raise ValueError("Cannot normalize empty weights dict")

        positive = {k: v for k, v in weights.items() if v > ZERO}
        if not positive:
            raise ValueError("All weights are zero or negative, cannot normalize")

        total = sum(positive.values(), ZERO)
        normalized = {k: quantize_rate(v / total) for k, v in positive.items()}

        residue = ONE - sum(normalized.values(), ZERO)
        if residue != ZERO:
            largest = max(normalized, key=lambda k: normalized[k])
            normalized[largest] += residue
            logger.debug(f"Weight rounding residue {residue} assigned to {largest}")

        return normalized

    def validate_weights(self, weights: Mapping[Hashable, Decimal], tolerance: Decimal = RATE_QUANTUM) -> bool:
        """Check that weights sum to 1 within ``tolerance`` and none is negative."""
        if any(v < ZERO for v in weights.values()):
            return False
        return abs(sum(weights.values(), ZERO) - ONE) <= tolerance


def normalize_weights(weights: Mapping[Hashable, Decimal]) -> Dict[Hashable, Decimal]:
    """Convenience wrapper around ``WeightNormalizer().normalize``."""
    return WeightNormalizer().normalize(weights)


__all__ = ["WeightNormalizer", "normalize_weights"]
