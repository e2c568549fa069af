"""Valuation method implementations, keyed by method id."""

from typing import Dict, Type

from smevaluator.domain.models.sector import MethodId
from smevaluator.domain.services.valuation.models.asset_based import AssetBasedMethod
from smevaluator.domain.services.valuation.models.base import (
    BaseValuationMethod,
    MethodNotApplicable,
    MethodOutput,
    ValuationContext,
)
from smevaluator.domain.services.valuation.models.dcf import DCFMethod
from smevaluator.domain.services.valuation.models.ebitda_multiple import EbitdaMultipleMethod
from smevaluator.domain.services.valuation.models.goodwill import GoodwillMethod
from smevaluator.domain.services.valuation.models.operating_assets import EquipmentValueMethod, FleetValueMethod
from smevaluator.domain.services.valuation.models.practitioners import PractitionersMethod
from smevaluator.domain.services.valuation.models.revenue_multiple import RevenueMultipleMethod
from smevaluator.domain.services.valuation.models.transfer_scale import PracticeScaleMethod, TradeGoodwillMethod

METHOD_CLASSES: Dict[MethodId, Type[BaseValuationMethod]] = {
    MethodId.REVENUE_MULTIPLE: RevenueMultipleMethod,
    MethodId.EBITDA_MULTIPLE: EbitdaMultipleMethod,
    MethodId.DCF: DCFMethod,
    MethodId.ASSET_BASED: AssetBasedMethod,
    MethodId.PRACTITIONERS: PractitionersMethod,
    MethodId.GOODWILL: GoodwillMethod,
    MethodId.FLEET_VALUE: FleetValueMethod,
    MethodId.EQUIPMENT_VALUE: EquipmentValueMethod,
    MethodId.TRADE_GOODWILL: TradeGoodwillMethod,
    MethodId.PRACTICE_SCALE: PracticeScaleMethod,
}

__all__ = [
    "METHOD_CLASSES",
    "AssetBasedMethod",
    "BaseValuationMethod",
    "DCFMethod",
    "EbitdaMultipleMethod",
    "EquipmentValueMethod",
    "FleetValueMethod",
    "GoodwillMethod",
    "MethodNotApplicable",
    "MethodOutput",
    "PracticeScaleMethod",
    "PractitionersMethod",
    "RevenueMultipleMethod",
    "TradeGoodwillMethod",
    "ValuationContext",
]
