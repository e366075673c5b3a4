from __future__ import annotations

import json
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from src.shared.base import to_camel
from src.shared.money import to_decimal

EQUIPMENT_KINDS: Tuple[str, ...] = ("motorcycle_box", "bicycle_box", "tshirt", "jacket", "helmet")

# Keys written by the admin dashboard before the snake_case store.
LEGACY_EQUIPMENT_KEYS = {
    "motorcycleBox": "motorcycle_box",
    "bicycleBox": "bicycle_box",
}


class CompensationModel(str, Enum):
    FIXED = "fixed"
    COMMISSION = "commission"
    HOURLY_TIERS = "hourly_tiers"
    RECEIPTS_SHARE = "receipts_share"
    CUSTOM = "custom"
    LEGACY = "legacy"


# Tags stored by the first version of the salary settings sheet.
MODEL_ALIASES = {
    "commission_type1": CompensationModel.HOURLY_TIERS,
    "commission_type2": CompensationModel.RECEIPTS_SHARE,
}

DEFAULT_RECEIPTS_PERCENTAGE = Decimal("11")
DEFAULT_SUPERVISOR_PERCENTAGE = Decimal("60")
# The performance sheet has no receipts column; receipts are estimated per order.
RECEIPTS_PER_ORDER = Decimal("50")


def resolve_model_tag(tag: Optional[str]) -> Optional[CompensationModel]:
    """Map a stored salary-type tag to a model; ``None`` when unrecognized."""
    if not tag:
        return None
    key = tag.strip().lower()
    if key in MODEL_ALIASES:
        return MODEL_ALIASES[key]
    try:
        return CompensationModel(key)
    except ValueError:
        return None


class HourTier(BaseModel):
    """Rate per order paid when average daily hours fall in ``[min_hours, max_hours]``."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    min_hours: float = Field(ge=0)
    max_hours: float = Field(ge=0)
    rate_per_order: Decimal = Field(ge=0)


DEFAULT_HOUR_TIERS: Tuple[HourTier, ...] = (
    HourTier(min_hours=0, max_hours=100, rate_per_order=Decimal("1.0")),
    HourTier(min_hours=101, max_hours=200, rate_per_order=Decimal("1.2")),
    HourTier(min_hours=201, max_hours=300, rate_per_order=Decimal("1.3")),
    HourTier(min_hours=301, max_hours=400, rate_per_order=Decimal("1.4")),
    HourTier(min_hours=401, max_hours=999999, rate_per_order=Decimal("1.5")),
)


def parse_hour_tiers(text: Optional[str]) -> Tuple[HourTier, ...]:
    """Hour tiers from their JSON cell; a blank cell means the default tiers.

    Raises ``ValueError`` when the cell is not a JSON list of tiers.
    """
    if not text or not text.strip():
        return DEFAULT_HOUR_TIERS
    data = json.loads(text)
    if not isinstance(data, list) or not data:
        raise ValueError("Hour tiers must be a non-empty JSON list")
    tiers: List[HourTier] = []
    for item in data:
        if not isinstance(item, dict):
            raise ValueError("Each hour tier must be an object")
        tier = HourTier.model_validate(item)
        if tier.max_hours < tier.min_hours:
            raise ValueError("Hour tier maxHours is below minHours")
        tiers.append(tier)
    return tuple(tiers)


def dump_hour_tiers(tiers: Tuple[HourTier, ...]) -> str:
    return json.dumps(
        [
            {"minHours": tier.min_hours, "maxHours": tier.max_hours, "ratePerOrder": float(tier.rate_per_order)}
            for tier in tiers
        ]
    )


def _coerce_quantity(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number < 0:
        return None
    return int(number)


class EquipmentQuantities(BaseModel):
    model_config = ConfigDict(frozen=True)

    motorcycle_box: int = 0
    bicycle_box: int = 0
    tshirt: int = 0
    jacket: int = 0
    helmet: int = 0

    def get(self, kind: str) -> int:
        return int(getattr(self, kind))

    def as_dict(self) -> Dict[str, int]:
        return {kind: self.get(kind) for kind in EQUIPMENT_KINDS}

    @classmethod
    def normalize(
        cls,
        raw: Optional[Mapping[str, Any]],
        previous: Optional["EquipmentQuantities"] = None,
    ) -> "EquipmentQuantities":
        """Clamp a stored mapping to whole quantities >= 0.

        A negative or non-numeric value falls back to ``previous`` for that
        kind, or 0 when there is no previous value.
        """
        base = previous or cls()
        if not isinstance(raw, Mapping):
            return base
        values: Dict[str, int] = {}
        for key, value in raw.items():
            kind = LEGACY_EQUIPMENT_KEYS.get(key, key)
            if kind not in EQUIPMENT_KINDS:
                continue
            quantity = _coerce_quantity(value)
            values[kind] = quantity if quantity is not None else base.get(kind)
        return base.model_copy(update=values)


class EquipmentLimits(EquipmentQuantities):
    """Per-supervisor maximum deductible quantity for each equipment kind."""


class EquipmentPricing(BaseModel):
    model_config = ConfigDict(frozen=True)

    motorcycle_box: Decimal = Decimal("0")
    bicycle_box: Decimal = Decimal("0")
    tshirt: Decimal = Decimal("0")
    jacket: Decimal = Decimal("0")
    helmet: Decimal = Decimal("0")

    def get(self, kind: str) -> Decimal:
        return getattr(self, kind)

    def as_dict(self) -> Dict[str, Decimal]:
        return {kind: self.get(kind) for kind in EQUIPMENT_KINDS}

    @classmethod
    def normalize(cls, raw: Optional[Mapping[str, Any]]) -> "EquipmentPricing":
        if not isinstance(raw, Mapping):
            return cls()
        values: Dict[str, Decimal] = {}
        for key, value in raw.items():
            kind = LEGACY_EQUIPMENT_KEYS.get(key, key)
            if kind not in EQUIPMENT_KINDS:
                continue
            price = to_decimal(value, default=None)
            if price is not None and price >= 0:
                values[kind] = price
        return cls(**values)


class SalaryModelConfig(BaseModel):
    """Compensation settings resolved for one supervisor."""

    model_config = ConfigDict(frozen=True)

    supervisor_code: str
    model: CompensationModel
    amount: Decimal = Decimal("0")
    commission_formula: Optional[str] = None
    receipts_percentage: Decimal = DEFAULT_RECEIPTS_PERCENTAGE
    supervisor_percentage: Decimal = DEFAULT_SUPERVISOR_PERCENTAGE
    source: str = "default"
    raw_tag: Optional[str] = None
