from __future__ import annotations

import json
import logging
import os
from threading import Lock
from typing import Any, Dict, Optional

from src.core.config import get_settings
from src.models.compensation import EquipmentLimits, EquipmentPricing
from src.shared.money import to_sheet_number

logger = logging.getLogger(__name__)

EQUIPMENT_LIMITS_FILE = "equipment-limits.json"
EQUIPMENT_PRICING_FILE = "equipment-pricing.json"


class CompensationConfigRepository:
    """Equipment limits per supervisor and unit prices, kept as JSON files.

    Limits file: ``{"<supervisor code>": {"<kind>": quantity}}``.
    Pricing file: ``{"<kind>": price}``.
    """

    def __init__(self, config_dir: Optional[str] = None) -> None:
        self.config_dir = config_dir or get_settings().config_dir
        self._lock = Lock()

    def _path(self, filename: str) -> str:
        return os.path.join(self.config_dir, filename)

    def _load(self, filename: str) -> Dict[str, Any]:
        path = self._path(filename)
        if not os.path.exists(path):
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable configuration file %s: %s", path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, filename: str, data: Dict[str, Any]) -> None:
        os.makedirs(self.config_dir, exist_ok=True)
        path = self._path(filename)
        tmp_path = f"{path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2, sort_keys=True)
        os.replace(tmp_path, path)

    def get_all_limits(self) -> Dict[str, EquipmentLimits]:
        with self._lock:
            data = self._load(EQUIPMENT_LIMITS_FILE)
        return {
            str(code): EquipmentLimits.normalize(raw)
            for code, raw in sorted(data.items())
            if isinstance(raw, dict)
        }

    def get_limits(self, supervisor_code: str) -> EquipmentLimits:
        with self._lock:
            raw = self._load(EQUIPMENT_LIMITS_FILE).get(supervisor_code)
        return EquipmentLimits.normalize(raw)

    def save_limits(self, supervisor_code: str, limits: EquipmentLimits) -> EquipmentLimits:
        with self._lock:
            data = self._load(EQUIPMENT_LIMITS_FILE)
            data[supervisor_code] = limits.as_dict()
            self._save(EQUIPMENT_LIMITS_FILE, data)
        return limits

    def get_pricing(self) -> EquipmentPricing:
        with self._lock:
            raw = self._load(EQUIPMENT_PRICING_FILE)
        return EquipmentPricing.normalize(raw)

    def save_pricing(self, pricing: EquipmentPricing) -> EquipmentPricing:
        with self._lock:
            prices = {kind: to_sheet_number(price) for kind, price in pricing.as_dict().items()}
            self._save(EQUIPMENT_PRICING_FILE, prices)
        return pricing
