from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from fleet_risk.core.coerce import to_number
from fleet_risk.core.errors import ThresholdConfigError
from fleet_risk.domain.metrics import DisplayContext, DisplayMetric

logger = logging.getLogger(__name__)

DISABLED_SENTINEL = 999.0

TOGGLE_FIELDS = frozenset(
    {
        "low_true_policy_compliance_enabled",
        "low_raw_policy_compliance_enabled",
        "low_tam_past_due_enabled",
    }
)


class ThresholdConfig(BaseModel):
    """
    The closed set of risk and display thresholds.

    Every field carries its literal default, so ``ThresholdConfig()`` is the
    complete default set. HIGH triggers are switched off either by the 999
    sentinel (upper-bound metrics) or by 0 (compliance floors). The LOW
    ``*_enabled`` toggles count as on only when they hold exactly the number 1.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    # HIGH: any one fires
    auto_high_ra_vph: float = 999
    auto_high_scan_age_days: float = 999
    high_ess_compliance: float = 90
    high_raw_policy_compliance: float = 0
    high_product_compliance: float = 0
    high_tam_past_due: float = 20

    # MED: two or more fire
    med_ra_vph: float = 3.5
    med_ess_compliance: float = 95
    med_scan_age_days: float = 14
    med_tam_past_due: float = 10
    med_true_policy_compliance: float = 95
    med_raw_policy_compliance: float = 0

    # LOW: all must hold
    low_vph: float = 2.5
    low_scan_age_days: float = 14
    low_product_compliance: float = 95
    low_true_policy_compliance: float = 95
    low_raw_policy_compliance: float = 95
    low_tam_past_due: float = 5
    low_true_policy_compliance_enabled: Any = 0
    low_raw_policy_compliance_enabled: Any = 0
    low_tam_past_due_enabled: Any = 0

    # display colours, unrelated to risk tiers
    color_product_green: float = 95
    color_product_red: float = 90
    color_policy_green: float = 95
    color_policy_red: float = 90
    color_policy_raw_green: float = 95
    color_policy_raw_red: float = 90
    color_vph_green: float = 2.5
    color_vph_red: float = 3.5
    color_scan_green: float = 14
    color_scan_red: float = 14

    hq_color_product_green: float = 95
    hq_color_product_red: float = 90
    hq_color_policy_green: float = 95
    hq_color_policy_red: float = 90
    hq_color_policy_raw_green: float = 95
    hq_color_policy_raw_red: float = 90

    @model_validator(mode="before")
    @classmethod
    def _drop_unusable_values(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return _clean(data, cls.model_fields)

    def is_enabled(self, toggle: str) -> bool:
        value = getattr(self, toggle, None)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return value == 1

    def color_pair(
        self,
        metric: DisplayMetric,
        context: DisplayContext = DisplayContext.DEFAULT,
    ) -> Tuple[float, float]:
        # The HQ set only covers the compliance families; VPH and scan share the default pair.
        prefix = context.key_prefix
        green_key = f"{prefix}color_{metric.value}_green"
        red_key = f"{prefix}color_{metric.value}_red"
        if green_key not in type(self).model_fields:
            green_key = f"color_{metric.value}_green"
            red_key = f"color_{metric.value}_red"
        return float(getattr(self, green_key)), float(getattr(self, red_key))

    @classmethod
    def resolve(cls, raw: Any, defaults: "ThresholdConfig") -> "ThresholdConfig":
        """Overlay a possibly partial settings mapping on an explicit default set."""
        if isinstance(raw, ThresholdConfig):
            return raw
        if raw is None:
            return defaults
        if not isinstance(raw, Mapping):
            logger.warning("Ignoring threshold settings of type %s", type(raw).__name__)
            return defaults

        merged: Dict[str, Any] = defaults.model_dump()
        merged.update(_clean(raw, cls.model_fields))
        return cls.model_validate(merged)


def sentinel_disabled(threshold: float) -> bool:
    return threshold >= DISABLED_SENTINEL


def _clean(raw: Mapping[str, Any], fields: Mapping[str, Any]) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in fields:
            continue
        if key in TOGGLE_FIELDS:
            cleaned[key] = value
            continue
        number = to_number(value)
        if number is None:
            logger.warning("Threshold %s=%r is not a finite number; using default", key, value)
            continue
        cleaned[key] = number
    return cleaned


def load_thresholds(path: Path, defaults: ThresholdConfig) -> ThresholdConfig:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ThresholdConfigError(f"Cannot read threshold settings from {path}: {exc}") from exc
    _validate_settings(raw)
    return ThresholdConfig.resolve(raw, defaults)


def _validate_settings(raw: Any) -> None:
    if not isinstance(raw, dict):
        raise ThresholdConfigError("Threshold settings must be a JSON object")


DEFAULT_THRESHOLDS = ThresholdConfig()
