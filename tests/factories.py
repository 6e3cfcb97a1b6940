from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from fleet_risk.core.result_types import ClassifiedUnit, RiskResult, Tier
from fleet_risk.domain.schemas import FleetUnit

AS_OF = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(n: float) -> str:
    return (AS_OF - timedelta(days=n)).isoformat()


def healthy_raw(**overrides: Any) -> Dict[str, Any]:
    """A unit that meets every LOW requirement under the default thresholds."""
    raw: Dict[str, Any] = {
        "name": "UNIT-001",
        "full_name": "Healthy Unit",
        "group": "SQUADRON 1",
        "parent": "EAST",
        "single_network_mode": False,
        "primary": {
            "breakfix": 0,
            "product_compliance": 98,
            "true_policy": 96.04,
            "raw_policy": 98,
            "vph": 1.5,
            "last_scan": days_ago(5),
            "scan_exempt": False,
            "asset_count": 100,
        },
        "secondary": {
            "breakfix": 0,
            "product_compliance": 99,
            "true_policy": 98.01,
            "raw_policy": 99,
            "vph": 1.2,
            "last_scan": days_ago(5),
            "scan_exempt": False,
            "asset_count": 50,
        },
        "overdue_tickets": 2,
    }
    return _merge(raw, overrides)


def make_unit(**overrides: Any) -> FleetUnit:
    return FleetUnit.from_raw(healthy_raw(**overrides))


def no_telemetry_raw(**overrides: Any) -> Dict[str, Any]:
    silent = {"last_scan": None, "vph": None, "asset_count": None}
    return _merge(healthy_raw(primary=silent, secondary=silent), overrides)


def classified(tier: Tier, **overrides: Any) -> ClassifiedUnit:
    return ClassifiedUnit(unit=make_unit(**overrides), result=RiskResult(tier=tier))


def _merge(raw: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if key in ("primary", "secondary"):
            raw[key] = {**raw[key], **value}
        else:
            raw[key] = value
    return raw
