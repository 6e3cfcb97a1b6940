from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from fleet_risk.core.thresholds import ThresholdConfig, sentinel_disabled


@dataclass(frozen=True)
class Legend:
    high: str
    med: str
    low: str

    def as_dict(self) -> Dict[str, str]:
        return {"high": self.high, "med": self.med, "low": self.low}


def _n(value: float) -> str:
    return f"{value:g}"


def build_legend(config: ThresholdConfig) -> Legend:
    """Describe the rule set a given threshold configuration actually enforces."""
    t = config

    high_parts: List[str] = ["Breakfix > 0", "No telemetry"]
    if not sentinel_disabled(t.high_tam_past_due):
        high_parts.append(f"Tickets > {_n(t.high_tam_past_due)}")
    if not sentinel_disabled(t.auto_high_ra_vph):
        high_parts.append(f"VPH > {_n(t.auto_high_ra_vph)}")
    if not sentinel_disabled(t.auto_high_scan_age_days):
        high_parts.append(f"Scan > {_n(t.auto_high_scan_age_days)}d")
    if t.high_ess_compliance != 0:
        high_parts.append(f"TruePolicy < {_n(t.high_ess_compliance)}%")
    if t.high_raw_policy_compliance != 0:
        high_parts.append(f"RawPolicy < {_n(t.high_raw_policy_compliance)}%")
    if t.high_product_compliance != 0:
        high_parts.append(f"Product < {_n(t.high_product_compliance)}%")

    med_parts: List[str] = [
        f"VPH > {_n(t.med_ra_vph)}",
        f"Product < {_n(t.med_ess_compliance)}%",
    ]
    if t.med_true_policy_compliance != 0:
        med_parts.append(f"TruePolicy < {_n(t.med_true_policy_compliance)}%")
    if t.med_raw_policy_compliance != 0:
        med_parts.append(f"RawPolicy < {_n(t.med_raw_policy_compliance)}%")
    med_parts.append(f"Scan > {_n(t.med_scan_age_days)}d")
    med_parts.append(f"Tickets > {_n(t.med_tam_past_due)}")

    low_parts: List[str] = [
        f"VPH < {_n(t.low_vph)}",
        f"Product >= {_n(t.low_product_compliance)}%",
    ]
    if t.is_enabled("low_true_policy_compliance_enabled"):
        low_parts.append(f"TruePolicy >= {_n(t.low_true_policy_compliance)}%")
    if t.is_enabled("low_raw_policy_compliance_enabled"):
        low_parts.append(f"RawPolicy >= {_n(t.low_raw_policy_compliance)}%")
    low_parts.append(f"Scan < {_n(t.low_scan_age_days)}d")
    if t.is_enabled("low_tam_past_due_enabled"):
        low_parts.append(f"Tickets <= {_n(t.low_tam_past_due)}")

    return Legend(
        high=" OR ".join(high_parts),
        med=f"2+ of: {', '.join(med_parts)}",
        low=", ".join(low_parts),
    )
