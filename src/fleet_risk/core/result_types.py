from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from fleet_risk.domain.metrics import METRIC_LABELS, Metric
from fleet_risk.domain.networks import Network
from fleet_risk.domain.schemas import FleetUnit


class Tier(str, Enum):
    LOW = "LOW"
    MED = "MED"
    HIGH = "HIGH"

    @property
    def rank(self) -> int:
        return _TIER_RANK[self]


_TIER_RANK = {Tier.LOW: 0, Tier.MED: 1, Tier.HIGH: 2}


class Stage(str, Enum):
    HIGH = "high"
    MED = "med"
    LOW = "low"
    EXEMPT = "exempt"


def _count(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


@dataclass(frozen=True)
class Reason:
    """One fired check: what was measured, on which network, against what limit."""

    metric: Metric
    stage: Stage
    network: Optional[Network] = None
    value: Optional[float] = None
    threshold: Optional[float] = None

    @property
    def text(self) -> str:
        label = METRIC_LABELS[self.metric]
        if self.network is not None:
            label = f"{self.network.label} {label}"
        if self.value is None:
            return label

        if self.metric is Metric.VPH:
            shown = f"{self.value:.2f}"
        elif self.metric in (Metric.PRODUCT_COMPLIANCE, Metric.TRUE_POLICY, Metric.RAW_POLICY):
            shown = f"{self.value:.1f}%"
        elif self.metric is Metric.SCAN_AGE:
            shown = f"{_count(self.value)}d"
        else:
            shown = _count(self.value)
        return f"{label}: {shown}"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric.value,
            "stage": self.stage.value,
            "network": self.network.value if self.network else None,
            "value": self.value,
            "threshold": self.threshold,
            "text": self.text,
        }


@dataclass(frozen=True)
class RiskResult:
    tier: Tier
    reasons: Tuple[Reason, ...] = field(default_factory=tuple)

    @property
    def reason_texts(self) -> List[str]:
        return [r.text for r in self.reasons]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier": self.tier.value,
            "reasons": self.reason_texts,
            "details": [r.as_dict() for r in self.reasons],
        }


@dataclass(frozen=True)
class ClassifiedUnit:
    unit: FleetUnit
    result: RiskResult

    @property
    def tier(self) -> Tier:
        return self.result.tier

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.unit.name,
            "group": self.unit.group,
            "parent": self.unit.parent,
            "single_network_mode": self.unit.single_network_mode,
            **self.result.to_dict(),
        }
