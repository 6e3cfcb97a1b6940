from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from fleet_risk.core.coerce import utc_now
from fleet_risk.core.result_types import ClassifiedUnit
from fleet_risk.core.thresholds import ThresholdConfig
from fleet_risk.domain.registry import GroupRegistry
from fleet_risk.engine.aggregator import FleetAggregator, FleetSummary, GroupRollup
from fleet_risk.engine.classifier import classify_all
from fleet_risk.engine.legend import Legend, build_legend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FleetReport:
    classified: List[ClassifiedUnit]
    groups: Dict[str, List[GroupRollup]]
    summary: FleetSummary
    legend: Legend
    as_of: datetime
    warnings: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "as_of": self.as_of.isoformat(),
            "summary": self.summary.as_dict(),
            "groups": {
                parent: [g.as_dict() for g in rollups]
                for parent, rollups in self.groups.items()
            },
            "units": [c.as_dict() for c in self.classified],
            "legend": self.legend.as_dict(),
            "warnings": list(self.warnings),
        }


@dataclass
class FleetRiskEngine:
    config: ThresholdConfig
    registry: GroupRegistry = field(default_factory=GroupRegistry)
    as_of: Optional[datetime] = None
    aggregator: FleetAggregator = field(default_factory=FleetAggregator)

    def run(self, units: Iterable[Any]) -> FleetReport:
        as_of = self.as_of or utc_now()
        classified = classify_all(units, self.config, as_of=as_of)

        warnings: List[str] = []
        unregistered = sorted(
            {c.unit.group for c in classified if c.unit.group and c.unit.group not in self.registry}
        )
        if unregistered and len(self.registry):
            warnings.append(f"Groups missing from registry: {', '.join(unregistered)}")

        summary = self.aggregator.summarize(classified)
        logger.info(
            "Fleet run: %d units (HIGH=%d MED=%d LOW=%d)",
            summary.total_units,
            summary.high_count,
            summary.med_count,
            summary.low_count,
        )

        return FleetReport(
            classified=classified,
            groups=self.aggregator.aggregate_by_group(classified, self.registry),
            summary=summary,
            legend=build_legend(self.config),
            as_of=as_of,
            warnings=warnings,
        )
