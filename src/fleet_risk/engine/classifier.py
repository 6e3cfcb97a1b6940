"""
Per-unit risk tiering.

Stages run in a fixed order and every fired check is recorded:

1. HIGH  - any single trigger escalates; all triggers are still collected.
2. MED   - two or more counted predicates (each network counts separately).
3. LOW   - strict re-check of the LOW requirements; any failure means MED.
4. Exemption - a HIGH caused only by missing telemetry drops to MED when the
   unit is scan exempt.

The LOW re-check is strict: VPH and scan age must be below the limit,
compliance at or above it. Display tiers in ``engine.tiers`` give the
boundary to the better colour instead.
"""

from __future__ import annotations

import logging
import operator
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from fleet_risk.core.coerce import scan_age, utc_now
from fleet_risk.core.result_types import ClassifiedUnit, Reason, RiskResult, Stage, Tier
from fleet_risk.core.thresholds import ThresholdConfig, sentinel_disabled
from fleet_risk.domain.metrics import Metric
from fleet_risk.domain.networks import Network
from fleet_risk.domain.schemas import FleetUnit, NetworkTelemetry

logger = logging.getLogger(__name__)

MED_PREDICATE_COUNT = 2

Networks = Sequence[Tuple[Network, NetworkTelemetry]]
Comparison = Callable[[float, float], bool]


class RiskClassifier:
    def __init__(self, config: ThresholdConfig, as_of: Optional[datetime] = None):
        self.config = config
        self.as_of = as_of

    def classify(self, unit: FleetUnit) -> RiskResult:
        now = self.as_of or utc_now()
        networks = unit.applicable_networks()
        ages = {net: scan_age(tel.last_scan, now) for net, tel in networks}

        reasons: List[Reason] = []
        high_due_to_no_telemetry = self._high_triggers(unit, networks, ages, reasons)
        tier = Tier.HIGH if reasons else Tier.LOW

        if tier is Tier.LOW:
            counted = self._med_predicates(unit, networks, ages)
            if len(counted) >= MED_PREDICATE_COUNT:
                tier = Tier.MED
                reasons.extend(counted)

        if tier is Tier.LOW:
            failures = self._low_failures(unit, networks, ages)
            if failures:
                tier = Tier.MED
                reasons.extend(failures)

        if (
            tier is Tier.HIGH
            and high_due_to_no_telemetry
            and is_scan_exempt(unit)
            and all(r.metric is Metric.NO_TELEMETRY for r in reasons)
        ):
            tier = Tier.MED
            reasons.append(Reason(metric=Metric.SCAN_EXEMPT, stage=Stage.EXEMPT))

        return RiskResult(tier=tier, reasons=tuple(reasons))

    def _high_triggers(
        self,
        unit: FleetUnit,
        networks: Networks,
        ages: Dict[Network, Optional[int]],
        reasons: List[Reason],
    ) -> bool:
        t = self.config
        stage = Stage.HIGH

        reasons += _per_network(networks, "breakfix", operator.gt, 0, Metric.BREAKFIX, stage)

        no_telemetry = not _has_required_presence(unit)
        if no_telemetry:
            reasons.append(Reason(metric=Metric.NO_TELEMETRY, stage=stage))

        if t.high_product_compliance != 0:
            reasons += _per_network(
                networks, "product_compliance", operator.lt, t.high_product_compliance,
                Metric.PRODUCT_COMPLIANCE, stage,
            )

        if not sentinel_disabled(t.auto_high_ra_vph):
            reasons += _per_network(networks, "vph", operator.gt, t.auto_high_ra_vph, Metric.VPH, stage)

        if not sentinel_disabled(t.auto_high_scan_age_days):
            reasons += _per_age(networks, ages, operator.gt, t.auto_high_scan_age_days, stage)

        if t.high_ess_compliance != 0:
            reasons += _per_network(
                networks, "true_policy", operator.lt, t.high_ess_compliance, Metric.TRUE_POLICY, stage
            )

        if t.high_raw_policy_compliance != 0:
            reasons += _per_network(
                networks, "raw_policy", operator.lt, t.high_raw_policy_compliance, Metric.RAW_POLICY, stage
            )

        if not sentinel_disabled(t.high_tam_past_due):
            reasons += _tickets(unit, operator.gt, t.high_tam_past_due, stage)

        return no_telemetry

    def _med_predicates(
        self,
        unit: FleetUnit,
        networks: Networks,
        ages: Dict[Network, Optional[int]],
    ) -> List[Reason]:
        t = self.config
        stage = Stage.MED
        counted: List[Reason] = []

        counted += _per_network(networks, "vph", operator.gt, t.med_ra_vph, Metric.VPH, stage)
        counted += _per_network(
            networks, "product_compliance", operator.lt, t.med_ess_compliance, Metric.PRODUCT_COMPLIANCE, stage
        )
        if t.med_true_policy_compliance != 0:
            counted += _per_network(
                networks, "true_policy", operator.lt, t.med_true_policy_compliance, Metric.TRUE_POLICY, stage
            )
        if t.med_raw_policy_compliance != 0:
            counted += _per_network(
                networks, "raw_policy", operator.lt, t.med_raw_policy_compliance, Metric.RAW_POLICY, stage
            )
        counted += _per_age(networks, ages, operator.gt, t.med_scan_age_days, stage)
        counted += _tickets(unit, operator.gt, t.med_tam_past_due, stage)

        return counted

    def _low_failures(
        self,
        unit: FleetUnit,
        networks: Networks,
        ages: Dict[Network, Optional[int]],
    ) -> List[Reason]:
        t = self.config
        stage = Stage.LOW
        failures: List[Reason] = []

        failures += _per_network(networks, "vph", operator.ge, t.low_vph, Metric.VPH, stage)
        failures += _per_network(
            networks, "product_compliance", operator.lt, t.low_product_compliance, Metric.PRODUCT_COMPLIANCE, stage
        )
        if t.is_enabled("low_true_policy_compliance_enabled"):
            failures += _per_network(
                networks, "true_policy", operator.lt, t.low_true_policy_compliance, Metric.TRUE_POLICY, stage
            )
        if t.is_enabled("low_raw_policy_compliance_enabled"):
            failures += _per_network(
                networks, "raw_policy", operator.lt, t.low_raw_policy_compliance, Metric.RAW_POLICY, stage
            )
        failures += _per_age(networks, ages, operator.ge, t.low_scan_age_days, stage)
        if t.is_enabled("low_tam_past_due_enabled"):
            failures += _tickets(unit, operator.gt, t.low_tam_past_due, stage)

        return failures


def _per_network(
    networks: Networks,
    field_name: str,
    fires: Comparison,
    threshold: float,
    metric: Metric,
    stage: Stage,
) -> List[Reason]:
    out: List[Reason] = []
    for net, tel in networks:
        value = getattr(tel, field_name)
        if value is not None and fires(value, threshold):
            out.append(Reason(metric=metric, stage=stage, network=net, value=value, threshold=threshold))
    return out


def _per_age(
    networks: Networks,
    ages: Dict[Network, Optional[int]],
    fires: Comparison,
    threshold: float,
    stage: Stage,
) -> List[Reason]:
    out: List[Reason] = []
    for net, _ in networks:
        age = ages.get(net)
        if age is not None and fires(age, threshold):
            out.append(Reason(metric=Metric.SCAN_AGE, stage=stage, network=net, value=age, threshold=threshold))
    return out


def _tickets(unit: FleetUnit, fires: Comparison, threshold: float, stage: Stage) -> List[Reason]:
    value = unit.overdue_tickets
    if value is not None and fires(value, threshold):
        return [Reason(metric=Metric.OVERDUE_TICKETS, stage=stage, value=value, threshold=threshold)]
    return []


def _has_required_presence(unit: FleetUnit) -> bool:
    if unit.single_network_mode:
        return unit.primary.has_presence
    return unit.primary.has_presence or unit.secondary.has_presence


def is_scan_exempt(unit: FleetUnit) -> bool:
    # Single-network units need both flags, the excluded network's included.
    if unit.single_network_mode:
        return unit.primary.scan_exempt and unit.secondary.scan_exempt
    return unit.primary.scan_exempt or unit.secondary.scan_exempt


def classify(unit: Any, config: ThresholdConfig, as_of: Optional[datetime] = None) -> RiskResult:
    return RiskClassifier(config, as_of=as_of).classify(FleetUnit.from_raw(unit))


def classify_all(
    units: Iterable[Any],
    config: ThresholdConfig,
    as_of: Optional[datetime] = None,
) -> List[ClassifiedUnit]:
    classifier = RiskClassifier(config, as_of=as_of or utc_now())
    classified = []
    for raw in units:
        unit = FleetUnit.from_raw(raw)
        classified.append(ClassifiedUnit(unit=unit, result=classifier.classify(unit)))

    tally = Counter(c.tier.value for c in classified)
    logger.debug("Classified %d units: %s", len(classified), dict(tally))
    return classified
