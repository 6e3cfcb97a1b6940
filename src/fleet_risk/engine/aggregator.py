from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from fleet_risk.core.result_types import ClassifiedUnit, Tier
from fleet_risk.domain.networks import Network
from fleet_risk.domain.registry import UNKNOWN, GroupRegistry
from fleet_risk.domain.schemas import FleetUnit

logger = logging.getLogger(__name__)

PERCENT_CAP = 100.0

Selector = Union[str, Callable[[Any], Any]]

_AVERAGED_FIELDS = ("product_compliance", "true_policy", "raw_policy")


@dataclass(frozen=True)
class GroupRollup:
    name: str
    short: str
    parent: Optional[str]
    unit_count: int = 0
    high_count: int = 0
    med_count: int = 0
    low_count: int = 0
    scan_exempt_count: int = 0
    primary_breakfix_sum: float = 0.0
    secondary_breakfix_sum: float = 0.0
    primary_product_compliance_avg: float = 0.0
    primary_true_policy_avg: float = 0.0
    primary_raw_policy_avg: float = 0.0
    secondary_product_compliance_avg: float = 0.0
    secondary_true_policy_avg: float = 0.0
    secondary_raw_policy_avg: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FleetSummary:
    total_units: int = 0
    high_count: int = 0
    med_count: int = 0
    low_count: int = 0
    total_breakfix: float = 0.0
    scan_exempt_count: int = 0
    avg_vph: float = 0.0
    avg_compliance: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _mean(total: float, count: int, cap: Optional[float] = None) -> float:
    if count <= 0:
        return 0.0
    value = total / count
    return min(cap, value) if cap is not None else value


def _tier_counts(units: List[ClassifiedUnit]) -> Dict[Tier, int]:
    counts = {Tier.HIGH: 0, Tier.MED: 0, Tier.LOW: 0}
    for c in units:
        counts[c.tier] += 1
    return counts


def _either_exempt(unit: FleetUnit) -> bool:
    return unit.primary.scan_exempt or unit.secondary.scan_exempt


class FleetAggregator:
    """
    Group and fleet rollups over already-classified units.

    Single-network units contribute nothing from their secondary network: its
    breakfix counts as 0 and its compliance values are left out of the means.
    """

    def aggregate_by_group(
        self,
        units: Iterable[ClassifiedUnit],
        registry: Optional[GroupRegistry] = None,
    ) -> Dict[str, List[GroupRollup]]:
        registry = registry or GroupRegistry()

        members: Dict[str, List[ClassifiedUnit]] = {}
        for c in units:
            key = c.unit.group or UNKNOWN
            members.setdefault(key, []).append(c)

        by_parent: Dict[str, List[GroupRollup]] = {}
        for key, group_units in members.items():
            descriptor = registry.lookup(key, parent=group_units[0].unit.parent)
            rollup = self._rollup(descriptor.name, descriptor.short, descriptor.parent, group_units)
            by_parent.setdefault(descriptor.parent or UNKNOWN, []).append(rollup)

        logger.debug("Rolled up %d groups under %d parents", len(members), len(by_parent))
        return by_parent

    def _rollup(
        self,
        name: str,
        short: str,
        parent: Optional[str],
        units: List[ClassifiedUnit],
    ) -> GroupRollup:
        breakfix_sum: Dict[Network, float] = {Network.PRIMARY: 0.0, Network.SECONDARY: 0.0}
        metric_sum: Dict[str, float] = {}
        metric_count: Dict[str, int] = {}
        exempt = 0

        for c in units:
            for net, tel in c.unit.applicable_networks():
                breakfix_sum[net] += tel.breakfix or 0.0
                for field_name in _AVERAGED_FIELDS:
                    value = getattr(tel, field_name)
                    if value is None:
                        continue
                    key = f"{net.value}_{field_name}"
                    metric_sum[key] = metric_sum.get(key, 0.0) + value
                    metric_count[key] = metric_count.get(key, 0) + 1
            if _either_exempt(c.unit):
                exempt += 1

        def avg(net: Network, field_name: str) -> float:
            key = f"{net.value}_{field_name}"
            return _mean(metric_sum.get(key, 0.0), metric_count.get(key, 0), cap=PERCENT_CAP)

        counts = _tier_counts(units)
        return GroupRollup(
            name=name,
            short=short,
            parent=parent,
            unit_count=len(units),
            high_count=counts[Tier.HIGH],
            med_count=counts[Tier.MED],
            low_count=counts[Tier.LOW],
            scan_exempt_count=exempt,
            primary_breakfix_sum=breakfix_sum[Network.PRIMARY],
            secondary_breakfix_sum=breakfix_sum[Network.SECONDARY],
            primary_product_compliance_avg=avg(Network.PRIMARY, "product_compliance"),
            primary_true_policy_avg=avg(Network.PRIMARY, "true_policy"),
            primary_raw_policy_avg=avg(Network.PRIMARY, "raw_policy"),
            secondary_product_compliance_avg=avg(Network.SECONDARY, "product_compliance"),
            secondary_true_policy_avg=avg(Network.SECONDARY, "true_policy"),
            secondary_raw_policy_avg=avg(Network.SECONDARY, "raw_policy"),
        )

    def summarize(self, units: Iterable[ClassifiedUnit]) -> FleetSummary:
        units = list(units)
        total_breakfix = 0.0
        vph_sum, vph_count = 0.0, 0
        comp_sum, comp_count = 0.0, 0

        for c in units:
            for _, tel in c.unit.applicable_networks():
                total_breakfix += tel.breakfix or 0.0
                if tel.vph is not None:
                    vph_sum += tel.vph
                    vph_count += 1
                if tel.product_compliance is not None:
                    comp_sum += tel.product_compliance
                    comp_count += 1

        counts = _tier_counts(units)
        return FleetSummary(
            total_units=len(units),
            high_count=counts[Tier.HIGH],
            med_count=counts[Tier.MED],
            low_count=counts[Tier.LOW],
            total_breakfix=total_breakfix,
            scan_exempt_count=sum(1 for c in units if _either_exempt(c.unit)),
            avg_vph=_mean(vph_sum, vph_count),
            avg_compliance=_mean(comp_sum, comp_count, cap=PERCENT_CAP),
        )

    def group_by(self, items: Iterable[Any], selector: Selector) -> Dict[str, List[Any]]:
        groups: Dict[str, List[Any]] = {}
        for item in items:
            value = _select(item, selector)
            if isinstance(value, Enum):
                value = value.value
            key = UNKNOWN if value is None or value == "" else str(value)
            groups.setdefault(key, []).append(item)
        return groups


def _select(item: Any, selector: Selector) -> Any:
    if callable(selector):
        return selector(item)
    if isinstance(item, Mapping):
        return item.get(selector)
    value = getattr(item, selector, None)
    if value is None and isinstance(item, ClassifiedUnit):
        value = getattr(item.unit, selector, None)
    return value
