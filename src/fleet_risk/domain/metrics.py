from __future__ import annotations

from enum import Enum
from typing import Dict


class Metric(str, Enum):
    BREAKFIX = "breakfix"
    NO_TELEMETRY = "no_telemetry"
    PRODUCT_COMPLIANCE = "product_compliance"
    VPH = "vph"
    SCAN_AGE = "scan_age"
    TRUE_POLICY = "true_policy"
    RAW_POLICY = "raw_policy"
    OVERDUE_TICKETS = "overdue_tickets"
    SCAN_EXEMPT = "scan_exempt"


METRIC_LABELS: Dict[Metric, str] = {
    Metric.BREAKFIX: "Breakfix",
    Metric.NO_TELEMETRY: "No telemetry",
    Metric.PRODUCT_COMPLIANCE: "Prod",
    Metric.VPH: "VPH",
    Metric.SCAN_AGE: "Scan",
    Metric.TRUE_POLICY: "True Policy",
    Metric.RAW_POLICY: "Raw Policy",
    Metric.OVERDUE_TICKETS: "Overdue Tickets",
    Metric.SCAN_EXEMPT: "Scan Exempt",
}


class Polarity(str, Enum):
    HIGHER_IS_BETTER = "higher_is_better"
    LOWER_IS_BETTER = "lower_is_better"


class DisplayMetric(str, Enum):
    """Metric families that carry a green/red colour pair in the threshold set."""

    PRODUCT = "product"
    POLICY = "policy"
    POLICY_RAW = "policy_raw"
    VPH = "vph"
    SCAN = "scan"


DISPLAY_POLARITY: Dict[DisplayMetric, Polarity] = {
    DisplayMetric.PRODUCT: Polarity.HIGHER_IS_BETTER,
    DisplayMetric.POLICY: Polarity.HIGHER_IS_BETTER,
    DisplayMetric.POLICY_RAW: Polarity.HIGHER_IS_BETTER,
    DisplayMetric.VPH: Polarity.LOWER_IS_BETTER,
    DisplayMetric.SCAN: Polarity.LOWER_IS_BETTER,
}


class DisplayContext(str, Enum):
    DEFAULT = "default"
    HQ = "hq"

    @property
    def key_prefix(self) -> str:
        return "hq_" if self is DisplayContext.HQ else ""
