"""
Metric value to display tier, for colouring table cells.

Boundary values get the better tier: for higher-is-better metrics a value
equal to ``green`` is best and one equal to ``red`` is mid; for lower-is-better
metrics the same holds mirrored. Missing numbers get no tier at all, while a
missing scan date is the worst tier because unknown recency is itself a risk.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from fleet_risk.core.coerce import days_since, to_number
from fleet_risk.core.thresholds import ThresholdConfig
from fleet_risk.domain.metrics import DISPLAY_POLARITY, DisplayContext, DisplayMetric, Polarity


class DisplayTier(str, Enum):
    BEST = "best"
    MID = "mid"
    WORST = "worst"


def tier(value: Any, green: Any, red: Any, polarity: Polarity) -> Optional[DisplayTier]:
    v = to_number(value)
    g = to_number(green)
    r = to_number(red)
    if v is None or g is None or r is None:
        return None

    if polarity is Polarity.HIGHER_IS_BETTER:
        if v >= g:
            return DisplayTier.BEST
        if v < r:
            return DisplayTier.WORST
        return DisplayTier.MID

    if v <= g:
        return DisplayTier.BEST
    if v > r:
        return DisplayTier.WORST
    return DisplayTier.MID


def recency_tier(
    timestamp: Any,
    green: Any,
    red: Any,
    as_of: Optional[datetime] = None,
) -> Optional[DisplayTier]:
    age = days_since(timestamp, as_of)
    if age is None:
        return DisplayTier.WORST
    return tier(age, green, red, Polarity.LOWER_IS_BETTER)


def metric_tier(
    metric: DisplayMetric,
    value: Any,
    config: ThresholdConfig,
    context: DisplayContext = DisplayContext.DEFAULT,
    as_of: Optional[datetime] = None,
) -> Optional[DisplayTier]:
    green, red = config.color_pair(metric, context)
    if metric is DisplayMetric.SCAN:
        return recency_tier(value, green, red, as_of=as_of)
    return tier(value, green, red, DISPLAY_POLARITY[metric])


def breakfix_tier(count: Any) -> Optional[DisplayTier]:
    n = to_number(count)
    if n is not None and n > 0:
        return DisplayTier.WORST
    return None
