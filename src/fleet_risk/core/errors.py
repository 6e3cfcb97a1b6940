"""
Boundary errors.

Classification, display tiers and aggregation never raise over malformed unit
data. These exceptions are reserved for inputs that cannot be turned into
records at all: unreadable settings files, broken registries, non-object unit
payloads.
"""

from __future__ import annotations


class FleetRiskError(Exception):
    pass


class ThresholdConfigError(FleetRiskError, ValueError):
    pass


class RegistryError(FleetRiskError, ValueError):
    pass


class UnitRecordError(FleetRiskError, ValueError):
    pass
