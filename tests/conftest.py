import pytest

from fleet_risk.core.thresholds import DEFAULT_THRESHOLDS, ThresholdConfig
from fleet_risk.engine.aggregator import FleetAggregator


@pytest.fixture
def config() -> ThresholdConfig:
    return DEFAULT_THRESHOLDS


@pytest.fixture
def aggregator() -> FleetAggregator:
    return FleetAggregator()
