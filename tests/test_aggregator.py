import pytest

from factories import classified
from fleet_risk.core.result_types import Tier
from fleet_risk.domain.registry import UNKNOWN, GroupRegistry
from fleet_risk.engine.aggregator import FleetSummary


def test_group_averages_are_per_network_means(aggregator):
    units = [
        classified(Tier.LOW),
        classified(Tier.MED, name="UNIT-002", primary={"product_compliance": 92}),
    ]

    groups = aggregator.aggregate_by_group(units)

    (rollup,) = groups["EAST"]
    assert rollup.name == "SQUADRON 1"
    assert rollup.unit_count == 2
    assert rollup.primary_product_compliance_avg == pytest.approx(95.0)
    assert rollup.secondary_product_compliance_avg == pytest.approx(99.0)
    assert rollup.primary_true_policy_avg == pytest.approx(96.04)
    assert (rollup.high_count, rollup.med_count, rollup.low_count) == (0, 1, 1)


def test_group_averages_are_capped_at_100(aggregator):
    units = [
        classified(Tier.LOW, primary={"product_compliance": 150}),
        classified(Tier.LOW, name="UNIT-002"),
    ]

    (rollup,) = aggregator.aggregate_by_group(units)["EAST"]

    assert rollup.primary_product_compliance_avg == 100.0


def test_missing_values_are_left_out_of_means(aggregator):
    units = [
        classified(Tier.LOW, primary={"raw_policy": None}),
        classified(Tier.LOW, name="UNIT-002", primary={"raw_policy": 90}),
    ]

    (rollup,) = aggregator.aggregate_by_group(units)["EAST"]

    assert rollup.primary_raw_policy_avg == pytest.approx(90.0)


def test_no_contributors_gives_zero_average(aggregator):
    units = [classified(Tier.LOW, primary={"true_policy": None})]

    (rollup,) = aggregator.aggregate_by_group(units)["EAST"]

    assert rollup.primary_true_policy_avg == 0.0


def test_single_network_units_contribute_nothing_from_secondary(aggregator):
    units = [
        classified(
            Tier.LOW,
            single_network_mode=True,
            secondary={"breakfix": 3, "product_compliance": 10},
        ),
        classified(Tier.LOW, name="UNIT-002", secondary={"breakfix": 1}),
    ]

    (rollup,) = aggregator.aggregate_by_group(units)["EAST"]

    assert rollup.secondary_breakfix_sum == 1.0
    assert rollup.secondary_product_compliance_avg == pytest.approx(99.0)


def test_scan_exempt_counts_either_network(aggregator):
    units = [
        classified(Tier.LOW, secondary={"scan_exempt": True}),
        classified(Tier.LOW, name="UNIT-002"),
    ]

    (rollup,) = aggregator.aggregate_by_group(units)["EAST"]

    assert rollup.scan_exempt_count == 1


def test_registry_descriptor_wins_over_unit_parent(aggregator):
    registry = GroupRegistry.from_raw([{"name": "SQUADRON 1", "short": "SQ1", "parent": "WEST"}])

    groups = aggregator.aggregate_by_group([classified(Tier.LOW)], registry)

    assert list(groups) == ["WEST"]
    assert groups["WEST"][0].short == "SQ1"
    assert groups["WEST"][0].parent == "WEST"


def test_unknown_group_gets_synthesized_descriptor(aggregator):
    groups = aggregator.aggregate_by_group([classified(Tier.LOW, group="ALPHAGROUP")])

    (rollup,) = groups["EAST"]
    assert rollup.name == "ALPHAGROUP"
    assert rollup.short == "ALPHAG"
    assert rollup.parent == "EAST"


def test_groups_are_partitioned_by_parent_in_first_seen_order(aggregator):
    units = [
        classified(Tier.LOW, group="G1", parent="EAST"),
        classified(Tier.LOW, group="G2", parent="WEST"),
        classified(Tier.LOW, group="G3", parent="EAST"),
        classified(Tier.LOW, group="G1", parent="EAST", name="UNIT-004"),
    ]

    groups = aggregator.aggregate_by_group(units)

    assert list(groups) == ["EAST", "WEST"]
    assert [g.name for g in groups["EAST"]] == ["G1", "G3"]
    assert groups["EAST"][0].unit_count == 2


def test_units_without_group_or_parent_land_under_unknown(aggregator):
    groups = aggregator.aggregate_by_group([classified(Tier.LOW, group=None, parent=None)])

    (rollup,) = groups[UNKNOWN]
    assert rollup.name == UNKNOWN


def test_empty_input(aggregator):
    assert aggregator.aggregate_by_group([]) == {}
    assert aggregator.summarize([]) == FleetSummary()


def test_summary_pools_both_networks(aggregator):
    units = [
        classified(Tier.HIGH, primary={"breakfix": 2}),
        classified(Tier.LOW, name="UNIT-002"),
    ]

    summary = aggregator.summarize(units)

    assert summary.total_units == 2
    assert (summary.high_count, summary.med_count, summary.low_count) == (1, 0, 1)
    assert summary.total_breakfix == 2.0
    assert summary.avg_vph == pytest.approx(1.35)
    assert summary.avg_compliance == pytest.approx(98.5)


def test_summary_excludes_secondary_of_single_network_units(aggregator):
    units = [
        classified(
            Tier.LOW,
            single_network_mode=True,
            primary={"vph": 2.0, "product_compliance": 90},
            secondary={"vph": 8.0, "product_compliance": 10, "breakfix": 4},
        )
    ]

    summary = aggregator.summarize(units)

    assert summary.avg_vph == pytest.approx(2.0)
    assert summary.avg_compliance == pytest.approx(90.0)
    assert summary.total_breakfix == 0.0


def test_summary_caps_compliance_but_not_vph(aggregator):
    units = [
        classified(
            Tier.LOW,
            single_network_mode=True,
            primary={"vph": 150, "product_compliance": 140},
        )
    ]

    summary = aggregator.summarize(units)

    assert summary.avg_vph == 150.0
    assert summary.avg_compliance == 100.0


def test_group_by_attribute_falls_back_to_unit_fields(aggregator):
    units = [
        classified(Tier.LOW, parent="EAST"),
        classified(Tier.HIGH, parent="WEST"),
        classified(Tier.LOW, parent=None),
    ]

    by_parent = aggregator.group_by(units, "parent")
    by_tier = aggregator.group_by(units, "tier")

    assert list(by_parent) == ["EAST", "WEST", UNKNOWN]
    assert sorted(by_tier) == ["HIGH", "LOW"]
    assert len(by_tier["LOW"]) == 2


def test_group_by_mappings_and_callables(aggregator):
    rows = [{"region": "north"}, {"region": ""}, {"region": None}, {}, {"region": "north"}]

    grouped = aggregator.group_by(rows, "region")
    by_len = aggregator.group_by(["a", "bb", "cc"], len)

    assert {k: len(v) for k, v in grouped.items()} == {"north": 2, UNKNOWN: 3}
    assert by_len == {"1": ["a"], "2": ["bb", "cc"]}
