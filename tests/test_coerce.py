import json
from datetime import datetime, timezone

import pytest

from fleet_risk.core.coerce import days_since, scan_age, to_flag, to_number


@pytest.mark.parametrize("value", [None, True, False, "3.5", float("nan"), float("-inf"), 10**400, -(10**400)])
def test_to_number_rejects_unusable_values(value):
    assert to_number(value) is None


def test_to_number_accepts_finite_numbers():
    assert to_number(3) == 3.0
    assert to_number(0) == 0.0
    assert to_number(2.75) == 2.75


def test_oversized_json_integer_is_not_reported():
    payload = json.loads('{"vph": 1' + "0" * 400 + "}")

    assert to_number(payload["vph"]) is None


def test_to_flag_only_accepts_true():
    assert to_flag(True)
    assert not to_flag(1)
    assert not to_flag("true")


def test_future_scan_has_no_age():
    as_of = datetime(2024, 6, 1, tzinfo=timezone.utc)

    assert days_since("2024-06-03T00:00:00Z", as_of) == -2
    assert scan_age("2024-06-03T00:00:00Z", as_of) is None
    assert scan_age("2024-05-30T00:00:00Z", as_of) == 2
