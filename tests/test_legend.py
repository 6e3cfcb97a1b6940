from fleet_risk.core.thresholds import DEFAULT_THRESHOLDS, ThresholdConfig
from fleet_risk.engine.legend import build_legend


def test_default_legend():
    legend = build_legend(DEFAULT_THRESHOLDS)

    assert legend.high == "Breakfix > 0 OR No telemetry OR Tickets > 20 OR TruePolicy < 90%"
    assert legend.med == "2+ of: VPH > 3.5, Product < 95%, TruePolicy < 95%, Scan > 14d, Tickets > 10"
    assert legend.low == "VPH < 2.5, Product >= 95%, Scan < 14d"


def test_legend_follows_enabled_triggers():
    config = ThresholdConfig.resolve(
        {
            "auto_high_ra_vph": 6,
            "high_tam_past_due": 999,
            "high_ess_compliance": 0,
            "high_product_compliance": 50,
            "med_true_policy_compliance": 0,
            "low_tam_past_due_enabled": 1,
            "low_raw_policy_compliance_enabled": True,
        },
        DEFAULT_THRESHOLDS,
    )

    legend = build_legend(config)

    assert legend.high == "Breakfix > 0 OR No telemetry OR VPH > 6 OR Product < 50%"
    assert legend.med == "2+ of: VPH > 3.5, Product < 95%, Scan > 14d, Tickets > 10"
    assert legend.low == "VPH < 2.5, Product >= 95%, Scan < 14d, Tickets <= 5"
