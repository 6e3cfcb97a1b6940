from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import streamlit as st

SRC_PATH = Path(__file__).resolve().parents[2]
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from fleet_risk.core.fleet_engine import FleetReport, FleetRiskEngine
from fleet_risk.core.result_types import ClassifiedUnit
from fleet_risk.core.thresholds import DEFAULT_THRESHOLDS, ThresholdConfig
from fleet_risk.domain.metrics import DisplayContext, DisplayMetric
from fleet_risk.domain.registry import GroupRegistry
from fleet_risk.engine.tiers import DisplayTier, breakfix_tier, metric_tier


APP_TITLE = "Fleet Risk"

_MARKERS = {DisplayTier.BEST: "🟢", DisplayTier.MID: "🟡", DisplayTier.WORST: "🔴"}


def _default_input() -> Dict[str, Any]:
    recent = (datetime.now(timezone.utc) - timedelta(days=5)).isoformat()
    stale = (datetime.now(timezone.utc) - timedelta(days=40)).isoformat()
    return {
        "registry": [
            {"name": "SQUADRON 1", "short": "SQ1", "parent": "EAST"},
            {"name": "SQUADRON 2", "short": "SQ2", "parent": "WEST"},
        ],
        "units": [
            {
                "name": "UNIT-101",
                "group": "SQUADRON 1",
                "parent": "EAST",
                "primary": {"breakfix": 0, "product_compliance": 98, "true_policy": 96, "vph": 1.5, "last_scan": recent},
                "secondary": {"breakfix": 0, "product_compliance": 99, "true_policy": 98, "vph": 1.2, "last_scan": recent},
                "overdue_tickets": 2,
            },
            {
                "name": "UNIT-102",
                "group": "SQUADRON 1",
                "parent": "EAST",
                "primary": {"breakfix": 2, "product_compliance": 91, "vph": 3.8, "last_scan": stale},
                "secondary": {"product_compliance": 94, "vph": 2.9, "last_scan": recent},
            },
            {
                "name": "UNIT-201",
                "group": "SQUADRON 2",
                "parent": "WEST",
                "single_network_mode": True,
                "primary": {"product_compliance": 97, "true_policy": 95, "vph": 2.6, "last_scan": recent},
            },
        ],
    }


def _mark(value: Any, display_tier: Optional[DisplayTier], fmt: str = "{}") -> str:
    if value is None:
        return "-"
    text = fmt.format(value)
    marker = _MARKERS.get(display_tier) if display_tier else None
    return f"{marker} {text}" if marker else text


def _unit_rows(classified: List[ClassifiedUnit], config: ThresholdConfig) -> List[Dict[str, str]]:
    rows = []
    for c in classified:
        u = c.unit
        row: Dict[str, str] = {"Unit": u.name, "Group": u.group or "", "Tier": c.tier.value}
        for net, tel in u.applicable_networks():
            p = net.label
            row[f"{p} Breakfix"] = _mark(tel.breakfix, breakfix_tier(tel.breakfix), "{:g}")
            row[f"{p} Prod"] = _mark(
                tel.product_compliance,
                metric_tier(DisplayMetric.PRODUCT, tel.product_compliance, config),
                "{:.1f}%",
            )
            row[f"{p} True Policy"] = _mark(
                tel.true_policy, metric_tier(DisplayMetric.POLICY, tel.true_policy, config), "{:.1f}%"
            )
            row[f"{p} VPH"] = _mark(tel.vph, metric_tier(DisplayMetric.VPH, tel.vph, config), "{:.2f}")
            scan_marker = _MARKERS[metric_tier(DisplayMetric.SCAN, tel.last_scan, config)]
            row[f"{p} Scan"] = f"{scan_marker} {tel.last_scan.date() if tel.last_scan else '-'}"
        row["Reasons"] = "; ".join(c.result.reason_texts)
        rows.append(row)
    return rows


def _group_rows(report: FleetReport, config: ThresholdConfig) -> List[Dict[str, Any]]:
    rows = []
    for parent, rollups in report.groups.items():
        for g in rollups:
            rows.append(
                {
                    "Parent": parent,
                    "Group": g.short,
                    "Units": g.unit_count,
                    "HIGH": g.high_count,
                    "MED": g.med_count,
                    "LOW": g.low_count,
                    "Breakfix": g.primary_breakfix_sum + g.secondary_breakfix_sum,
                    "Primary Prod": _mark(
                        g.primary_product_compliance_avg,
                        metric_tier(DisplayMetric.PRODUCT, g.primary_product_compliance_avg, config, DisplayContext.HQ),
                        "{:.1f}%",
                    ),
                    "Secondary Prod": _mark(
                        g.secondary_product_compliance_avg,
                        metric_tier(DisplayMetric.PRODUCT, g.secondary_product_compliance_avg, config, DisplayContext.HQ),
                        "{:.1f}%",
                    ),
                }
            )
    return rows


def main() -> None:
    st.set_page_config(page_title=APP_TITLE, layout="wide")
    st.title(APP_TITLE)

    with st.sidebar:
        st.subheader("Input")
        st.caption("Paste a JSON object with keys: units, registry (optional), thresholds (optional)")

    if "input_json" not in st.session_state:
        st.session_state.input_json = json.dumps(_default_input(), ensure_ascii=False, indent=2)

    input_text = st.text_area("Input JSON", value=st.session_state.input_json, height=360)

    c1, c2 = st.columns([1, 1])
    run = c1.button("Classify fleet")
    reset = c2.button("Reset demo input")

    if reset:
        st.session_state.input_json = json.dumps(_default_input(), ensure_ascii=False, indent=2)
        st.rerun()

    if not run:
        st.info("Click Classify fleet to tier the units.")
        return

    try:
        raw = json.loads(input_text)
        config = ThresholdConfig.resolve(raw.get("thresholds"), DEFAULT_THRESHOLDS)
        registry = GroupRegistry.from_raw(raw.get("registry"))
        report = FleetRiskEngine(config=config, registry=registry).run(raw.get("units") or [])
    except (ValueError, AttributeError) as e:
        st.error(f"Invalid input: {e}")
        return

    st.divider()
    s = report.summary
    cols = st.columns(5)
    cols[0].metric("Units", s.total_units)
    cols[1].metric("HIGH", s.high_count)
    cols[2].metric("MED", s.med_count)
    cols[3].metric("LOW", s.low_count)
    cols[4].metric("Breakfix", f"{s.total_breakfix:g}")

    for w in report.warnings:
        st.warning(w)

    st.subheader("Groups")
    st.dataframe(_group_rows(report, config), width="stretch")

    st.subheader("Units")
    st.dataframe(_unit_rows(report.classified, config), width="stretch")

    st.subheader("Legend")
    st.write(f"**HIGH:** {report.legend.high}")
    st.write(f"**MED:** {report.legend.med}")
    st.write(f"**LOW:** {report.legend.low}")


if __name__ == "__main__":
    main()
