from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from fleet_risk.core.coerce import parse_timestamp
from fleet_risk.core.errors import FleetRiskError, UnitRecordError
from fleet_risk.core.fleet_engine import FleetRiskEngine
from fleet_risk.core.log import configure_logging
from fleet_risk.core.thresholds import DEFAULT_THRESHOLDS, ThresholdConfig, load_thresholds
from fleet_risk.domain.registry import GroupRegistry, load_registry

logger = logging.getLogger(__name__)


def _load_input(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, list):
        return {"units": raw}
    if not isinstance(raw, dict):
        raise UnitRecordError("Input must be a JSON object with a 'units' list, or a list of units")
    return raw


def _units(raw: Dict[str, Any]) -> List[Any]:
    units = raw.get("units", [])
    if not isinstance(units, list):
        raise UnitRecordError("'units' must be a list")
    return units


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fleet-risk",
        description="Classify fleet units into HIGH/MED/LOW risk tiers and roll them up by group.",
    )
    parser.add_argument("input", help="JSON file with a 'units' list (optional 'thresholds' and 'registry')")
    parser.add_argument("--thresholds", type=Path, help="JSON threshold settings; overrides the input's")
    parser.add_argument("--registry", type=Path, help="JSON group registry; overrides the input's")
    parser.add_argument("--as-of", dest="as_of", help="ISO timestamp used as 'now' for scan ages")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        raw = _load_input(args.input)

        if args.thresholds is not None:
            config = load_thresholds(args.thresholds, DEFAULT_THRESHOLDS)
        else:
            config = ThresholdConfig.resolve(raw.get("thresholds"), DEFAULT_THRESHOLDS)

        if args.registry is not None:
            registry = load_registry(args.registry)
        else:
            registry = GroupRegistry.from_raw(raw.get("registry"))

        as_of = parse_timestamp(args.as_of) if args.as_of else None
        if args.as_of and as_of is None:
            sys.stderr.write(f"Invalid --as-of timestamp: {args.as_of}\n")
            return 2

        engine = FleetRiskEngine(config=config, registry=registry, as_of=as_of)
        report = engine.run(_units(raw))
    except FleetRiskError as exc:
        sys.stderr.write(f"{exc}\n")
        return 2
    except (OSError, ValueError) as exc:
        logger.debug("Failed to read input", exc_info=True)
        sys.stderr.write(f"Cannot read input {args.input}: {exc}\n")
        return 2

    sys.stdout.write(json.dumps(report.as_dict(), ensure_ascii=False, indent=2))
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
