"""Command-line entry point: run a scenario from a YAML config and export results."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config.loader import load_config
from .logs import configure_logging, log_event
from .reporting.export import export_csv, export_events_csv, export_json
from .simulation.runner import ScenarioRunner
from .validation.sanity_checks import validate_simulation_results

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stakeledger-sim",
        description="Replay a staking ledger scenario and export snapshots.",
    )
    p.add_argument("--config", default=None, help="YAML config (defaults to $STAKELEDGER_CONFIG, then the packaged defaults.yaml)")
    p.add_argument("--out", default="stakeledger-out", help="Output directory")
    p.add_argument("--seed", type=int, default=None, help="Override simulation.random_seed")
    p.add_argument("--blocks", type=int, default=None, help="Override simulation.blocks")
    p.add_argument("--log-level", default=None, help="Override logging.level")
    p.add_argument("--strict", action="store_true", help="Exit non-zero on any error-severity check")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.blocks is not None:
        overrides["simulation"] = {"blocks": args.blocks}
    if args.log_level is not None:
        overrides["logging"] = {"level": args.log_level}
    config = load_config(args.config, overrides)
    configure_logging(config.logging.level)

    result = ScenarioRunner(config).run(random_seed=args.seed)
    warnings = validate_simulation_results(config, result.snapshots)

    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)
    export_csv(result, str(out / "snapshots.csv"))
    export_events_csv(result, str(out / "events.csv"))
    export_json(result, str(out / "result.json"))

    for warning in warnings:
        level = logging.ERROR if warning.severity == "error" else logging.WARNING
        log_event(logger, "sanity_check", level=level, category=warning.category,
                  message=warning.message, details=warning.details)
    log_event(logger, "run_complete", config_hash=config.compute_hash(), out=str(out), **result.final_metrics)

    errors = [w for w in warnings if w.severity == "error"]
    if args.strict and errors:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
