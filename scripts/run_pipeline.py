#!/usr/bin/env python3
"""
Run the scoring pipeline using a YAML configuration.
"""

import argparse
import sys

from dotenv import load_dotenv

from parascore.config import apply_env_overrides, build_pipeline, load_pipeline_config
from parascore.tracking import RunTracker
from parascore.utils import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the scoring pipeline from config YAML.")
    parser.add_argument("config", help="Path to pipeline config YAML")
    parser.add_argument("--workers", type=int, default=None, help="Number of workers")
    parser.add_argument("--log-level", default=None, help="Logging level (default: ERROR)")
    args = parser.parse_args()

    load_dotenv()

    cfg = apply_env_overrides(load_pipeline_config(args.config))
    if args.workers is not None:
        cfg.workers = args.workers
    if args.log_level:
        cfg.log_level = args.log_level

    setup_logging(cfg.log_level, cfg.log_file)

    tracker = RunTracker()
    tracker.log_config(cfg.as_dict())
    pool, coordinator, sink = build_pipeline(cfg, tracker=tracker)
    with sink:
        summary = coordinator.run(pool)

    print(
        f"Processed {summary.processed}/{summary.total_items} items "
        f"({summary.absent} absent, {summary.failed} failed, "
        f"{summary.unclaimed} unclaimed) in {summary.total_time_ms / 1000:.1f}s."
    )
    print(f"Results appended to {cfg.output}.")
    if not summary.ok:
        print(f"{summary.worker_failures} worker(s) aborted:", file=sys.stderr)
        for error in summary.worker_errors:
            print(f"- {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
