#!/usr/bin/env python3
"""
Validate every flow package under a directory.

Each `*.flow.json` file is checked against the flow schema and for
referential integrity (step slot keys, condition slots, and `next`
targets must all exist). Exits with status 1 if any file fails.

Usage:
    python -m scripts.validate_flows [flows_dir]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path to import kaani modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from kaani.config.settings import DEFAULT_FLOWS_DIR  # noqa: E402
from kaani.workflows.errors import FlowDefinitionError  # noqa: E402
from kaani.workflows.loader import FLOW_FILE_SUFFIX, parse_flow_file  # noqa: E402

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


def validate_directory(flows_dir: Path) -> int:
    """Validate all flow files below `flows_dir`; returns the number of failures."""
    flow_files = sorted(flows_dir.rglob(f"*{FLOW_FILE_SUFFIX}"))
    if not flow_files:
        logger.info(f"No flow files found in {flows_dir}")
        return 0

    failures = 0
    for path in flow_files:
        try:
            flow = parse_flow_file(str(path), strict=True)
        except FlowDefinitionError as e:
            failures += 1
            logger.error(f"✗ {path}")
            for problem in e.problems or [str(e)]:
                logger.error(f"  - {problem}")
            continue

        expected_prefix = f"{flow.audience}.{flow.id}"
        if path.name != f"{expected_prefix}{FLOW_FILE_SUFFIX}":
            failures += 1
            logger.error(f"✗ {path}")
            logger.error(f"  - file name should be {expected_prefix}{FLOW_FILE_SUFFIX}")
            continue

        logger.info(f"✓ {path} ({len(flow.slots)} slots, {len(flow.steps)} steps)")

    if failures:
        logger.error(f"\nValidation failed: {failures} of {len(flow_files)} flow package(s) have errors.")
    else:
        logger.info(f"\n✓ All {len(flow_files)} flow package(s) are valid.")
    return failures


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Validate KaAni flow packages.")
    parser.add_argument("flows_dir", nargs="?", default=DEFAULT_FLOWS_DIR, help="Directory to search for *.flow.json")
    args = parser.parse_args(argv)

    flows_dir = Path(args.flows_dir)
    if not flows_dir.is_dir():
        logger.error(f"Not a directory: {flows_dir}")
        return 1
    return 1 if validate_directory(flows_dir) else 0


if __name__ == "__main__":
    sys.exit(main())
