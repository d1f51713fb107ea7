"""
Capability inspection.

Loads the harness settings, resolves every registered capability and prints
the backend selected for each, so a CI job can check its wiring before
running the suite.

Usage:
    python -m harness
    python -m harness --config ci/harness.yml --verbose
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from loguru import logger

from harness import __version__
from harness.bootstrap import build_registry
from harness.config.loader import SettingsError, SettingsLoader


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m harness",
        description="Test Harness - capability inspection",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to the harness settings file "
        "(default: discovered from HARNESS_CONFIG_DIR / HARNESS_CONFIG_NAME)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for capability inspection."""
    args = parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    try:
        settings = SettingsLoader().load(args.config)
    except (SettingsError, FileNotFoundError) as e:
        logger.error(f"[Harness] Cannot load settings: {e}")
        return 1

    registry = build_registry(settings)
    source = settings.source or "defaults"
    print(f"Settings: {source}")
    for kind in registry.kinds():
        backend = registry.resolve(kind)
        kind_name = getattr(kind, "__name__", None) or str(kind)
        suffix = " (no-op)" if backend.noop else ""
        print(f"  {kind_name:<22} {backend.name}{suffix}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
