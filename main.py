"""
sharegroup – Main entry point.

Loads share group configuration from the environment (and .env), applies any
--set overrides, validates it, and prints the resolved values. Exits with
status 1 if the configuration is rejected, so it can gate process startup.

Usage:
    python main.py
    python main.py --set group.share.delivery.count.limit=3 --set group.share.max.groups=20
"""

import argparse
import logging
import sys
from typing import Dict, List, Optional

from sharegroup.config.definition import ConfigException
from sharegroup.config.settings import get_share_group_config


def parse_overrides(pairs: List[str]) -> Dict[str, str]:
    """
    Turn ["key=value", ...] into a dict.

    Raises:
        ValueError: If an entry has no "=" or an empty key.
    """
    overrides: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got: {pair}")
        overrides[key] = value
    return overrides


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="Validate and print the share group configuration",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a configuration key (repeatable)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Load, validate and print the share group configuration.

    Returns:
        0 on success, 1 if the configuration is invalid.
    """
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        overrides = parse_overrides(args.overrides)
        config = get_share_group_config(overrides)
    except ConfigException as e:
        print(f"Error: invalid share group configuration: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for key, value in config.to_dict().items():
        if isinstance(value, bool):
            value = "true" if value else "false"
        print(f"{key}={value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
