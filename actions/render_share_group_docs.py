#!/usr/bin/env python3
"""
Render documentation for the public share group configuration keys.

**What it does**:
  1. Takes the key definitions from CONFIG_DEF (internal keys are skipped)
  2. Renders them as reStructuredText, an HTML table, or CSV
  3. Writes to stdout, or to --output if given

**Usage**:
    From project root:
    ```bash
    python actions/render_share_group_docs.py --format rst
    python actions/render_share_group_docs.py --format html --output docs/share_group_configs.html
    ```
"""

import argparse
import sys
from pathlib import Path

# Ensure project root is on path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from sharegroup.config.definition import ConfigDef
from sharegroup.config.share_group_config import CONFIG_DEF

FORMATS = ("rst", "html", "csv")


def render(definition: ConfigDef, fmt: str) -> str:
    """
    Render a ConfigDef's public keys in the requested format.

    Args:
        definition: Definitions to document.
        fmt: One of "rst", "html", "csv".

    Returns:
        Rendered document as a string.

    Raises:
        ValueError: If fmt is not a supported format.
    """
    if fmt == "rst":
        return definition.to_rst()
    if fmt == "html":
        return definition.to_html()
    if fmt == "csv":
        return definition.to_frame().to_csv(index=False)
    raise ValueError(f"Unsupported format: {fmt}. Expected one of {FORMATS}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Render share group configuration documentation",
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="rst",
        help="Output format (default: rst)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write to this file instead of stdout",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    document = render(CONFIG_DEF, args.format)

    if args.output is None:
        print(document)
        return 0

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(document, encoding="utf-8")
    print(f"  ✓ Wrote {len(CONFIG_DEF.to_frame())} keys to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
