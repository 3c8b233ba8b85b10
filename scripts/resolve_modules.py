"""Print the ordered activation list for a repository.

Usage:
  python scripts/resolve_modules.py --root . --exclude plugins.debug
  python scripts/resolve_modules.py --json

Exit codes: 0 ok, 1 resolution error, 2 config/registry error.
"""
from __future__ import annotations

import argparse
import json
import pathlib
import sys
from typing import List, Optional

# Ensure project root on path before importing project modules
ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from activation.config import (  # noqa: E402
    ConfigError,
    configure_logging,
    get_config,
)
from activation.modules import (  # noqa: E402
    ResolutionError,
    ResolutionReport,
    build_selector,
)
from activation.registry import RegistryError  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    p.add_argument("--root", default=".", help="repository root")
    p.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="module name to exclude (repeatable)",
    )
    p.add_argument("--json", action="store_true", help="JSON output")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        configure_logging(get_config().logging)
        report = ResolutionReport()
        selector = build_selector(args.root, listeners=[report])
        modules = selector.select(exclude_names=args.exclude)
    except ResolutionError as e:
        sys.stderr.write(f"[{e.error_type}] {e}\n")
        return 1
    except (ConfigError, RegistryError) as e:
        sys.stderr.write(f"[{e.error_type}] {e}\n")
        return 2
    if args.json:
        sys.stdout.write(json.dumps(report.as_dict(), indent=2) + "\n")
    else:
        for name in modules:
            sys.stdout.write(name + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
