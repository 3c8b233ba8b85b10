"""Generate the precomputed metadata index from module sources.

Inspects every registered candidate (AST only, nothing is imported) and
writes the attributes to the configured index file, so later resolutions
skip inspection for these candidates.

Usage (inside venv):
  python scripts/generate_metadata_index.py [--root .] [--out metadata-index.yaml]
"""
from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Dict, List, Optional

ROOT = pathlib.Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from activation.config import get_config  # noqa: E402
from activation.modules import (  # noqa: E402
    MetadataIndex,
    SourceInspector,
    dedupe,
)
from activation.registry import (  # noqa: E402
    dump_metadata_index,
    load_candidates,
)


def build_index(
    candidates: List[str], inspector: SourceInspector | None = None
) -> MetadataIndex:
    """Inspect candidates; modules without any declared attribute are skipped."""
    inspector = inspector or SourceInspector()
    entries: Dict[str, Dict] = {}
    for name in dedupe(candidates):
        attrs = inspector.inspect(name)
        if attrs:
            entries[name] = attrs
    return MetadataIndex(entries)


def main(argv: Optional[List[str]] = None) -> int:  # noqa: D401
    p = argparse.ArgumentParser(description="Generate metadata index")
    p.add_argument("--root", default=".")
    p.add_argument("--out", default=None)
    args = p.parse_args(argv)
    cfg = get_config()
    root = pathlib.Path(args.root)
    candidates = load_candidates(root, cfg.registry.directory)
    index = build_index(candidates)
    out = pathlib.Path(args.out) if args.out else root / cfg.registry.metadata_index
    dump_metadata_index(index, out)
    sys.stdout.write(f"wrote {len(index)} entries to {out}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
