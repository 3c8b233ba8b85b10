"""AST based metadata inspection (no module import).

Reads a candidate's source file and collects top-level upper-case constants
whose value is a Python literal:

    ACTIVATION_ORDER = 10
    ACTIVATE_BEFORE = ["plugins.web"]
    ACTIVATE_AFTER = ("plugins.db",)
    REQUIRES = ["redis"]

Known keys are mapped to the attribute names used by the precomputed index
(``order``, ``before``, ``after``); every other constant is exposed under
its lower-cased name (``REQUIRES`` -> ``requires``).

Locating a dotted candidate with `importlib.util.find_spec` imports its
parent packages (not the candidate itself).
"""
from __future__ import annotations

import ast
import importlib.util
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .exceptions import MetadataReadError
from .metadata import AFTER_KEY, BEFORE_KEY, ORDER_KEY

KNOWN_CONSTANTS = {
    "ACTIVATION_ORDER": ORDER_KEY,
    "ACTIVATE_BEFORE": BEFORE_KEY,
    "ACTIVATE_AFTER": AFTER_KEY,
}

SpecFinder = Callable[[str], Any]


def _assigned_name(node: ast.stmt) -> Optional[str]:
    if isinstance(node, ast.Assign):
        if len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            return node.targets[0].id
    elif isinstance(node, ast.AnnAssign) and node.value is not None:
        if isinstance(node.target, ast.Name):
            return node.target.id
    return None


class SourceInspector:
    def __init__(self, find_spec: SpecFinder | None = None) -> None:
        self._find_spec = find_spec or importlib.util.find_spec

    def locate(self, candidate: str) -> Optional[Path]:
        """Source file for ``candidate`` or None when it cannot be found."""
        try:
            spec = self._find_spec(candidate)
        except Exception:  # noqa: BLE001
            # parent package missing or failing at import
            return None
        if spec is None or not spec.origin or not spec.has_location:
            return None
        path = Path(spec.origin)
        if path.suffix != ".py":
            return None
        return path

    def inspect(self, candidate: str) -> Dict[str, Any]:
        path = self.locate(candidate)
        if path is None:
            return {}
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as e:
            raise MetadataReadError(candidate, str(e)) from e
        return self.inspect_source(candidate, source, filename=str(path))

    def inspect_source(
        self, candidate: str, source: str, filename: str = "<unknown>"
    ) -> Dict[str, Any]:
        try:
            tree = ast.parse(source, filename=filename)
        except SyntaxError as e:
            raise MetadataReadError(candidate, f"syntax error: {e}") from e
        attrs: Dict[str, Any] = {}
        for node in tree.body:
            name = _assigned_name(node)
            if not name or not name.isupper():
                continue
            try:
                value = ast.literal_eval(node.value)  # type: ignore[arg-type]
            except (TypeError, ValueError) as e:
                if name in KNOWN_CONSTANTS:
                    raise MetadataReadError(
                        candidate, f"{name} must be a literal value"
                    ) from e
                continue
            attrs[KNOWN_CONSTANTS.get(name, name.lower())] = value
        return attrs


__all__ = ["SourceInspector", "KNOWN_CONSTANTS"]
