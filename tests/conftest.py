"""Pytest configuration ensuring project root is importable.

Adds repository root and src/ to sys.path explicitly to avoid
interpreter/path quirks.
"""
from __future__ import annotations

import sys
from pathlib import Path
import os
import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def _isolate_config_env():  # noqa: D401
    """Ensure global config/env side effects do not leak between tests.

    - Clear aggregated config cache between tests
    - Restore ACTIVATION_CONFIG_DIR to original value
    """
    from activation.config import clear_config_cache  # local import

    prev = os.environ.get("ACTIVATION_CONFIG_DIR")
    clear_config_cache()
    try:
        yield
    finally:
        clear_config_cache()
        if prev is None:
            os.environ.pop("ACTIVATION_CONFIG_DIR", None)
        else:
            os.environ["ACTIVATION_CONFIG_DIR"] = prev


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Empty config dir (defaults only); write base.yaml into it as needed."""
    d = tmp_path / "configs"
    d.mkdir()
    monkeypatch.setenv("ACTIVATION_CONFIG_DIR", str(d))
    return d


@pytest.fixture
def make_repo(tmp_path):
    """Build a throwaway repo with registry manifests and optional index."""
    import yaml

    def _make(manifests: dict, index: dict | None = None) -> Path:
        repo = tmp_path / "repo"
        reg = repo / "registry.d"
        reg.mkdir(parents=True, exist_ok=True)
        for name, candidates in manifests.items():
            (reg / f"{name}.yaml").write_text(
                yaml.safe_dump({"candidates": list(candidates)}),
                encoding="utf-8",
            )
        if index is not None:
            (repo / "metadata-index.yaml").write_text(
                yaml.safe_dump(index), encoding="utf-8"
            )
        return repo

    return _make
