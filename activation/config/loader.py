"""Configuration loading & validation.

Precedence (last wins): base.yaml → overrides.local.yaml → ENV (ACTIVATION__*).

Notices (env overrides, migration) go to stderr; stdout belongs to callers.

- `schema_version` missing → assume 1, warn.
- Sub-schemas (`modules`, `registry`, `logging`, `metrics`) validated
  individually so errors name the failing section.
- Unknown keys rejected at every level.
"""
from __future__ import annotations

import os
import pathlib
import sys
import threading
from functools import lru_cache
from typing import Any, Dict, Type

import yaml
from activation import metrics
from activation.errors import validate_error_type
from pydantic import BaseModel, ConfigDict

from .schemas.modules import ModulesConfig, RegistryConfig
from .schemas.observability import LoggingConfig, MetricsConfig


class AggregatedConfig(BaseModel):
    schema_version: int = 1
    modules: ModulesConfig = ModulesConfig()
    registry: RegistryConfig = RegistryConfig()
    logging: LoggingConfig = LoggingConfig()
    metrics: MetricsConfig = MetricsConfig()

    model_config = ConfigDict(extra="forbid")


DEFAULT_CONFIG_DIR = "configs"
ENV_PREFIX = "ACTIVATION__"

SUB_SCHEMA_CLASSES: Dict[str, Type[BaseModel]] = {
    "modules": ModulesConfig,
    "registry": RegistryConfig,
    "logging": LoggingConfig,
    "metrics": MetricsConfig,
}


class ConfigError(Exception):
    error_type = "config-invalid"


def _load_yaml_if_exists(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping")
    return data


def _merge_dict(
    base: Dict[str, Any], override: Dict[str, Any]
) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k] = _merge_dict(base[k], v)
        else:
            base[k] = v
    return base


def _apply_env(cfg: Dict[str, Any]) -> None:
    prefix_len = len(ENV_PREFIX)
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        path_parts = env_key[prefix_len:].lower().split("__")
        target = cfg
        for part in path_parts[:-1]:
            if part not in target or not isinstance(target[part], dict):
                target[part] = {}
            target = target[part]
        leaf = path_parts[-1]
        if value.lower() in {"true", "false"}:
            cast_val: Any = value.lower() == "true"
        else:
            try:
                cast_val = int(value)
            except ValueError:
                try:
                    cast_val = float(value)
                except ValueError:
                    cast_val = value
        target[leaf] = cast_val
        dotted_path = ".".join(path_parts)
        metrics.inc("env_override_total", {"path": dotted_path})
        print(
            f"[config-env-override] path={dotted_path} value=*** source=env",
            file=sys.stderr,
        )  # noqa: T201


_lock = threading.Lock()


def _resolve_config_dir() -> pathlib.Path:
    """Resolve config directory each call honoring env var changes."""
    return pathlib.Path(os.getenv("ACTIVATION_CONFIG_DIR", DEFAULT_CONFIG_DIR))


def _migrate_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    if "schema_version" not in data:
        print(
            "[config-migration] schema_version missing → assuming 1",
            file=sys.stderr,
        )  # noqa: T201
        data["schema_version"] = 1
    return data


def _validate_sub_schemas(raw: Dict[str, Any]) -> Dict[str, Any]:
    validated: Dict[str, Any] = {}
    for name, cls in SUB_SCHEMA_CLASSES.items():
        if name in raw:
            try:
                validated[name] = cls.model_validate(raw[name] or {})
            except Exception as e:  # noqa: BLE001
                raise ConfigError(
                    f"Validation failed for section '{name}': {e}"
                ) from e
    return validated


def _normalize_and_validate(raw: Dict[str, Any]) -> None:
    """Cross-field checks that pydantic field types cannot express.

    Validations (error → raise):
      - registry.directory non-empty
      - registry.metadata_index non-empty
      - schema_version >= 1
    """
    errors: list[tuple[str, str, str]] = []  # (path, code, msg)
    registry = raw.get("registry") or {}
    if isinstance(registry, dict):
        for key in ("directory", "metadata_index"):
            if key in registry and not str(registry[key] or "").strip():
                errors.append(
                    (f"registry.{key}", "config-invalid", "must not be empty")
                )
    version = raw.get("schema_version")
    if isinstance(version, int) and version < 1:
        errors.append(
            ("schema_version", "config-out-of-range", ">=1 required")
        )

    if errors:
        for path, code, _ in errors:
            metrics.inc(
                "config_validation_errors_total",
                {"path": path, "code": code},
            )
            validate_error_type(code)
        details = ", ".join(f"{p}:{c}:{m}" for p, c, m in errors)
        raise ConfigError(f"config validation failed: {details}")


@lru_cache(maxsize=1)
def get_config() -> AggregatedConfig:  # noqa: D401
    with _lock:
        cfg_dir = _resolve_config_dir()
        base_cfg = _load_yaml_if_exists(cfg_dir / "base.yaml")
        overrides_cfg = _load_yaml_if_exists(cfg_dir / "overrides.local.yaml")
        merged = _merge_dict(base_cfg, overrides_cfg)
        _apply_env(merged)
        migrated = _migrate_legacy(merged)
        _normalize_and_validate(migrated)
        validated_sub = _validate_sub_schemas(migrated)
        try:
            return AggregatedConfig.model_validate(
                {**migrated, **validated_sub}
            )
        except Exception as e:  # noqa: BLE001
            raise ConfigError(str(e)) from e


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    get_config.cache_clear()


def as_dict() -> Dict[str, Any]:
    return get_config().model_dump()
