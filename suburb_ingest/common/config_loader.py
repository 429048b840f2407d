"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from suburb_ingest.common.errors import ConfigError
from suburb_ingest.common.fs import read_yaml
from suburb_ingest.common.schema import validate_upstream_config

CONFIG_FILENAME = "upstream.yml"


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 1
    multiplier: float = 0.5
    max_wait: float = 4.0


@dataclass(frozen=True)
class IngestConfig:
    base_url: str
    token: str
    timeout_ms: int
    snippet_limit: int
    retry: RetryConfig
    default_suburb: str
    default_property_type: str
    failure_policy: dict[str, str]
    memo_max_entries: int

    def policy_for(self, runner: str) -> str:
        return self.failure_policy.get(runner, "error")


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def build_config(cfg: dict) -> IngestConfig:
    upstream = cfg["upstream"]
    retry = cfg["retry"]
    return IngestConfig(
        base_url=str(upstream["base_url"]).rstrip("/"),
        token=str(upstream["token"]),
        timeout_ms=int(upstream["timeout_ms"]),
        snippet_limit=int(upstream["snippet_limit"]),
        retry=RetryConfig(
            max_attempts=int(retry["max_attempts"]),
            multiplier=float(retry["multiplier"]),
            max_wait=float(retry["max_wait"]),
        ),
        default_suburb=str(cfg["defaults"]["suburb"]),
        default_property_type=str(cfg["defaults"]["property_type"]),
        failure_policy=dict(cfg["failure_policy"]),
        memo_max_entries=int(cfg["memo"]["max_entries"]),
    )


def load_config(
    config_dir: Path,
    *,
    allow_unknown: bool = False,
    overlay_config_dir: Path | None = None,
) -> IngestConfig:
    overlay_path = None
    if overlay_config_dir is not None:
        overlay_path = overlay_config_dir / CONFIG_FILENAME
    cfg = _load_yaml_with_overlay(config_dir / CONFIG_FILENAME, overlay_path)
    return build_config(validate_upstream_config(cfg, allow_unknown=allow_unknown))
