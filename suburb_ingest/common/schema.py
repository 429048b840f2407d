"""Minimal strict schema for YAML config validation."""

from __future__ import annotations

from suburb_ingest.common.constants import FAILURE_POLICIES, PROPERTY_TYPES, RUNNERS
from suburb_ingest.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_number(value, ctx: str, *, allow_zero: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{ctx} must be a number")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{ctx} must be positive")


def validate_upstream_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top_required = {"upstream", "retry", "defaults", "failure_policy", "memo"}
    _assert_required_keys(cfg, top_required, "upstream config")
    _assert_no_unknown_keys(cfg, top_required, "upstream config", allow_unknown)

    _assert_required_keys(cfg["upstream"], {"base_url", "token", "timeout_ms", "snippet_limit"}, "upstream")
    if not str(cfg["upstream"]["base_url"]).startswith(("http://", "https://")):
        raise ConfigError("upstream.base_url must be an http(s) URL")
    _assert_positive_number(cfg["upstream"]["timeout_ms"], "upstream.timeout_ms")
    _assert_positive_number(cfg["upstream"]["snippet_limit"], "upstream.snippet_limit")

    _assert_required_keys(cfg["retry"], {"max_attempts", "multiplier", "max_wait"}, "retry")
    if int(cfg["retry"]["max_attempts"]) < 1:
        raise ConfigError("retry.max_attempts must be at least 1")
    _assert_positive_number(cfg["retry"]["multiplier"], "retry.multiplier", allow_zero=True)
    _assert_positive_number(cfg["retry"]["max_wait"], "retry.max_wait", allow_zero=True)

    _assert_required_keys(cfg["defaults"], {"suburb", "property_type"}, "defaults")
    if cfg["defaults"]["property_type"] not in PROPERTY_TYPES:
        raise ConfigError(f"defaults.property_type must be one of: {', '.join(PROPERTY_TYPES)}")

    policies = cfg["failure_policy"]
    _assert_required_keys(policies, set(RUNNERS), "failure_policy")
    _assert_no_unknown_keys(policies, set(RUNNERS), "failure_policy", allow_unknown)
    for runner, policy in sorted(policies.items()):
        if policy not in FAILURE_POLICIES:
            raise ConfigError(f"failure_policy.{runner} must be one of: {', '.join(FAILURE_POLICIES)}")

    _assert_required_keys(cfg["memo"], {"max_entries"}, "memo")
    _assert_positive_number(cfg["memo"]["max_entries"], "memo.max_entries")

    return cfg
