"""
Configuration loader (``recon_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into a frozen
``ReconConfig``.  Runtime callers go through
``recon_config.get_active_config()``; this module is its implementation
and test tooling.

Invariants enforced
-------------------
* Every value is validated; a bad value raises InvalidConfigurationError
  naming the field.  Unknown sections are ignored, missing ones take the
  defaults of ``ReconConfig``.
* ``compute_checksum`` is deterministic over the parsed document.

Failure modes
-------------
* Missing file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid value  -> ``InvalidConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from recon_config.schema import OVERDRAW_POLICIES, ReconConfig
from recon_kernel.exceptions import InvalidConfigurationError

_DEFAULTS = ReconConfig()


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidConfigurationError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise InvalidConfigurationError(name, "section must be a mapping")
    return value


def _positive_int(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidConfigurationError(key, f"must be a positive integer, got {value!r}")
    return value


def _policy(section: dict[str, Any], key: str, default: str) -> str:
    value = str(section.get(key, default)).strip().lower()
    if value not in OVERDRAW_POLICIES:
        raise InvalidConfigurationError(
            key, f"must be one of {', '.join(OVERDRAW_POLICIES)}, got {value!r}"
        )
    return value


def _label(section: dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise InvalidConfigurationError(key, "must be a non-empty string")
    return value


def parse_config(data: dict[str, Any]) -> ReconConfig:
    """Build a validated ReconConfig from a parsed YAML document."""
    normalization = _section(data, "normalization")
    paging = _section(data, "paging")
    transfers = _section(data, "transfers")
    labels = _section(data, "labels")
    final_inventory = _section(data, "final_inventory")

    negative_as_zero = final_inventory.get(
        "value_negative_final_as_zero", _DEFAULTS.value_negative_final_as_zero
    )
    if not isinstance(negative_as_zero, bool):
        raise InvalidConfigurationError(
            "value_negative_final_as_zero", "must be true or false"
        )

    return ReconConfig(
        config_id=str(data.get("config_id", _DEFAULTS.config_id)),
        version=_positive_int(data, "version", _DEFAULTS.version),
        code_width=_positive_int(normalization, "code_width", _DEFAULTS.code_width),
        page_size=_positive_int(paging, "page_size", _DEFAULTS.page_size),
        batch_chunk_size=_positive_int(
            paging, "batch_chunk_size", _DEFAULTS.batch_chunk_size
        ),
        overdraw_policy=_policy(
            transfers, "overdraw_policy", _DEFAULTS.overdraw_policy
        ),
        unit_mismatch_overdraw_policy=_policy(
            transfers,
            "unit_mismatch_overdraw_policy",
            _DEFAULTS.unit_mismatch_overdraw_policy,
        ),
        missing_description=_label(
            labels, "missing_description", _DEFAULTS.missing_description
        ),
        default_unit=_label(labels, "default_unit", _DEFAULTS.default_unit),
        value_negative_final_as_zero=negative_as_zero,
        checksum=compute_checksum(data),
    )


def load_config_file(path: Path) -> ReconConfig:
    return parse_config(load_yaml_file(path))
