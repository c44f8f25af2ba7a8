"""
recon_config -- single public entrypoint for reconciliation configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  Services receive the resulting ``ReconConfig`` by
    injection; nothing else reads configuration files.

Architecture position:
    Configuration -- sits above ``recon_kernel`` and below
    ``recon_services``.  The kernel MUST NEVER import from
    ``recon_config``.

Audit relevance:
    Every successful call emits a ``RECON_CONFIG_TRACE`` log entry with the
    config id, version, source path and checksum, tying each reconciliation
    to the configuration that governed it.
"""

from __future__ import annotations

from pathlib import Path

from recon_config.loader import load_config_file
from recon_config.schema import OVERDRAW_POLICIES, ReconConfig
from recon_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> ReconConfig:
    """
    Load and validate the configuration at ``path`` (default set otherwise).

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidConfigurationError: If a value fails validation.
    """
    source = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = load_config_file(source)

    _logger.info(
        "RECON_CONFIG_TRACE",
        extra={
            "trace_type": "RECON_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "config_path": str(source),
            "checksum": config.checksum,
            "overdraw_policy": config.overdraw_policy,
        },
    )
    return config


__all__ = ["OVERDRAW_POLICIES", "ReconConfig", "get_active_config"]
