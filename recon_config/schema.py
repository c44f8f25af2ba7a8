"""
ReconConfig schema.

The runtime configuration of the reconciliation: normalization width,
paging of the exit-line reads, transfer overdraw policies, placeholder
labels and final-inventory valuation switches.  Parsed from YAML by
``recon_config.loader``; obtained at runtime only through
``recon_config.get_active_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass

OVERDRAW_POLICIES = ("reject", "warn", "allow")


@dataclass(frozen=True)
class ReconConfig:
    config_id: str = "default"
    version: int = 1
    code_width: int = 6
    page_size: int = 1000
    batch_chunk_size: int = 50
    overdraw_policy: str = "reject"
    unit_mismatch_overdraw_policy: str = "warn"
    missing_description: str = "[no description]"
    default_unit: str = "UN"
    value_negative_final_as_zero: bool = True
    checksum: str = ""
