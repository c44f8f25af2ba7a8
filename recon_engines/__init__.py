"""
Module: recon_engines
Responsibility:
    Pure calculation engines of the inventory reconciliation: unit
    conversion, entry and exit aggregation, description resolution,
    consolidation and the transfer overdraw policy.

Architecture position:
    Engines -- zero I/O.  May import recon_kernel.domain and
    recon_kernel.exceptions; MUST NOT import recon_services.

Invariants enforced:
    - Decimal-only arithmetic for quantities and values.
    - Determinism: identical inputs give identical outputs; no clock access.
    - Every public entry point is wrapped in ``@traced_engine``.

Usage:
    from recon_engines import EntryAggregator, ExitAggregator, ConsolidationEngine
"""

from recon_engines.consolidation import ConsolidationEngine, weighted_average_cost
from recon_engines.conversion import ConversionMatch, ConversionTable, MatchMethod
from recon_engines.descriptions import DescriptionResolver, build_default_chain
from recon_engines.entries import EntryAggregator
from recon_engines.exits import ExitAggregator
from recon_engines.results import (
    ConsolidatedRow,
    ConsolidationOutput,
    ConsolidationSummary,
    EntryAggregation,
    EntryLineResult,
    ExitAggregation,
    ExitTotals,
)
from recon_engines.transfer_policy import OverdrawPolicy, TransferPolicyChecker

__all__ = [
    "ConsolidatedRow",
    "ConsolidationEngine",
    "ConsolidationOutput",
    "ConsolidationSummary",
    "ConversionMatch",
    "ConversionTable",
    "DescriptionResolver",
    "EntryAggregation",
    "EntryAggregator",
    "EntryLineResult",
    "ExitAggregation",
    "ExitAggregator",
    "ExitTotals",
    "MatchMethod",
    "OverdrawPolicy",
    "TransferPolicyChecker",
    "build_default_chain",
    "weighted_average_cost",
]
