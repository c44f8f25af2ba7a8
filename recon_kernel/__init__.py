"""
Reconciliation Kernel

Persistence and domain core of the inventory period reconciliation:
- Item-code normalization at every ingestion boundary
- Periods, source batches and the base-batch rule
- Immutable imported lines, overrides kept beside them
- Append-only adjustment transfer ledger
"""

__version__ = "0.1.0"
