"""
recon_ingestion -- boundary between extracted source records and the kernel.

Takes records already extracted from stock spreadsheets, ledger files,
invoice archives and product catalogs, normalizes item codes and numbers
once, and persists them as a new source batch.  Rejected records are
reported, not fatal.

Architecture:
    recon_ingestion/ is a top-level package.  Nothing in recon_kernel/ or
    recon_engines/ imports from it.
"""
