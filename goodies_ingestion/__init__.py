"""
goodies_ingestion -- Bulk goodies import from spreadsheets.

Reads CSV/XLSX files into row dicts, normalizes them, and drives the kernel
(DistributionManager.find_or_create + ClaimLedger.claim) one row at a time
with per-row failure isolation.

Architecture:
    goodies_ingestion/ is a top-level package.  Nothing in goodies_kernel/
    imports from it.
"""
