"""Kernel services: write paths of the goodies engine."""

from goodies_kernel.services.claim_ledger import ClaimLedger
from goodies_kernel.services.directory_service import DirectoryService
from goodies_kernel.services.distribution_manager import DistributionManager
from goodies_kernel.services.inventory_accountant import InventoryAccountant

__all__ = [
    "ClaimLedger",
    "DirectoryService",
    "DistributionManager",
    "InventoryAccountant",
]
