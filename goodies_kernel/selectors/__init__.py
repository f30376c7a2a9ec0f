"""Read-only selectors."""

from goodies_kernel.selectors.claim_selector import ClaimSelector
from goodies_kernel.selectors.distribution_selector import DistributionSelector

__all__ = ["ClaimSelector", "DistributionSelector"]
