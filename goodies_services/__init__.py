"""
goodies_services -- API surface of the goodies engine.

Dependency direction (enforced by tests/architecture/test_goodies_kernel_boundary.py):
    goodies_services/ -> goodies_kernel/, goodies_ingestion/, goodies_config/
    goodies_kernel/   -> goodies_services/ (FORBIDDEN)
"""

from goodies_services.goodies_service import ApiResponse, GoodiesService

__all__ = ["ApiResponse", "GoodiesService"]
