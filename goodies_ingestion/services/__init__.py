"""Bulk import services."""

from goodies_ingestion.services.bulk_import_service import BulkImportService

__all__ = ["BulkImportService"]
