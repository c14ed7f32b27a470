"""Services for the msync application."""

from .library_service import BulkEditResult, LibraryService

__all__ = [
    "BulkEditResult",
    "LibraryService",
]
