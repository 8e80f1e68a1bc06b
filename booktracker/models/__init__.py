from booktracker.models.user import User, UserRole, admin_required, roles_required
from booktracker.models.location import LocationLevel, State, District, Town, Center
from booktracker.models.batch import PrintBatch, BatchStatus
from booktracker.models.book import Book, BookPage, BookStatus, PaymentMode, PAGES_PER_BOOK
from booktracker.models.distribution import Distribution, RecipientType
from booktracker.models.bulk_import import BulkImport, BulkImportRow, ImportKind, ImportStatus, RowStatus

__all__ = [
    "User",
    "UserRole",
    "admin_required",
    "roles_required",
    "LocationLevel",
    "State",
    "District",
    "Town",
    "Center",
    "PrintBatch",
    "BatchStatus",
    "Book",
    "BookPage",
    "BookStatus",
    "PaymentMode",
    "PAGES_PER_BOOK",
    "Distribution",
    "RecipientType",
    "BulkImport",
    "BulkImportRow",
    "ImportKind",
    "ImportStatus",
    "RowStatus",
]
