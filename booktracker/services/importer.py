"""CSV bulk imports: reconcile a file into a per-row report, then commit it."""

import csv
import io
import logging
from datetime import datetime

from booktracker import db
from booktracker.errors import BookTrackerError, FormatError, NotFoundError, ValidationError
from booktracker.models import (
    Book, BookStatus, BulkImport, BulkImportRow, ImportKind, ImportStatus, PrintBatch, RowStatus,
)
from booktracker.serials import expand_count
from booktracker.services.batch_ledger import BatchLedgerService
from booktracker.services.distribution import DistributionService
from booktracker.services.lifecycle import BookLifecycleService
from booktracker.utils import clean, parse_int

logger = logging.getLogger(__name__)

# Required header names per import kind
REQUIRED_HEADERS = {
    ImportKind.BATCHES: [
        "batch_name", "total_books", "serial_start", "serial_end", "printed_date",
    ],
    ImportKind.DISTRIBUTIONS: [
        "date", "recipient_name", "phone", "recipient_type", "batch_name",
        "serial_start", "count", "town", "district", "state",
    ],
    ImportKind.REGISTRATIONS: [
        "date", "book_number", "recipient_name", "phone", "town", "district", "state",
    ],
}

OPTIONAL_HEADERS = {
    ImportKind.BATCHES: ["printer_name"],
    ImportKind.DISTRIBUTIONS: ["pssm_id", "entity_name", "address_line", "pincode"],
    ImportKind.REGISTRATIONS: ["pssm_id", "address_line"],
}


def normalize_header(name) -> str:
    return clean(name).lower().replace(" ", "_")


def _decode(content) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise FormatError("File is not valid UTF-8 text")
    return content or ""


def read_rows(content, kind):
    """Parse *content* into ``(row_number, data)`` pairs keyed by header name.

    Raises FormatError for an empty file or missing headers; in that case
    no row is looked at.
    """
    if kind not in ImportKind.ALL:
        raise FormatError(f"Unknown import kind: {kind}")

    lines = [line.strip() for line in _decode(content).splitlines() if line.strip()]
    if len(lines) < 2:
        raise FormatError("The file is empty or contains only a header row")

    reader = csv.reader(lines)
    headers = [normalize_header(h) for h in next(reader)]
    missing = [h for h in REQUIRED_HEADERS[kind] if h not in headers]
    if missing:
        raise FormatError(f"Missing required columns: {', '.join(missing)}", missing_headers=missing)

    known = set(REQUIRED_HEADERS[kind]) | set(OPTIONAL_HEADERS[kind])
    rows = []
    for row_number, values in enumerate(reader, start=1):
        data = {}
        for index, header in enumerate(headers):
            if header in known and header not in data:
                data[header] = clean(values[index]) if index < len(values) else ""
        rows.append((row_number, data))
    return rows


class _BatchRows:
    """Row checks for the batches schema."""

    def __init__(self):
        self.seen_names = set()

    def check(self, data):
        name = clean(data.get("batch_name"))
        if name in self.seen_names:
            raise ValidationError(f"Batch {name} appears more than once in the file", field="batch_name")
        BatchLedgerService.validate_batch(
            data.get("batch_name"), data.get("total_books"), data.get("serial_start"),
            data.get("serial_end"), data.get("printed_date"),
        )
        self.seen_names.add(name)


class _DistributionRows:
    """Row checks for the distributions schema.

    Tracks serials and stock claimed by earlier rows so the file is
    consistent with itself as well as with the inventory.
    """

    def __init__(self):
        self.seen_serials = set()
        self.claimed = {}

    def check(self, data):
        DistributionService.validate_recipient(data)

        batch_name = clean(data.get("batch_name"))
        if not batch_name:
            raise ValidationError("Batch name is required", field="batch_name")
        batch = PrintBatch.query.filter_by(batch_name=batch_name).first()
        if batch is None:
            raise ValidationError(f"Unknown batch: {batch_name}", field="batch_name")

        count = parse_int(data.get("count"))
        if count is None or count < 1:
            raise ValidationError(f"Count must be a positive whole number: {data.get('count')}", field="count")
        serials = expand_count(clean(data.get("serial_start")), count)

        repeated = sorted(set(serials) & self.seen_serials)
        if repeated:
            raise ValidationError(
                f"Books appear in an earlier row: {', '.join(repeated)}", field="serial_start"
            )
        DistributionService.check_serials_free(serials)

        available = batch.remaining_books - self.claimed.get(batch.id, 0)
        if count > available:
            raise ValidationError(
                f"Insufficient books in batch {batch.batch_name} (Available: {max(0, available)})",
                field="count",
            )

        self.seen_serials.update(serials)
        self.claimed[batch.id] = self.claimed.get(batch.id, 0) + count


class _RegistrationRows:
    """Row checks for the registrations schema."""

    def __init__(self):
        self.seen_books = set()

    def check(self, data):
        book_number = clean(data.get("book_number"))
        if not book_number:
            raise ValidationError("Book number is required", field="book_number")
        if book_number in self.seen_books:
            raise ValidationError(f"Book {book_number} appears more than once in the file", field="book_number")

        book = Book.query.filter_by(book_number=book_number).first()
        if book is None:
            raise ValidationError(f"Unknown book: {book_number}", field="book_number")
        if book.status == BookStatus.RECEIVED:
            raise ValidationError(f"Book {book_number} has already been received", field="book_number")

        BookLifecycleService.validate_registration(
            data.get("recipient_name"), data.get("phone"), data.get("town"),
            data.get("district"), data.get("state"), data.get("date"),
        )
        self.seen_books.add(book_number)


ROW_CHECKERS = {
    ImportKind.BATCHES: _BatchRows,
    ImportKind.DISTRIBUTIONS: _DistributionRows,
    ImportKind.REGISTRATIONS: _RegistrationRows,
}


def reconcile(content, kind) -> list[dict]:
    """Validate every row of an import file without writing anything.

    Returns one ``{row_number, status, message, raw_data}`` entry per data
    row, in file order. Bad values become row errors; only a missing header
    or an empty file raises.
    """
    checker = ROW_CHECKERS[kind]() if kind in ROW_CHECKERS else None
    report = []
    for row_number, data in read_rows(content, kind):
        try:
            checker.check(data)
        except BookTrackerError as e:
            report.append({"row_number": row_number, "status": RowStatus.ERROR,
                           "message": e.message, "raw_data": data})
        else:
            report.append({"row_number": row_number, "status": RowStatus.VALID,
                           "message": None, "raw_data": data})
    return report


class BulkImportService:
    """Stored import previews and their commits."""

    @staticmethod
    def list_imports(kind=None) -> list[BulkImport]:
        query = BulkImport.query
        if kind:
            query = query.filter(BulkImport.kind == kind)
        return query.order_by(BulkImport.created_at.desc(), BulkImport.id.desc()).all()

    @staticmethod
    def get(import_id) -> BulkImport:
        bulk_import = db.session.get(BulkImport, import_id)
        if bulk_import is None:
            raise NotFoundError("Import", import_id)
        return bulk_import

    @classmethod
    def preview(cls, kind, content, filename=None, user_id=None) -> BulkImport:
        """Reconcile a file and store the report for later confirmation.

        A file that fails the header check is stored as a failed import and
        the FormatError is re-raised.
        """
        if kind not in ImportKind.ALL:
            raise ValidationError(f"Unknown import kind: {kind}", field="kind")

        try:
            report = reconcile(content, kind)
        except FormatError as e:
            db.session.rollback()
            db.session.add(BulkImport(
                kind=kind, filename=filename, status=ImportStatus.FAILED,
                error_message=e.message, created_by_id=user_id,
            ))
            db.session.commit()
            logger.warning("Rejected %s import %s: %s", kind, filename, e.message)
            raise

        valid = sum(1 for entry in report if entry["status"] == RowStatus.VALID)
        bulk_import = BulkImport(
            kind=kind,
            filename=filename,
            status=ImportStatus.PREVIEWED,
            total_rows=len(report),
            valid_rows=valid,
            error_rows=len(report) - valid,
            committed_rows=0,
            created_by_id=user_id,
        )
        for entry in report:
            bulk_import.rows.append(BulkImportRow(**entry))
        db.session.add(bulk_import)
        db.session.commit()

        logger.info("Previewed %s import %s: %d valid, %d errors",
                    kind, bulk_import.id, bulk_import.valid_rows, bulk_import.error_rows)
        return bulk_import

    @staticmethod
    def _apply(kind, data):
        if kind == ImportKind.BATCHES:
            BatchLedgerService.create_batch(
                data.get("batch_name"), data.get("total_books"), data.get("serial_start"),
                data.get("serial_end"), data.get("printed_date"), data.get("printer_name"),
                commit=False,
            )
        elif kind == ImportKind.DISTRIBUTIONS:
            serials = expand_count(clean(data.get("serial_start")), parse_int(data.get("count")))
            DistributionService._distribute(data, serials, batch_name=data.get("batch_name"))
        else:
            BookLifecycleService._register(
                data.get("book_number"), data.get("recipient_name"), data.get("phone"),
                data.get("town"), data.get("district"), data.get("state"),
                data.get("pssm_id"), data.get("address_line"), data.get("date"),
            )
        # Later rows validate against what earlier rows added
        db.session.flush()

    @classmethod
    def commit(cls, import_id) -> BulkImport:
        """Merge the valid rows of a previewed import in one transaction.

        Error rows are skipped. If the inventory changed since the preview
        and a row no longer applies, nothing is written and the import stays
        previewed so it can be discarded or re-uploaded.
        """
        bulk_import = cls.get(import_id)
        if bulk_import.is_committed:
            raise ValidationError(f"Import {bulk_import.id} has already been committed")
        if not bulk_import.can_commit:
            raise ValidationError(f"Import {bulk_import.id} has no valid rows to commit")

        try:
            applied = 0
            for row in bulk_import.rows:
                if not row.is_valid:
                    continue
                try:
                    cls._apply(bulk_import.kind, row.raw_data or {})
                except BookTrackerError as e:
                    raise ValidationError(f"Row {row.row_number}: {e.message}") from e
                applied += 1

            bulk_import.status = ImportStatus.COMMITTED
            bulk_import.committed_rows = applied
            bulk_import.committed_at = datetime.utcnow()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Committed %s import %s: %d rows", bulk_import.kind, bulk_import.id, applied)
        return bulk_import
