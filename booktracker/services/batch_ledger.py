import logging

from booktracker import db
from booktracker.errors import InsufficientStockError, NotFoundError, ValidationError
from booktracker.models import PrintBatch
from booktracker.serials import split_serial
from booktracker.utils import clean, parse_date, parse_int

logger = logging.getLogger(__name__)


class BatchLedgerService:
    """Print batches and their remaining (undistributed) stock."""

    @staticmethod
    def list_batches() -> list[PrintBatch]:
        """All batches, most recently created first."""
        return PrintBatch.query.order_by(PrintBatch.id.desc()).all()

    @staticmethod
    def get(batch_id) -> PrintBatch:
        batch = db.session.get(PrintBatch, batch_id)
        if batch is None:
            raise NotFoundError("Batch", batch_id)
        return batch

    @staticmethod
    def get_by_name(batch_name: str) -> PrintBatch:
        batch = PrintBatch.query.filter_by(batch_name=clean(batch_name)).first()
        if batch is None:
            raise NotFoundError("Batch", batch_name)
        return batch

    @classmethod
    def validate_batch(cls, batch_name, total_books, serial_start, serial_end, printed_date):
        """Check a new batch's fields and return them cleaned.

        Raises ValidationError on the first problem found; nothing is written.
        """
        batch_name = clean(batch_name)
        if not batch_name:
            raise ValidationError("Batch name is required", field="batch_name")

        total = parse_int(total_books)
        if total is None or total <= 0:
            raise ValidationError("Total books must be a positive whole number", field="total_books")

        if PrintBatch.query.filter_by(batch_name=batch_name).first():
            raise ValidationError(f"Batch {batch_name} already exists", field="batch_name")

        serial_start = clean(serial_start)
        serial_end = clean(serial_end)
        first = split_serial(serial_start) if serial_start else None
        last = split_serial(serial_end) if serial_end else None
        if first and last and first[0] == last[0] and last[1] < first[1]:
            raise ValidationError(
                f"Serial end {serial_end} comes before serial start {serial_start}", field="serial_end"
            )

        parsed_date = parse_date(printed_date)
        if clean(printed_date) and parsed_date is None:
            raise ValidationError(f"Invalid printed date: {printed_date}", field="printed_date")

        return batch_name, total, serial_start or None, serial_end or None, parsed_date

    @classmethod
    def create_batch(cls, batch_name, total_books, serial_start=None, serial_end=None,
                     printed_date=None, printer_name=None, commit=True) -> PrintBatch:
        """Record a new print run with all of its books in stock."""
        batch_name, total, serial_start, serial_end, printed_date = cls.validate_batch(
            batch_name, total_books, serial_start, serial_end, printed_date
        )

        batch = PrintBatch(
            batch_name=batch_name,
            total_books=total,
            remaining_books=total,
            serial_start=serial_start,
            serial_end=serial_end,
            printed_date=printed_date,
            printer_name=clean(printer_name) or None,
        )
        db.session.add(batch)
        if commit:
            db.session.commit()
            logger.info("Created batch %s with %d books", batch.batch_name, total)
        return batch

    @staticmethod
    def _lock(batch_id) -> PrintBatch:
        """Load a batch for update so concurrent allocations serialise on it."""
        batch = (
            db.session.query(PrintBatch)
            .filter(PrintBatch.id == batch_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if batch is None:
            raise NotFoundError("Batch", batch_id)
        return batch

    @classmethod
    def _allocate(cls, batch_id, count) -> PrintBatch:
        count = parse_int(count)
        if count is None or count <= 0:
            raise ValidationError("Allocation count must be at least 1", field="count")

        batch = cls._lock(batch_id)
        if count > batch.remaining_books:
            raise InsufficientStockError(batch.batch_name, count, batch.remaining_books)

        batch.remaining_books = max(0, batch.remaining_books - count)
        return batch

    @classmethod
    def _release(cls, batch_id, count) -> PrintBatch:
        count = parse_int(count)
        if count is None or count <= 0:
            raise ValidationError("Release count must be at least 1", field="count")

        batch = cls._lock(batch_id)
        if batch.remaining_books + count > batch.total_books:
            raise ValidationError(
                f"Cannot return {count} books to batch {batch.batch_name}: "
                f"only {batch.distributed_books} are out",
                field="count",
            )

        batch.remaining_books += count
        return batch

    @classmethod
    def allocate(cls, batch_id, count) -> PrintBatch:
        """Take *count* books out of a batch's remaining stock."""
        try:
            batch = cls._allocate(batch_id, count)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Allocated %d books from batch %s (%d left)", count, batch.batch_name, batch.remaining_books)
        return batch

    @classmethod
    def release(cls, batch_id, count) -> PrintBatch:
        """Return *count* books to a batch's remaining stock."""
        try:
            batch = cls._release(batch_id, count)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Released %d books to batch %s (%d left)", count, batch.batch_name, batch.remaining_books)
        return batch
