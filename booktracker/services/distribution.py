import logging
from datetime import date

from booktracker import db
from booktracker.errors import NotFoundError, ValidationError
from booktracker.models import Book, BookStatus, Distribution, PAGES_PER_BOOK, RecipientType
from booktracker.serials import expand_range, sort_serials
from booktracker.services.batch_ledger import BatchLedgerService
from booktracker.utils import clean, is_valid_phone, parse_date

logger = logging.getLogger(__name__)


class DistributionService:
    """Assignments of books to recipients, drawing down batch stock."""

    RECIPIENT_FIELDS = (
        "recipient_type", "recipient_name", "entity_name", "phone", "pssm_id",
        "address_line", "town", "district", "state", "pincode",
    )

    @staticmethod
    def list_distributions() -> list[Distribution]:
        return Distribution.query.order_by(Distribution.id.desc()).all()

    @staticmethod
    def get(distribution_id) -> Distribution:
        distribution = db.session.get(Distribution, distribution_id)
        if distribution is None:
            raise NotFoundError("Distribution", distribution_id)
        return distribution

    @staticmethod
    def _serial_list(book_serials) -> list:
        """Cleaned serials from a list of strings; anything else is rejected."""
        if book_serials is None:
            return []
        if not isinstance(book_serials, (list, tuple)) or not all(isinstance(s, str) for s in book_serials):
            raise ValidationError("Book serials must be a list of serial numbers", field="book_serials")
        return [clean(s) for s in book_serials if clean(s)]

    @classmethod
    def collect_serials(cls, book_serials=None, ranges=None) -> list:
        """Merge explicit serials and ``{start, end}`` ranges into one sorted set."""
        serials = cls._serial_list(book_serials)
        if ranges is None:
            ranges = []
        if not isinstance(ranges, (list, tuple)):
            raise ValidationError("Ranges must be a list of {start, end} objects", field="ranges")
        for rng in ranges:
            if not isinstance(rng, dict) or not clean(rng.get("start")) or not clean(rng.get("end")):
                raise ValidationError("Each range needs a start and an end serial", field="ranges")
            serials.extend(expand_range(clean(rng["start"]), clean(rng["end"])))
        return sort_serials(serials)

    @classmethod
    def validate_recipient(cls, recipient: dict) -> dict:
        """Return the cleaned recipient fields or raise ValidationError."""
        data = {field: clean(recipient.get(field)) or None for field in cls.RECIPIENT_FIELDS}
        data["recipient_type"] = data["recipient_type"] or RecipientType.INDIVIDUAL

        if data["recipient_type"] not in RecipientType.ALL:
            raise ValidationError(f"Unknown recipient type: {data['recipient_type']}", field="recipient_type")
        if not data["recipient_name"]:
            raise ValidationError("Recipient name is required", field="recipient_name")
        if not is_valid_phone(data["phone"]):
            raise ValidationError(f"Invalid phone number: {data['phone'] or ''}", field="phone")
        for field in ("town", "district", "state"):
            if not data[field]:
                raise ValidationError(f"{field.title()} is required", field=field)

        raw_date = recipient.get("date")
        data["date"] = parse_date(raw_date) if raw_date else date.today()
        if data["date"] is None:
            raise ValidationError(f"Invalid date: {raw_date}", field="date")
        return data

    @staticmethod
    def check_serials_free(serials, distribution_id=None) -> None:
        """Raise ValidationError if any serial already belongs to another distribution."""
        if not serials:
            return
        taken = Book.query.filter(Book.book_number.in_(serials))
        if distribution_id is not None:
            taken = taken.filter(Book.distribution_id != distribution_id)
        taken = sorted(book.book_number for book in taken.all())
        if taken:
            raise ValidationError(f"Books already distributed: {', '.join(taken)}", field="book_serials")

    @staticmethod
    def _resolve_batch(batch_id=None, batch_name=None):
        if batch_id:
            return BatchLedgerService.get(batch_id)
        if clean(batch_name):
            return BatchLedgerService.get_by_name(batch_name)
        return None

    @staticmethod
    def _new_book(serial, distribution, batch) -> Book:
        return Book(
            book_number=serial,
            batch_id=batch.id if batch else None,
            batch_name=batch.batch_name if batch else distribution.batch_name,
            distribution=distribution,
            status=BookStatus.DISTRIBUTED,
            total_pages=PAGES_PER_BOOK,
            filled_pages=0,
            total_amount=0,
            assigned_date=distribution.date,
        )

    @classmethod
    def _distribute(cls, recipient: dict, book_serials, batch_id=None, batch_name=None) -> Distribution:
        serials = sort_serials(cls._serial_list(book_serials))
        if not serials:
            raise ValidationError("Please assign at least one book.", field="book_serials")

        data = cls.validate_recipient(recipient)
        batch = cls._resolve_batch(batch_id, batch_name)
        cls.check_serials_free(serials)

        # Stock check happens before anything is added to the session
        if batch is not None:
            BatchLedgerService._allocate(batch.id, len(serials))

        distribution = Distribution(
            batch_id=batch.id if batch else None,
            batch_name=batch.batch_name if batch else None,
            **data,
        )
        db.session.add(distribution)
        for serial in serials:
            db.session.add(cls._new_book(serial, distribution, batch))
        return distribution

    @classmethod
    def distribute(cls, recipient: dict, book_serials, batch_id=None, batch_name=None) -> Distribution:
        """Assign *book_serials* to a recipient, allocating them from the batch.

        The allocation and the new distribution commit together; on any
        error nothing is written.
        """
        try:
            distribution = cls._distribute(recipient, book_serials, batch_id, batch_name)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info(
            "Distributed %d books (%s) to %s",
            distribution.count, distribution.range_display, distribution.recipient_name,
        )
        return distribution

    @classmethod
    def update(cls, distribution_id, patch: dict) -> Distribution:
        """Edit a distribution in place.

        Changing the serial set or the batch reconciles stock: removed books
        go back to their batch and added books are allocated from the
        (possibly new) batch. Books that have moved past Distributed cannot
        be removed.
        """
        try:
            distribution = cls.get(distribution_id)

            merged = {field: getattr(distribution, field) for field in cls.RECIPIENT_FIELDS}
            merged["date"] = distribution.date
            merged.update({k: v for k, v in patch.items() if k in cls.RECIPIENT_FIELDS or k == "date"})
            data = cls.validate_recipient(merged)

            current = set(distribution.book_serials)
            if "book_serials" in patch or "ranges" in patch:
                wanted = set(cls.collect_serials(patch.get("book_serials"), patch.get("ranges")))
                if not wanted:
                    raise ValidationError("Please assign at least one book.", field="book_serials")
            else:
                wanted = current

            old_batch = distribution.batch
            if "batch_id" in patch or "batch_name" in patch:
                new_batch = cls._resolve_batch(patch.get("batch_id"), patch.get("batch_name"))
            else:
                new_batch = old_batch

            batch_changed = (old_batch.id if old_batch else None) != (new_batch.id if new_batch else None)
            removed = current - wanted
            added = wanted - current
            # On a batch change every kept book moves to the new batch too
            moved = (current & wanted) if batch_changed else set()

            books_by_serial = {book.book_number: book for book in distribution.books}
            locked = sorted(
                serial for serial in removed | moved
                if books_by_serial[serial].status != BookStatus.DISTRIBUTED
            )
            if locked:
                raise ValidationError(
                    f"Books already registered or received cannot be reassigned: {', '.join(locked)}",
                    field="book_serials",
                )
            cls.check_serials_free(sorted(added), distribution_id=distribution.id)

            if old_batch is not None and (removed or moved):
                BatchLedgerService._release(old_batch.id, len(removed) + len(moved))
            if new_batch is not None and (added or moved):
                BatchLedgerService._allocate(new_batch.id, len(added) + len(moved))

            for field, value in data.items():
                setattr(distribution, field, value)
            distribution.batch_id = new_batch.id if new_batch else None
            distribution.batch_name = new_batch.batch_name if new_batch else None

            for serial in removed:
                db.session.delete(books_by_serial[serial])
            for serial in moved:
                books_by_serial[serial].batch_id = new_batch.id if new_batch else None
                books_by_serial[serial].batch_name = distribution.batch_name
            for serial in sort_serials(added):
                db.session.add(cls._new_book(serial, distribution, new_batch))

            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Updated distribution %s (+%d/-%d books)", distribution.id, len(added), len(removed))
        return distribution

    @classmethod
    def cancel(cls, distribution_id) -> None:
        """Delete a distribution whose books are untouched, restocking its batch."""
        try:
            distribution = cls.get(distribution_id)
            progressed = sorted(b.book_number for b in distribution.books if b.status != BookStatus.DISTRIBUTED)
            if progressed:
                raise ValidationError(
                    f"Distribution has books already registered or received: {', '.join(progressed)}"
                )

            count = distribution.count
            if distribution.batch_id is not None and count:
                BatchLedgerService._release(distribution.batch_id, count)

            for book in list(distribution.books):
                db.session.delete(book)
            db.session.delete(distribution)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Cancelled distribution %s, %d books returned to stock", distribution_id, count)
