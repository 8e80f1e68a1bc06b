"""Book lifecycle: Distributed -> Registered -> Received, plus donor pages."""

import logging
from datetime import date
from decimal import Decimal

from flask import current_app
from sqlalchemy import or_

from booktracker import db
from booktracker.errors import InvalidTransitionError, NotFoundError, ValidationError
from booktracker.models import Book, BookPage, BookStatus, PaymentMode
from booktracker.utils import clean, is_valid_phone, parse_amount, parse_date, parse_int

logger = logging.getLogger(__name__)

PAGE_TEXT_FIELDS = (
    "receipt_number", "donor_name", "donor_phone", "donor_address",
    "profession", "state", "district", "town", "transaction_id",
)


class BookLifecycleService:
    """Per-book status changes and page-level collection records."""

    @staticmethod
    def list_books(status=None, search=None) -> list[Book]:
        query = Book.query
        if status:
            query = query.filter(Book.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                Book.book_number.ilike(pattern),
                Book.assigned_to_name.ilike(pattern),
                Book.assigned_to_phone.ilike(pattern),
            ))
        return query.order_by(Book.book_number).all()

    @staticmethod
    def get(book_number) -> Book:
        book = Book.query.filter_by(book_number=clean(book_number)).first()
        if book is None:
            raise NotFoundError("Book", book_number)
        return book

    @staticmethod
    def _check_payment_mode(payment_mode):
        payment_mode = clean(payment_mode) or None
        if payment_mode and payment_mode not in PaymentMode.ALL:
            raise ValidationError(f"Unknown payment mode: {payment_mode}", field="payment_mode")
        return payment_mode

    @classmethod
    def validate_registration(cls, name, phone, town, district, state, registration_date=None) -> dict:
        name = clean(name)
        if not name:
            raise ValidationError("Recipient name is required", field="recipient_name")
        if not is_valid_phone(phone):
            raise ValidationError(f"Invalid phone number: {clean(phone)}", field="phone")
        for field, value in (("town", town), ("district", district), ("state", state)):
            if not clean(value):
                raise ValidationError(f"{field.title()} is required", field=field)

        parsed_date = parse_date(registration_date) if registration_date else date.today()
        if parsed_date is None:
            raise ValidationError(f"Invalid date: {registration_date}", field="date")

        return {
            "assigned_to_name": name,
            "assigned_to_phone": clean(phone),
            "town": clean(town),
            "district": clean(district),
            "state": clean(state),
            "registration_date": parsed_date,
        }

    @classmethod
    def _register(cls, book_number, name, phone, town, district, state,
                  pssm_id=None, address_line=None, registration_date=None) -> Book:
        book = cls.get(book_number)
        if book.status == BookStatus.RECEIVED:
            raise InvalidTransitionError(book.book_number, book.status, BookStatus.REGISTERED)

        fields = cls.validate_registration(name, phone, town, district, state, registration_date)
        for field, value in fields.items():
            setattr(book, field, value)
        book.pssm_id = clean(pssm_id) or None
        book.address_line = clean(address_line) or None
        book.status = BookStatus.REGISTERED
        return book

    @classmethod
    def register_recipient(cls, book_number, name, phone, town, district, state,
                           pssm_id=None, address_line=None, registration_date=None) -> Book:
        """Record who is responsible for a distributed book's pages."""
        try:
            book = cls._register(book_number, name, phone, town, district, state,
                                 pssm_id, address_line, registration_date)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Registered book %s to %s", book.book_number, book.assigned_to_name)
        return book

    @staticmethod
    def _ensure_pages(book: Book) -> None:
        existing = {page.page_number for page in book.pages}
        for number in range(1, book.total_pages + 1):
            if number not in existing:
                book.pages.append(BookPage(page_number=number, is_filled=False, amount=0))

    @classmethod
    def get_pages(cls, book_number) -> list[BookPage]:
        """The book's page slots, created empty the first time they are asked for."""
        book = cls.get(book_number)
        if len(book.pages) < book.total_pages:
            cls._ensure_pages(book)
            db.session.commit()
        return list(book.pages)

    @staticmethod
    def recompute_totals(book: Book) -> None:
        """Derive filled page count and total amount from the stored pages."""
        filled = [page for page in book.pages if page.is_filled]
        book.filled_pages = len(filled)
        book.total_amount = sum((Decimal(page.amount or 0) for page in filled), Decimal("0"))

    @classmethod
    def save_page(cls, book_number, page_number, fields: dict) -> BookPage:
        """Fill (or refill) one donor page and refresh the book's totals.

        Saving the same page again replaces its values, so amounts are never
        counted twice. A book whose totals were entered as a summary through
        quick_update takes no page detail.
        """
        try:
            book = cls.get(book_number)
            if book.is_finalized:
                raise ValidationError(f"Book {book.book_number} has been received and can no longer be edited")

            number = parse_int(page_number)
            if number is None or not 1 <= number <= book.total_pages:
                raise ValidationError(
                    f"Page number must be between 1 and {book.total_pages}", field="page_number"
                )

            if not clean(fields.get("donor_name")):
                raise ValidationError("Donor name is required", field="donor_name")
            if clean(fields.get("donor_phone")) and not is_valid_phone(fields.get("donor_phone")):
                raise ValidationError(f"Invalid phone number: {clean(fields.get('donor_phone'))}",
                                      field="donor_phone")

            amount = parse_amount(fields.get("amount"))
            if amount is None or amount < 0:
                raise ValidationError(f"Invalid amount: {fields.get('amount')}", field="amount")

            payment_mode = cls._check_payment_mode(fields.get("payment_mode"))
            page_date = parse_date(fields.get("date")) if fields.get("date") else date.today()
            if page_date is None:
                raise ValidationError(f"Invalid date: {fields.get('date')}", field="date")

            if not book.has_page_detail and (book.filled_pages or book.total_amount):
                raise ValidationError(
                    f"Book {book.book_number} has summary totals from a quick update; "
                    "page details cannot be added"
                )

            cls._ensure_pages(book)
            page = next(p for p in book.pages if p.page_number == number)
            for field in PAGE_TEXT_FIELDS:
                setattr(page, field, clean(fields.get(field)) or None)
            page.amount = amount
            page.payment_mode = payment_mode
            page.date = page_date
            page.is_filled = True

            cls.recompute_totals(book)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return page

    @classmethod
    def finalize_book(cls, book_number, confirm=False, received_date=None, payment_mode=None) -> Book:
        """Mark a registered book as received. Requires explicit confirmation."""
        try:
            book = cls.get(book_number)
            if book.status != BookStatus.REGISTERED:
                raise InvalidTransitionError(book.book_number, book.status, BookStatus.RECEIVED)
            if confirm is not True:
                raise ValidationError("Finalizing a book must be confirmed", field="confirm")

            parsed_date = parse_date(received_date) if received_date else date.today()
            if parsed_date is None:
                raise ValidationError(f"Invalid date: {received_date}", field="received_date")

            book.payment_mode = cls._check_payment_mode(payment_mode) or book.payment_mode
            book.received_date = parsed_date
            book.status = BookStatus.RECEIVED
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        logger.info("Book %s received: %d pages, %s collected",
                    book.book_number, book.filled_pages, book.total_amount)
        return book

    @classmethod
    def quick_update(cls, book_number, status, payment_mode=None,
                     filled_pages=None, total_amount=None, confirm=False) -> Book:
        """Status and summary update without per-page detail.

        Summary totals may only be supplied for books with no recorded
        pages; otherwise the totals come from the pages. Moving a received
        book back to Registered needs ALLOW_BOOK_REOPEN, and marking a book
        Received needs the same confirmation as finalize_book.
        """
        try:
            book = cls.get(book_number)
            status = clean(status)
            if status not in (BookStatus.REGISTERED, BookStatus.RECEIVED):
                raise ValidationError(f"Unknown status: {status}", field="status")

            if book.status == BookStatus.DISTRIBUTED:
                raise InvalidTransitionError(book.book_number, book.status, status)
            reopening = book.status == BookStatus.RECEIVED and status == BookStatus.REGISTERED
            if reopening and not current_app.config.get("ALLOW_BOOK_REOPEN", False):
                raise InvalidTransitionError(book.book_number, book.status, status)
            if status == BookStatus.RECEIVED and book.status != BookStatus.RECEIVED and confirm is not True:
                raise ValidationError("Marking a book received must be confirmed", field="confirm")

            if filled_pages is not None or total_amount is not None:
                if book.has_page_detail:
                    raise ValidationError(
                        f"Book {book.book_number} has page details; totals are taken from its pages"
                    )
                pages = parse_int(filled_pages)
                if filled_pages is not None and (pages is None or not 0 <= pages <= book.total_pages):
                    raise ValidationError(
                        f"Filled pages must be between 0 and {book.total_pages}", field="filled_pages"
                    )
                amount = parse_amount(total_amount) if total_amount is not None else None
                if total_amount is not None and (amount is None or amount < 0):
                    raise ValidationError(f"Invalid amount: {total_amount}", field="total_amount")
                if pages is not None:
                    book.filled_pages = pages
                if amount is not None:
                    book.total_amount = amount

            book.payment_mode = cls._check_payment_mode(payment_mode) or book.payment_mode
            if status == BookStatus.RECEIVED and book.status != BookStatus.RECEIVED:
                book.received_date = date.today()
            if reopening:
                book.received_date = None
                logger.warning("Book %s reopened from Received to Registered", book.book_number)
            book.status = status
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        return book
