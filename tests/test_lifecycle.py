from decimal import Decimal

import pytest

from booktracker.errors import InvalidTransitionError, NotFoundError, ValidationError
from booktracker.models import BookStatus
from booktracker.services import BookLifecycleService


def register(book_number="PSSM00001"):
    return BookLifecycleService.register_recipient(
        book_number, "Lakshmi Devi", "9123456780", "Tenali", "Guntur", "Andhra Pradesh",
        pssm_id="PS-77", address_line="4 Temple St", registration_date="2024-03-05",
    )


def fill_pages(book_number, count, amount="100"):
    for page in range(1, count + 1):
        BookLifecycleService.save_page(book_number, page, {
            "donor_name": f"Donor {page}",
            "donor_phone": "9000000000",
            "amount": amount,
            "payment_mode": "Offline",
            "receipt_number": f"R-{page}",
        })


def test_register_recipient(distribution):
    book = register()
    assert book.status == BookStatus.REGISTERED
    assert book.assigned_to_name == "Lakshmi Devi"
    assert book.registration_date.isoformat() == "2024-03-05"
    assert book.registration_address == "4 Temple St, Tenali, Guntur, Andhra Pradesh"
    assert book.distributor_name == "Ravi Kumar"


def test_register_unknown_book(app):
    with pytest.raises(NotFoundError):
        register("NOPE1")


def test_register_requires_valid_phone(distribution):
    with pytest.raises(ValidationError):
        BookLifecycleService.register_recipient(
            "PSSM00001", "Lakshmi", "12", "Tenali", "Guntur", "Andhra Pradesh"
        )
    assert BookLifecycleService.get("PSSM00001").status == BookStatus.DISTRIBUTED


def test_get_pages_creates_twenty_slots(distribution):
    pages = BookLifecycleService.get_pages("PSSM00001")
    assert [p.page_number for p in pages] == list(range(1, 21))
    assert not any(p.is_filled for p in pages)


def test_resaving_a_page_does_not_double_count(distribution):
    register()
    fill_pages("PSSM00001", 8)
    book = BookLifecycleService.get("PSSM00001")
    assert book.filled_pages == 8
    assert book.total_amount == Decimal("800")

    BookLifecycleService.save_page("PSSM00001", 3, {"donor_name": "Donor 3", "amount": "500"})
    assert book.filled_pages == 8
    assert book.total_amount == Decimal("1200")

    BookLifecycleService.save_page("PSSM00001", 3, {"donor_name": "Donor 3", "amount": "500"})
    assert book.total_amount == Decimal("1200")


@pytest.mark.parametrize("page_number", [0, 21, "x", True])
def test_page_number_bounds(distribution, page_number):
    with pytest.raises(ValidationError):
        BookLifecycleService.save_page("PSSM00001", page_number, {"donor_name": "A", "amount": "1"})


@pytest.mark.parametrize("fields", [
    {"amount": "10"},
    {"donor_name": "A", "amount": "-5"},
    {"donor_name": "A", "amount": "ten"},
    {"donor_name": "A", "payment_mode": "Barter"},
])
def test_page_validation(distribution, fields):
    with pytest.raises(ValidationError):
        BookLifecycleService.save_page("PSSM00001", 1, fields)


def test_finalize_requires_confirmation(distribution):
    register()
    with pytest.raises(ValidationError):
        BookLifecycleService.finalize_book("PSSM00001")
    assert BookLifecycleService.get("PSSM00001").status == BookStatus.REGISTERED


def test_finalize_requires_registration(distribution):
    with pytest.raises(InvalidTransitionError):
        BookLifecycleService.finalize_book("PSSM00001", confirm=True)


def test_received_book_is_locked(distribution):
    register()
    fill_pages("PSSM00001", 2)
    book = BookLifecycleService.finalize_book("PSSM00001", confirm=True, payment_mode="Online")
    assert book.status == BookStatus.RECEIVED
    assert book.received_date is not None
    assert book.payment_mode == "Online"

    with pytest.raises(ValidationError):
        BookLifecycleService.save_page("PSSM00001", 3, {"donor_name": "Late", "amount": "50"})
    with pytest.raises(InvalidTransitionError):
        register()
    assert book.total_amount == Decimal("200")


def test_quick_update_with_summary_totals(distribution):
    register()
    book = BookLifecycleService.quick_update(
        "PSSM00001", BookStatus.RECEIVED, payment_mode="Offline", filled_pages=12, total_amount="2400",
        confirm=True,
    )
    assert book.status == BookStatus.RECEIVED
    assert book.filled_pages == 12
    assert book.total_amount == Decimal("2400")


def test_quick_update_keeps_page_totals(distribution):
    register()
    fill_pages("PSSM00001", 3)
    with pytest.raises(ValidationError):
        BookLifecycleService.quick_update("PSSM00001", BookStatus.RECEIVED, total_amount="9999", confirm=True)
    book = BookLifecycleService.quick_update("PSSM00001", BookStatus.RECEIVED, confirm=True)
    assert book.total_amount == Decimal("300")


def test_quick_update_to_received_requires_confirmation(distribution):
    register()
    with pytest.raises(ValidationError) as exc:
        BookLifecycleService.quick_update("PSSM00001", BookStatus.RECEIVED, filled_pages=4, total_amount="800")
    assert exc.value.details["field"] == "confirm"

    book = BookLifecycleService.get("PSSM00001")
    assert book.status == BookStatus.REGISTERED
    assert book.filled_pages == 0
    assert book.received_date is None


def test_summary_totals_block_page_detail(distribution):
    register()
    BookLifecycleService.quick_update("PSSM00001", BookStatus.REGISTERED, filled_pages=5, total_amount="1000")

    with pytest.raises(ValidationError):
        BookLifecycleService.save_page("PSSM00001", 1, {"donor_name": "Sita", "amount": "50"})

    book = BookLifecycleService.get("PSSM00001")
    assert book.filled_pages == 5
    assert book.total_amount == Decimal("1000")


def test_quick_update_distributed_book(distribution):
    with pytest.raises(InvalidTransitionError):
        BookLifecycleService.quick_update("PSSM00001", BookStatus.RECEIVED)


def test_reopen_needs_config(app, distribution):
    register()
    BookLifecycleService.finalize_book("PSSM00001", confirm=True)

    with pytest.raises(InvalidTransitionError):
        BookLifecycleService.quick_update("PSSM00001", BookStatus.REGISTERED)

    app.config["ALLOW_BOOK_REOPEN"] = True
    book = BookLifecycleService.quick_update("PSSM00001", BookStatus.REGISTERED)
    assert book.status == BookStatus.REGISTERED
    assert book.received_date is None


def test_list_books_filters(distribution):
    register("PSSM00002")
    assert [b.book_number for b in BookLifecycleService.list_books(status=BookStatus.REGISTERED)] == ["PSSM00002"]
    assert len(BookLifecycleService.list_books(search="lakshmi")) == 1
    assert len(BookLifecycleService.list_books()) == 5
