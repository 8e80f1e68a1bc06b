import pytest

from booktracker import db
from booktracker.errors import InsufficientStockError, ValidationError
from booktracker.models import Book, BookStatus, Distribution
from booktracker.services import BatchLedgerService, BookLifecycleService, DistributionService


def test_distribute_allocates_and_creates_books(batch, distribution):
    assert distribution.count == 5
    assert distribution.range_display == "PSSM00001 - PSSM00005"
    assert distribution.batch_name == "B-2024-01"
    assert batch.remaining_books == 95
    assert {b.status for b in distribution.books} == {BookStatus.DISTRIBUTED}
    assert all(b.total_pages == 20 for b in distribution.books)


def test_distribute_with_ranges(batch, recipient):
    serials = DistributionService.collect_serials(
        ["PSSM00050"], [{"start": "PSSM00010", "end": "PSSM00012"}]
    )
    assert serials == ["PSSM00010", "PSSM00011", "PSSM00012", "PSSM00050"]

    distribution = DistributionService.distribute(recipient, serials, batch_name="B-2024-01")
    assert distribution.count == 4
    assert batch.remaining_books == 96


def test_empty_serials_rejected(batch, recipient):
    with pytest.raises(ValidationError) as exc:
        DistributionService.distribute(recipient, [], batch_id=batch.id)
    assert exc.value.message == "Please assign at least one book."


def test_insufficient_stock_writes_nothing(recipient):
    small = BatchLedgerService.create_batch("B-small", 2)
    with pytest.raises(InsufficientStockError):
        DistributionService.distribute(recipient, ["X1", "X2", "X3"], batch_id=small.id)

    assert small.remaining_books == 2
    assert Distribution.query.count() == 0
    assert Book.query.count() == 0


def test_serial_cannot_be_distributed_twice(batch, distribution, recipient):
    with pytest.raises(ValidationError) as exc:
        DistributionService.distribute(recipient, ["PSSM00003", "PSSM00006"], batch_id=batch.id)
    assert "PSSM00003" in exc.value.message
    assert batch.remaining_books == 95


@pytest.mark.parametrize("field,value", [
    ("phone", "123"),
    ("recipient_name", ""),
    ("town", ""),
    ("recipient_type", "Alien"),
    ("date", "not a date"),
])
def test_recipient_validation(batch, recipient, field, value):
    recipient[field] = value
    with pytest.raises(ValidationError):
        DistributionService.distribute(recipient, ["PSSM00001"], batch_id=batch.id)
    assert batch.remaining_books == 100


def test_update_adds_and_removes_books(batch, distribution):
    serials = ["PSSM00003", "PSSM00004", "PSSM00005", "PSSM00006", "PSSM00007", "PSSM00008"]
    DistributionService.update(distribution.id, {"book_serials": serials, "phone": "9999988888"})

    assert distribution.book_serials == serials
    assert distribution.phone == "9999988888"
    assert batch.remaining_books == 94
    assert db.session.query(Book).filter_by(book_number="PSSM00001").first() is None


def test_update_moves_books_to_another_batch(batch, distribution):
    other = BatchLedgerService.create_batch("B-2024-02", 10)
    DistributionService.update(distribution.id, {"batch_id": other.id})

    assert batch.remaining_books == 100
    assert other.remaining_books == 5
    assert {b.batch_name for b in distribution.books} == {"B-2024-02"}


def test_update_cannot_remove_registered_book(batch, distribution):
    BookLifecycleService.register_recipient(
        "PSSM00001", "Lakshmi", "9123456780", "Guntur", "Guntur", "Andhra Pradesh"
    )
    with pytest.raises(ValidationError):
        DistributionService.update(distribution.id, {"book_serials": ["PSSM00002"]})
    assert distribution.count == 5
    assert batch.remaining_books == 95


def test_cancel_restocks_batch(batch, distribution):
    DistributionService.cancel(distribution.id)
    assert batch.remaining_books == 100
    assert Book.query.count() == 0
    assert Distribution.query.count() == 0


def test_rollups(distribution):
    BookLifecycleService.register_recipient(
        "PSSM00002", "Lakshmi", "9123456780", "Guntur", "Guntur", "Andhra Pradesh"
    )
    BookLifecycleService.save_page("PSSM00002", 1, {"donor_name": "Sita", "amount": "300"})
    BookLifecycleService.finalize_book("PSSM00002", confirm=True)
    BookLifecycleService.register_recipient(
        "PSSM00004", "Gopal", "9123456781", "Guntur", "Guntur", "Andhra Pradesh"
    )

    assert distribution.registered_count == 2
    assert distribution.submitted_count == 1
    assert distribution.amount_collected == 300
    data = distribution.to_dict()
    assert data["address_display"] == "Guntur, Guntur, Andhra Pradesh"
