import pytest

from booktracker.errors import InsufficientStockError, NotFoundError, ValidationError
from booktracker.models import BatchStatus
from booktracker.services import BatchLedgerService


def test_new_batch_is_fully_in_stock(batch):
    assert batch.remaining_books == batch.total_books == 100
    assert batch.status == BatchStatus.IN_STOCK
    assert batch.printed_date.isoformat() == "2024-01-10"


def test_allocation_scenario(batch):
    BatchLedgerService.allocate(batch.id, 30)
    assert batch.remaining_books == 70
    assert batch.status == BatchStatus.PARTIALLY_DISTRIBUTED

    BatchLedgerService.allocate(batch.id, 70)
    assert batch.remaining_books == 0
    assert batch.status == BatchStatus.FULLY_DISTRIBUTED

    with pytest.raises(InsufficientStockError) as exc:
        BatchLedgerService.allocate(batch.id, 1)
    assert exc.value.details["available"] == 0
    assert "Available: 0" in exc.value.message
    assert batch.remaining_books == 0


def test_release_returns_stock(batch):
    BatchLedgerService.allocate(batch.id, 40)
    BatchLedgerService.release(batch.id, 15)
    assert batch.remaining_books == 75


def test_release_cannot_exceed_total(batch):
    BatchLedgerService.allocate(batch.id, 5)
    with pytest.raises(ValidationError):
        BatchLedgerService.release(batch.id, 6)
    assert batch.remaining_books == 95


def test_remaining_stays_within_bounds(batch):
    for op, count in [("allocate", 60), ("release", 10), ("allocate", 50),
                      ("release", 100), ("allocate", 1), ("release", 1)]:
        try:
            getattr(BatchLedgerService, op)(batch.id, count)
        except (InsufficientStockError, ValidationError):
            pass
        assert 0 <= batch.remaining_books <= batch.total_books
        assert batch.status == BatchStatus.for_counts(batch.remaining_books, batch.total_books)


@pytest.mark.parametrize("count", [0, -3, None, True])
def test_allocate_rejects_non_positive_counts(batch, count):
    with pytest.raises(ValidationError):
        BatchLedgerService.allocate(batch.id, count)


def test_duplicate_batch_name(batch):
    with pytest.raises(ValidationError) as exc:
        BatchLedgerService.create_batch("B-2024-01", 10)
    assert exc.value.details["field"] == "batch_name"


@pytest.mark.parametrize("total", ["", "ten", 0, -5, True])
def test_create_batch_requires_positive_total(app, total):
    with pytest.raises(ValidationError):
        BatchLedgerService.create_batch("B-X", total)


def test_serial_end_before_start(app):
    with pytest.raises(ValidationError):
        BatchLedgerService.create_batch("B-X", 10, serial_start="A100", serial_end="A050")


def test_unknown_batch(app):
    with pytest.raises(NotFoundError):
        BatchLedgerService.allocate(999, 1)
