import csv
import io

from booktracker.models import BookStatus
from booktracker.services import BatchLedgerService, BookLifecycleService, DistributionService, StatsService
from booktracker.services.export import (
    BOOK_COLUMNS, DISTRIBUTION_COLUMNS, export_books_csv, export_distributions_csv,
)


def progress_books():
    for number in ("PSSM00001", "PSSM00002", "PSSM00003"):
        BookLifecycleService.register_recipient(
            number, "Lakshmi", "9123456780", "Tenali", "Guntur", "Andhra Pradesh"
        )
    BookLifecycleService.save_page("PSSM00001", 1, {"donor_name": "Sita", "amount": "250"})
    BookLifecycleService.finalize_book("PSSM00001", confirm=True)


def test_empty_dashboard(app):
    assert StatsService.distributor_stats() == {
        "totalPrinted": 0,
        "totalDistributed": 0,
        "totalRegistered": 0,
        "totalReceived": 0,
        "printedNotDistributed": 0,
        "distributedNotRegistered": 0,
        "registeredNotReceived": 0,
    }
    assert StatsService.incharge_stats()["amountCollected"] == 0


def test_distributor_stats(distribution):
    BatchLedgerService.create_batch("B-2024-02", 50)
    progress_books()

    stats = StatsService.distributor_stats()
    assert stats["totalPrinted"] == 150
    assert stats["totalDistributed"] == 5
    assert stats["totalRegistered"] == 3
    assert stats["totalReceived"] == 1
    assert stats["printedNotDistributed"] == 145
    assert stats["distributedNotRegistered"] == 2
    assert stats["registeredNotReceived"] == 2


def test_incharge_stats(distribution):
    progress_books()
    assert StatsService.incharge_stats() == {
        "totalAssigned": 5,
        "distributed": 3,
        "pendingDetails": 2,
        "amountCollected": 250.0,
    }


def test_status_breakdown(distribution):
    progress_books()
    assert StatsService.status_breakdown() == {
        BookStatus.DISTRIBUTED: 2,
        BookStatus.REGISTERED: 2,
        BookStatus.RECEIVED: 1,
    }


def test_distribution_by_type(batch, distribution, recipient):
    recipient.update(recipient_type="Center", entity_name="Tenali Center")
    DistributionService.distribute(recipient, ["PSSM00010", "PSSM00011", "PSSM00012"], batch_id=batch.id)

    assert StatsService.distribution_by_type() == {
        "byType": {"Individual": 5, "Center": 3, "District": 0, "Autonomous": 0},
        "totalPrinted": 100,
        "totalDistributed": 8,
    }


def test_distribution_by_type_empty(app):
    stats = StatsService.distribution_by_type()
    assert set(stats["byType"].values()) == {0}
    assert stats["totalDistributed"] == 0


def test_export_distributions(distribution):
    rows = list(csv.reader(io.StringIO(export_distributions_csv())))
    assert rows[0] == DISTRIBUTION_COLUMNS
    assert len(rows) == 2
    record = dict(zip(rows[0], rows[1]))
    assert record["recipient_name"] == "Ravi Kumar"
    assert record["address"] == "Guntur, Guntur, Andhra Pradesh"
    assert record["range"] == "PSSM00001 - PSSM00005"
    assert record["count"] == "5"


def test_export_books_by_status(distribution):
    progress_books()
    text = export_books_csv(BookStatus.RECEIVED)
    assert text.startswith('"book_number"')

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == BOOK_COLUMNS
    assert [r[0] for r in rows[1:]] == ["PSSM00001"]
    record = dict(zip(rows[0], rows[1]))
    assert record["total_amount"] == "250.00"
    assert record["distributor"] == "Ravi Kumar"
