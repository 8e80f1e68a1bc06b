import pytest

from booktracker.errors import FormatError, ValidationError
from booktracker.models import (
    Book, BookStatus, BulkImport, Distribution, ImportKind, ImportStatus, PrintBatch, RowStatus,
)
from booktracker.services import BatchLedgerService, BulkImportService, reconcile

BATCHES_CSV = """batch_name,total_books,serial_start,serial_end,printed_date
B-01,100,A001,A100,2024-01-01
B-02,50,B001,B050,02/01/2024
"B-03, reprint",25,C001,C025,2024-01-03
"""

DISTRIBUTIONS_CSV = """date,recipient_name,phone,recipient_type,batch_name,serial_start,count,town,district,state
2024-02-01,Ravi,9876543210,Individual,B-01,A001,10,Guntur,Guntur,Andhra Pradesh
2024-02-01,Sita,12345,Individual,B-01,A011,5,Guntur,Guntur,Andhra Pradesh
2024-02-02,Center One,9876543211,Center,B-01,A016,five,Tenali,Guntur,Andhra Pradesh
2024-02-02,Gopal,9876543212,Individual,B-01,A021,5,Tenali,Guntur,Andhra Pradesh
2024-02-03,Meena,9876543213,District,B-01,A026,5,Ongole,Prakasam,Andhra Pradesh
"""


def test_reconcile_batches(app):
    report = reconcile(BATCHES_CSV, ImportKind.BATCHES)
    assert [r["row_number"] for r in report] == [1, 2, 3]
    assert all(r["status"] == RowStatus.VALID for r in report)
    assert report[2]["raw_data"]["batch_name"] == "B-03, reprint"


def test_commit_batches_creates_full_stock(app):
    preview = BulkImportService.preview(ImportKind.BATCHES, BATCHES_CSV, filename="batches.csv")
    assert preview.valid_rows == 3
    assert PrintBatch.query.count() == 0

    committed = BulkImportService.commit(preview.id)
    assert committed.status == ImportStatus.COMMITTED
    assert committed.committed_rows == 3

    batches = PrintBatch.query.all()
    assert len(batches) == 3
    assert all(b.remaining_books == b.total_books for b in batches)


def test_headers_are_case_and_order_insensitive(app):
    content = "Printed_Date, TOTAL_BOOKS ,Batch_Name,serial_end,serial_start\n2024-01-01,10,B-9,,\n"
    report = reconcile(content, ImportKind.BATCHES)
    assert report[0]["status"] == RowStatus.VALID


def test_missing_headers_abort_the_whole_file(app):
    content = "batch_name,serial_start\nB-01,A001\nB-02,B001\n"
    with pytest.raises(FormatError) as exc:
        BulkImportService.preview(ImportKind.BATCHES, content, filename="bad.csv")

    assert exc.value.details["missing_headers"] == ["total_books", "serial_end", "printed_date"]
    assert PrintBatch.query.count() == 0
    failed = BulkImport.query.one()
    assert failed.status == ImportStatus.FAILED
    assert "total_books" in failed.error_message


@pytest.mark.parametrize("content", ["", "   \n\n", "batch_name,total_books,serial_start,serial_end,printed_date\n"])
def test_empty_file(app, content):
    with pytest.raises(FormatError):
        reconcile(content, ImportKind.BATCHES)


def test_mixed_distribution_rows(app):
    BatchLedgerService.create_batch("B-01", 100, "A001", "A100")

    preview = BulkImportService.preview(ImportKind.DISTRIBUTIONS, DISTRIBUTIONS_CSV)
    assert preview.total_rows == 5
    assert preview.valid_rows == 3
    assert preview.error_rows == 2
    statuses = [row.status for row in preview.rows]
    assert statuses == [RowStatus.VALID, RowStatus.ERROR, RowStatus.ERROR, RowStatus.VALID, RowStatus.VALID]
    assert "phone" in preview.rows[1].message.lower()
    assert "count" in preview.rows[2].message.lower()

    BulkImportService.commit(preview.id)
    assert Distribution.query.count() == 3
    assert Book.query.count() == 20
    assert PrintBatch.query.one().remaining_books == 80


def test_rows_cannot_claim_the_same_books(app):
    BatchLedgerService.create_batch("B-01", 100, "A001", "A100")
    content = (
        "date,recipient_name,phone,recipient_type,batch_name,serial_start,count,town,district,state\n"
        "2024-02-01,Ravi,9876543210,Individual,B-01,A001,10,Guntur,Guntur,AP\n"
        "2024-02-01,Sita,9876543211,Individual,B-01,A005,3,Guntur,Guntur,AP\n"
    )
    report = reconcile(content, ImportKind.DISTRIBUTIONS)
    assert [r["status"] for r in report] == [RowStatus.VALID, RowStatus.ERROR]


def test_rows_share_batch_stock(app):
    BatchLedgerService.create_batch("B-small", 5)
    content = (
        "date,recipient_name,phone,recipient_type,batch_name,serial_start,count,town,district,state\n"
        "2024-02-01,Ravi,9876543210,Individual,B-small,S01,4,Guntur,Guntur,AP\n"
        "2024-02-01,Sita,9876543211,Individual,B-small,S05,2,Guntur,Guntur,AP\n"
    )
    report = reconcile(content, ImportKind.DISTRIBUTIONS)
    assert report[1]["status"] == RowStatus.ERROR
    assert "Available: 1" in report[1]["message"]


def test_registration_import(distribution):
    content = (
        "date,book_number,recipient_name,phone,town,district,state\n"
        "2024-03-01,PSSM00001,Lakshmi,9123456780,Tenali,Guntur,Andhra Pradesh\n"
        "2024-03-01,PSSM09999,Nobody,9123456781,Tenali,Guntur,Andhra Pradesh\n"
        "2024-03-01,PSSM00002,Gopal,9123456782,Tenali,Guntur,Andhra Pradesh\n"
    )
    preview = BulkImportService.preview(ImportKind.REGISTRATIONS, content)
    assert preview.valid_rows == 2
    BulkImportService.commit(preview.id)

    assert Book.query.filter_by(status=BookStatus.REGISTERED).count() == 2


def test_import_commits_once(app):
    preview = BulkImportService.preview(ImportKind.BATCHES, BATCHES_CSV)
    BulkImportService.commit(preview.id)
    with pytest.raises(ValidationError):
        BulkImportService.commit(preview.id)
    assert PrintBatch.query.count() == 3


def test_stale_preview_commits_nothing(app):
    preview = BulkImportService.preview(ImportKind.BATCHES, BATCHES_CSV)
    BatchLedgerService.create_batch("B-02", 10)

    with pytest.raises(ValidationError):
        BulkImportService.commit(preview.id)
    assert PrintBatch.query.count() == 1
    assert BulkImportService.get(preview.id).status == ImportStatus.PREVIEWED


def test_import_with_only_errors_cannot_commit(app):
    content = "batch_name,total_books,serial_start,serial_end,printed_date\nB-01,lots,,,\n"
    preview = BulkImportService.preview(ImportKind.BATCHES, content)
    assert preview.valid_rows == 0
    with pytest.raises(ValidationError):
        BulkImportService.commit(preview.id)
