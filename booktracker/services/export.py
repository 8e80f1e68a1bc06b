"""CSV downloads of distributions and books.

The columns are the human-readable view (combined address, range display)
and deliberately differ from the import schemas.
"""

import csv
import io

from booktracker.models import Book, Distribution

DISTRIBUTION_COLUMNS = [
    "date", "recipient_type", "recipient_name", "entity_name", "phone", "pssm_id",
    "address", "batch_name", "count", "range", "registered", "received", "amount_collected",
]

BOOK_COLUMNS = [
    "book_number", "batch_name", "status", "distributor", "assigned_to", "phone", "pssm_id",
    "address", "filled_pages", "total_amount", "payment_mode",
    "assigned_date", "registration_date", "received_date",
]


def _date(value):
    return value.isoformat() if value else ""


def export_distributions_csv(distributions=None) -> str:
    if distributions is None:
        distributions = Distribution.query.order_by(Distribution.date, Distribution.id).all()

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL)
    writer.writerow(DISTRIBUTION_COLUMNS)
    for d in distributions:
        writer.writerow([
            _date(d.date),
            d.recipient_type or "",
            d.recipient_name or "",
            d.entity_name or "",
            d.phone or "",
            d.pssm_id or "",
            d.address_display,
            d.batch_name or "",
            d.count,
            d.range_display,
            d.registered_count,
            d.submitted_count,
            f"{d.amount_collected:.2f}",
        ])
    return buf.getvalue()


def export_books_csv(status=None) -> str:
    query = Book.query
    if status:
        query = query.filter(Book.status == status)

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL)
    writer.writerow(BOOK_COLUMNS)
    for b in query.order_by(Book.book_number).all():
        writer.writerow([
            b.book_number,
            b.batch_name or "",
            b.status,
            b.distributor_name or "",
            b.assigned_to_name or "",
            b.assigned_to_phone or "",
            b.pssm_id or "",
            b.registration_address or "",
            b.filled_pages or 0,
            f"{(b.total_amount or 0):.2f}",
            b.payment_mode or "",
            _date(b.assigned_date),
            _date(b.registration_date),
            _date(b.received_date),
        ])
    return buf.getvalue()
