from decimal import Decimal

from sqlalchemy import text

from booktracker import db
from booktracker.models import BookStatus, RecipientType


class StatsService:
    """Dashboard figures computed from batches and books."""

    @staticmethod
    def _book_counts():
        sql = text("""
            SELECT
                count(*) AS total,
                sum(case when status <> :distributed then 1 else 0 end) AS registered,
                sum(case when status = :received then 1 else 0 end) AS received,
                sum(coalesce(total_amount, 0)) AS amount
            FROM books
        """)
        return db.session.execute(
            sql, {"distributed": BookStatus.DISTRIBUTED, "received": BookStatus.RECEIVED}
        ).fetchone()

    @classmethod
    def distributor_stats(cls) -> dict:
        """
        Inventory funnel from printing to receipt.

        Returns dict with:
            - totalPrinted: books across all print batches
            - totalDistributed: books handed out
            - totalRegistered: books registered or received
            - totalReceived: books returned and finalised
            - printedNotDistributed, distributedNotRegistered,
              registeredNotReceived: the gaps between stages, never negative
        """
        printed = db.session.execute(
            text("SELECT coalesce(sum(total_books), 0) AS printed FROM print_batches")
        ).scalar() or 0
        counts = cls._book_counts()

        distributed = counts.total or 0
        registered = counts.registered or 0
        received = counts.received or 0
        return {
            "totalPrinted": int(printed),
            "totalDistributed": distributed,
            "totalRegistered": registered,
            "totalReceived": received,
            "printedNotDistributed": max(0, int(printed) - distributed),
            "distributedNotRegistered": max(0, distributed - registered),
            "registeredNotReceived": max(0, registered - received),
        }

    @classmethod
    def incharge_stats(cls) -> dict:
        """Registration progress: books assigned, registered, and money collected."""
        counts = cls._book_counts()
        assigned = counts.total or 0
        registered = counts.registered or 0
        return {
            "totalAssigned": assigned,
            "distributed": registered,
            "pendingDetails": max(0, assigned - registered),
            "amountCollected": float(Decimal(counts.amount or 0)),
        }

    @staticmethod
    def status_breakdown() -> dict:
        rows = db.session.execute(
            text("SELECT status, count(*) AS books FROM books GROUP BY status")
        ).fetchall()
        breakdown = {status: 0 for status in BookStatus.ALL}
        for row in rows:
            breakdown[row.status] = row.books
        return breakdown

    @staticmethod
    def distribution_by_type() -> dict:
        """
        Books handed out per recipient type, with printed vs distributed totals.

        Every recipient type appears in ``byType``, zero when nothing was
        distributed to it.
        """
        rows = db.session.execute(text("""
            SELECT d.recipient_type, count(b.id) AS books
            FROM distributions d
            JOIN books b ON b.distribution_id = d.id
            GROUP BY d.recipient_type
        """)).fetchall()
        printed = db.session.execute(
            text("SELECT coalesce(sum(total_books), 0) AS printed FROM print_batches")
        ).scalar() or 0

        by_type = {recipient_type: 0 for recipient_type in RecipientType.ALL}
        for row in rows:
            by_type[row.recipient_type] = row.books
        return {
            "byType": by_type,
            "totalPrinted": int(printed),
            "totalDistributed": sum(by_type.values()),
        }
