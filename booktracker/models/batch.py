from booktracker import db


class BatchStatus:
    IN_STOCK = "In Stock"
    PARTIALLY_DISTRIBUTED = "Partially Distributed"
    FULLY_DISTRIBUTED = "Fully Distributed"

    @staticmethod
    def for_counts(remaining_books: int, total_books: int) -> str:
        """Status implied by the remaining stock of a batch."""
        if remaining_books <= 0:
            return BatchStatus.FULLY_DISTRIBUTED
        if remaining_books >= total_books:
            return BatchStatus.IN_STOCK
        return BatchStatus.PARTIALLY_DISTRIBUTED


class PrintBatch(db.Model):
    """A print run of sequentially numbered books."""

    __tablename__ = "print_batches"
    __table_args__ = (
        db.CheckConstraint("total_books > 0", name="ck_print_batches_total_positive"),
        db.CheckConstraint(
            "remaining_books >= 0 AND remaining_books <= total_books",
            name="ck_print_batches_remaining_bounds",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    batch_name = db.Column(db.String(100), nullable=False, unique=True, index=True)
    total_books = db.Column(db.Integer, nullable=False)
    remaining_books = db.Column(db.Integer, nullable=False)
    serial_start = db.Column(db.String(50))
    serial_end = db.Column(db.String(50))
    printed_date = db.Column(db.Date)
    printer_name = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    # Relationships
    distributions = db.relationship("Distribution", back_populates="batch")

    @property
    def status(self):
        return BatchStatus.for_counts(self.remaining_books, self.total_books)

    @property
    def distributed_books(self):
        return self.total_books - self.remaining_books

    def to_dict(self):
        return {
            "id": self.id,
            "batch_name": self.batch_name,
            "total_books": self.total_books,
            "remaining_books": self.remaining_books,
            "serial_start": self.serial_start,
            "serial_end": self.serial_end,
            "printed_date": self.printed_date.isoformat() if self.printed_date else None,
            "printer_name": self.printer_name,
            "status": self.status,
        }

    def __repr__(self):
        return f"<PrintBatch {self.batch_name} ({self.remaining_books}/{self.total_books})>"
