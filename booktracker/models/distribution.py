from booktracker import db
from booktracker.models.book import BookStatus
from booktracker.serials import format_range, sort_serials
from booktracker.utils import format_address


class RecipientType:
    INDIVIDUAL = "Individual"
    CENTER = "Center"
    DISTRICT = "District"
    AUTONOMOUS = "Autonomous"

    ALL = [INDIVIDUAL, CENTER, DISTRICT, AUTONOMOUS]


class Distribution(db.Model):
    """Assignment of a set of books from a batch to a recipient."""

    __tablename__ = "distributions"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)

    # Recipient
    recipient_type = db.Column(db.String(20), nullable=False, default=RecipientType.INDIVIDUAL)
    recipient_name = db.Column(db.String(200), nullable=False)
    entity_name = db.Column(db.String(200))
    phone = db.Column(db.String(20), nullable=False)
    pssm_id = db.Column(db.String(50))

    # Address
    address_line = db.Column(db.String(255))
    town = db.Column(db.String(100), index=True)
    district = db.Column(db.String(100), index=True)
    state = db.Column(db.String(100), index=True)
    pincode = db.Column(db.String(10))

    # Weak reference to the batch: the name survives even if the FK is cleared
    batch_id = db.Column(db.Integer, db.ForeignKey("print_batches.id"), nullable=True)
    batch_name = db.Column(db.String(100))

    created_at = db.Column(db.DateTime, server_default=db.func.now())

    # Relationships
    batch = db.relationship("PrintBatch", back_populates="distributions")
    books = db.relationship("Book", back_populates="distribution", order_by="Book.book_number")

    @property
    def book_serials(self):
        return sort_serials(book.book_number for book in self.books)

    @property
    def count(self):
        return len(self.books)

    @property
    def range_display(self):
        return format_range(book.book_number for book in self.books)

    @property
    def registered_count(self):
        return sum(1 for b in self.books if b.status in (BookStatus.REGISTERED, BookStatus.RECEIVED))

    @property
    def submitted_count(self):
        return sum(1 for b in self.books if b.status == BookStatus.RECEIVED)

    @property
    def amount_collected(self):
        return sum((b.total_amount or 0) for b in self.books)

    @property
    def address_display(self):
        return format_address(self.town, self.district, self.state, self.pincode, self.address_line)

    def to_dict(self, include_serials=True):
        data = {
            "id": self.id,
            "date": self.date.isoformat() if self.date else None,
            "recipient_type": self.recipient_type,
            "recipient_name": self.recipient_name,
            "entity_name": self.entity_name,
            "phone": self.phone,
            "pssm_id": self.pssm_id,
            "address": {
                "address_line": self.address_line,
                "town": self.town,
                "district": self.district,
                "state": self.state,
                "pincode": self.pincode,
            },
            "address_display": self.address_display,
            "batch_id": self.batch_id,
            "batch_name": self.batch_name,
            "count": self.count,
            "range": self.range_display,
            "registered_count": self.registered_count,
            "submitted_count": self.submitted_count,
            "amount_collected": float(self.amount_collected),
        }
        if include_serials:
            data["book_serials"] = self.book_serials
        return data

    def __repr__(self):
        return f"<Distribution {self.id} - {self.recipient_name} ({self.count} books)>"
