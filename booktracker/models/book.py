from booktracker import db
from booktracker.utils import format_address

PAGES_PER_BOOK = 20


class BookStatus:
    DISTRIBUTED = "Distributed"
    REGISTERED = "Registered"
    RECEIVED = "Received"

    ALL = [DISTRIBUTED, REGISTERED, RECEIVED]


class PaymentMode:
    ONLINE = "Online"
    OFFLINE = "Offline"

    ALL = [ONLINE, OFFLINE]


class Book(db.Model):
    """A single physical donation book out in the field."""

    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("filled_pages >= 0 AND filled_pages <= total_pages",
                           name="ck_books_filled_pages_bounds"),
    )

    id = db.Column(db.Integer, primary_key=True)
    book_number = db.Column(db.String(50), nullable=False, unique=True, index=True)
    batch_id = db.Column(db.Integer, db.ForeignKey("print_batches.id"), nullable=True)
    batch_name = db.Column(db.String(100))
    distribution_id = db.Column(db.Integer, db.ForeignKey("distributions.id"), nullable=True, index=True)
    status = db.Column(db.String(20), nullable=False, default=BookStatus.DISTRIBUTED, index=True)

    # Registered recipient (the person responsible for the pages)
    assigned_to_name = db.Column(db.String(200))
    assigned_to_phone = db.Column(db.String(20))
    pssm_id = db.Column(db.String(50))
    address_line = db.Column(db.String(255))
    town = db.Column(db.String(100))
    district = db.Column(db.String(100))
    state = db.Column(db.String(100))

    # Collection
    total_pages = db.Column(db.Integer, nullable=False, default=PAGES_PER_BOOK)
    filled_pages = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_mode = db.Column(db.String(10))

    assigned_date = db.Column(db.Date)
    registration_date = db.Column(db.Date)
    received_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    # Relationships
    distribution = db.relationship("Distribution", back_populates="books")
    pages = db.relationship(
        "BookPage", back_populates="book", cascade="all, delete-orphan", order_by="BookPage.page_number"
    )

    @property
    def distributor_name(self):
        return self.distribution.recipient_name if self.distribution else None

    @property
    def distribution_address(self):
        return self.distribution.address_display if self.distribution else None

    @property
    def registration_address(self):
        return format_address(self.town, self.district, self.state, address_line=self.address_line)

    @property
    def has_page_detail(self):
        return any(page.is_filled for page in self.pages)

    @property
    def is_finalized(self):
        return self.status == BookStatus.RECEIVED

    def to_dict(self):
        return {
            "id": self.id,
            "book_number": self.book_number,
            "batch_name": self.batch_name,
            "distribution_id": self.distribution_id,
            "status": self.status,
            "assigned_to_name": self.assigned_to_name,
            "assigned_to_phone": self.assigned_to_phone,
            "pssm_id": self.pssm_id,
            "distributor_name": self.distributor_name,
            "address": {
                "address_line": self.address_line,
                "town": self.town,
                "district": self.district,
                "state": self.state,
            },
            "total_pages": self.total_pages,
            "filled_pages": self.filled_pages,
            "total_amount": float(self.total_amount or 0),
            "payment_mode": self.payment_mode,
            "assigned_date": self.assigned_date.isoformat() if self.assigned_date else None,
            "registration_date": self.registration_date.isoformat() if self.registration_date else None,
            "received_date": self.received_date.isoformat() if self.received_date else None,
        }

    def __repr__(self):
        return f"<Book {self.book_number} ({self.status})>"


class BookPage(db.Model):
    """One donor slot in a book."""

    __tablename__ = "book_pages"
    __table_args__ = (
        db.UniqueConstraint("book_id", "page_number"),
        db.CheckConstraint("amount >= 0", name="ck_book_pages_amount_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    page_number = db.Column(db.Integer, nullable=False)

    receipt_number = db.Column(db.String(50))
    donor_name = db.Column(db.String(200))
    donor_phone = db.Column(db.String(20))
    donor_address = db.Column(db.String(255))
    profession = db.Column(db.String(100))
    state = db.Column(db.String(100))
    district = db.Column(db.String(100))
    town = db.Column(db.String(100))

    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_mode = db.Column(db.String(10))
    transaction_id = db.Column(db.String(100))
    date = db.Column(db.Date)
    is_filled = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    book = db.relationship("Book", back_populates="pages")

    def to_dict(self):
        return {
            "page_number": self.page_number,
            "receipt_number": self.receipt_number,
            "donor_name": self.donor_name,
            "donor_phone": self.donor_phone,
            "donor_address": self.donor_address,
            "profession": self.profession,
            "state": self.state,
            "district": self.district,
            "town": self.town,
            "amount": float(self.amount or 0),
            "payment_mode": self.payment_mode,
            "transaction_id": self.transaction_id,
            "date": self.date.isoformat() if self.date else None,
            "is_filled": self.is_filled,
        }

    def __repr__(self):
        return f"<BookPage {self.book_id}#{self.page_number}>"
