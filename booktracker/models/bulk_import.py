from datetime import datetime
from booktracker import db


class ImportKind:
    BATCHES = "batches"
    DISTRIBUTIONS = "distributions"
    REGISTRATIONS = "registrations"

    ALL = [BATCHES, DISTRIBUTIONS, REGISTRATIONS]


class ImportStatus:
    PREVIEWED = "previewed"
    COMMITTED = "committed"
    FAILED = "failed"


class RowStatus:
    VALID = "valid"
    ERROR = "error"


class BulkImport(db.Model):
    """A reconciled CSV upload awaiting (or past) confirmation."""

    __tablename__ = "bulk_imports"

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(20), nullable=False)
    filename = db.Column(db.String(255))
    status = db.Column(db.String(20), default=ImportStatus.PREVIEWED, nullable=False)

    total_rows = db.Column(db.Integer, default=0)
    valid_rows = db.Column(db.Integer, default=0)
    error_rows = db.Column(db.Integer, default=0)
    committed_rows = db.Column(db.Integer, default=0)
    error_message = db.Column(db.Text)

    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    committed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    rows = db.relationship(
        "BulkImportRow", back_populates="bulk_import", cascade="all, delete-orphan",
        order_by="BulkImportRow.row_number"
    )

    @property
    def is_committed(self):
        return self.status == ImportStatus.COMMITTED

    @property
    def is_failed(self):
        return self.status == ImportStatus.FAILED

    @property
    def can_commit(self):
        return self.status == ImportStatus.PREVIEWED and self.valid_rows > 0

    @property
    def status_display(self):
        return self.status.replace("_", " ").title()

    def to_dict(self, include_rows=True):
        data = {
            "id": self.id,
            "kind": self.kind,
            "filename": self.filename,
            "status": self.status,
            "total_rows": self.total_rows,
            "valid_rows": self.valid_rows,
            "error_rows": self.error_rows,
            "committed_rows": self.committed_rows,
            "error_message": self.error_message,
            "can_commit": self.can_commit,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "committed_at": self.committed_at.isoformat() if self.committed_at else None,
        }
        if include_rows:
            data["rows"] = [row.to_dict() for row in self.rows]
        return data

    def __repr__(self):
        return f"<BulkImport {self.id}: {self.kind} ({self.status})>"


class BulkImportRow(db.Model):
    """One data row of an import with its verdict."""

    __tablename__ = "bulk_import_rows"

    id = db.Column(db.Integer, primary_key=True)
    bulk_import_id = db.Column(db.Integer, db.ForeignKey("bulk_imports.id"), nullable=False, index=True)
    row_number = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(10), nullable=False)
    message = db.Column(db.Text)
    raw_data = db.Column(db.JSON)

    bulk_import = db.relationship("BulkImport", back_populates="rows")

    @property
    def is_valid(self):
        return self.status == RowStatus.VALID

    def to_dict(self):
        return {
            "row_number": self.row_number,
            "status": self.status,
            "message": self.message,
            "raw_data": self.raw_data,
        }
