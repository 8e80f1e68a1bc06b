from datetime import date

from flask import Blueprint, Response, jsonify, request
from flask_login import login_required

from booktracker.errors import ValidationError
from booktracker.models import BookStatus, UserRole, roles_required
from booktracker.services import BookLifecycleService
from booktracker.services.export import export_books_csv

bp = Blueprint("books", __name__)


def _status_filter():
    status = request.args.get("status") or None
    if status and status not in BookStatus.ALL:
        raise ValidationError(f"Unknown status: {status}", field="status")
    return status


@bp.route("/")
@login_required
def index():
    """Books, optionally filtered by ``status`` and a ``q`` search term."""
    books = BookLifecycleService.list_books(status=_status_filter(), search=request.args.get("q"))
    return jsonify({"books": [b.to_dict() for b in books]})


@bp.route("/<book_number>")
@login_required
def show(book_number):
    return jsonify({"book": BookLifecycleService.get(book_number).to_dict()})


@bp.route("/<book_number>/register", methods=["POST"])
@login_required
@roles_required(*UserRole.REGISTRATION)
def register(book_number):
    data = request.get_json(silent=True) or {}
    book = BookLifecycleService.register_recipient(
        book_number,
        data.get("recipient_name"),
        data.get("phone"),
        data.get("town"),
        data.get("district"),
        data.get("state"),
        pssm_id=data.get("pssm_id"),
        address_line=data.get("address_line"),
        registration_date=data.get("date"),
    )
    return jsonify({"book": book.to_dict()})


@bp.route("/<book_number>/pages")
@login_required
@roles_required(*UserRole.RECEIVING)
def pages(book_number):
    book_pages = BookLifecycleService.get_pages(book_number)
    return jsonify({"pages": [p.to_dict() for p in book_pages]})


@bp.route("/<book_number>/pages/<int:page_number>", methods=["PUT"])
@login_required
@roles_required(*UserRole.RECEIVING)
def save_page(book_number, page_number):
    data = request.get_json(silent=True) or {}
    page = BookLifecycleService.save_page(book_number, page_number, data)
    book = BookLifecycleService.get(book_number)
    return jsonify({"page": page.to_dict(), "book": book.to_dict()})


@bp.route("/<book_number>/finalize", methods=["POST"])
@login_required
@roles_required(*UserRole.RECEIVING)
def finalize(book_number):
    data = request.get_json(silent=True) or {}
    book = BookLifecycleService.finalize_book(
        book_number,
        confirm=data.get("confirm") is True,
        received_date=data.get("received_date"),
        payment_mode=data.get("payment_mode"),
    )
    return jsonify({"book": book.to_dict()})


@bp.route("/<book_number>/quick-update", methods=["POST"])
@login_required
@roles_required(*UserRole.RECEIVING)
def quick_update(book_number):
    data = request.get_json(silent=True) or {}
    book = BookLifecycleService.quick_update(
        book_number,
        data.get("status"),
        payment_mode=data.get("payment_mode"),
        filled_pages=data.get("filled_pages"),
        total_amount=data.get("total_amount"),
        confirm=data.get("confirm") is True,
    )
    return jsonify({"book": book.to_dict()})


@bp.route("/export.csv")
@login_required
def export_csv():
    status = _status_filter()
    suffix = f"-{status.lower()}" if status else ""
    filename = f"books{suffix}-{date.today()}.csv"
    return Response(
        export_books_csv(status),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
