from flask import Blueprint, jsonify, request
from flask_login import login_required

from booktracker.models import UserRole, roles_required
from booktracker.services import BatchLedgerService
from booktracker.utils import parse_int

bp = Blueprint("batches", __name__)


@bp.route("/")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def index():
    batches = BatchLedgerService.list_batches()
    return jsonify({"batches": [b.to_dict() for b in batches]})


@bp.route("/", methods=["POST"])
@login_required
@roles_required(*UserRole.INVENTORY)
def create():
    data = request.get_json(silent=True) or {}
    batch = BatchLedgerService.create_batch(
        data.get("batch_name"),
        data.get("total_books"),
        serial_start=data.get("serial_start"),
        serial_end=data.get("serial_end"),
        printed_date=data.get("printed_date"),
        printer_name=data.get("printer_name"),
    )
    return jsonify({"batch": batch.to_dict()}), 201


@bp.route("/<int:id>")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def show(id):
    return jsonify({"batch": BatchLedgerService.get(id).to_dict()})


def _count():
    data = request.get_json(silent=True) or {}
    return parse_int(data.get("count"))


@bp.route("/<int:id>/allocate", methods=["POST"])
@login_required
@roles_required(*UserRole.INVENTORY)
def allocate(id):
    batch = BatchLedgerService.allocate(id, _count())
    return jsonify({"batch": batch.to_dict()})


@bp.route("/<int:id>/release", methods=["POST"])
@login_required
@roles_required(*UserRole.INVENTORY)
def release(id):
    batch = BatchLedgerService.release(id, _count())
    return jsonify({"batch": batch.to_dict()})
