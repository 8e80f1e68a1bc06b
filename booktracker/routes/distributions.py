from datetime import date

from flask import Blueprint, Response, jsonify, request
from flask_login import login_required

from booktracker.models import UserRole, roles_required
from booktracker.services import DistributionService
from booktracker.services.export import export_distributions_csv

bp = Blueprint("distributions", __name__)


@bp.route("/")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def index():
    distributions = DistributionService.list_distributions()
    return jsonify({"distributions": [d.to_dict(include_serials=False) for d in distributions]})


@bp.route("/", methods=["POST"])
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def create():
    """Create a distribution from explicit serials and/or ``{start, end}`` ranges."""
    data = request.get_json(silent=True) or {}
    serials = DistributionService.collect_serials(data.get("book_serials"), data.get("ranges"))
    distribution = DistributionService.distribute(
        data,
        serials,
        batch_id=data.get("batch_id"),
        batch_name=data.get("batch_name"),
    )
    return jsonify({"distribution": distribution.to_dict()}), 201


@bp.route("/<int:id>")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def show(id):
    return jsonify({"distribution": DistributionService.get(id).to_dict()})


@bp.route("/<int:id>", methods=["PATCH"])
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def update(id):
    data = request.get_json(silent=True) or {}
    distribution = DistributionService.update(id, data)
    return jsonify({"distribution": distribution.to_dict()})


@bp.route("/<int:id>", methods=["DELETE"])
@login_required
@roles_required(*UserRole.INVENTORY)
def cancel(id):
    DistributionService.cancel(id)
    return jsonify({"message": f"Distribution {id} cancelled"})


@bp.route("/export.csv")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def export_csv():
    filename = f"distributions-{date.today()}.csv"
    return Response(
        export_distributions_csv(),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
