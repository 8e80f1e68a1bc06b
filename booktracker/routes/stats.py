from flask import Blueprint, jsonify
from flask_login import login_required

from booktracker.models import UserRole, roles_required
from booktracker.services import StatsService

bp = Blueprint("stats", __name__)


@bp.route("/distributor")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def distributor():
    """Printing to receipt funnel."""
    return jsonify(StatsService.distributor_stats())


@bp.route("/incharge")
@login_required
def incharge():
    return jsonify(StatsService.incharge_stats())


@bp.route("/status")
@login_required
def status():
    return jsonify(StatsService.status_breakdown())


@bp.route("/distribution-types")
@login_required
@roles_required(*UserRole.DISTRIBUTION)
def distribution_types():
    """Books distributed per recipient type."""
    return jsonify(StatsService.distribution_by_type())
