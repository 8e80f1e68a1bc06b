import json

from flask import Blueprint, jsonify, request
from flask_login import login_required

from booktracker.errors import FormatError
from booktracker.models import LocationLevel, UserRole, roles_required
from booktracker.services import LocationService

bp = Blueprint("locations", __name__)


def _path(data):
    """Parent names that locate a node: state, district and town."""
    return {key: data.get(key) for key in ("state", "district", "town")}


@bp.route("/")
@login_required
def tree():
    return jsonify({"locations": LocationService.tree()})


@bp.route("/<level>", methods=["POST"])
@login_required
@roles_required(UserRole.SUPER_ADMIN)
def add(level):
    data = request.get_json(silent=True) or {}
    LocationService.add(level.title(), data.get("name"), **_path(data))
    return jsonify({"locations": LocationService.tree()}), 201


@bp.route("/<level>/rename", methods=["POST"])
@login_required
@roles_required(UserRole.SUPER_ADMIN)
def rename(level):
    data = request.get_json(silent=True) or {}
    LocationService.rename(level.title(), data.get("name"), data.get("new_name"), **_path(data))
    return jsonify({"locations": LocationService.tree()})


@bp.route("/<level>", methods=["DELETE"])
@login_required
@roles_required(UserRole.SUPER_ADMIN)
def delete(level):
    data = request.get_json(silent=True) or {}
    LocationService.delete(level.title(), data.get("name"), **_path(data))
    return jsonify({"locations": LocationService.tree()})


@bp.route("/import", methods=["POST"])
@login_required
@roles_required(UserRole.SUPER_ADMIN)
def import_locations():
    """Merge a States/Districts/Mandals JSON document, uploaded or posted as the body."""
    if "file" in request.files and request.files["file"].filename:
        try:
            document = json.load(request.files["file"])
        except ValueError:
            raise FormatError("Location file is not valid JSON")
    else:
        document = request.get_json(silent=True)
        if document is None:
            raise FormatError("Location file is not valid JSON")

    counts = LocationService.import_json(document)
    return jsonify({"imported": counts, "locations": LocationService.tree()})


@bp.route("/levels")
@login_required
def levels():
    return jsonify({"levels": LocationLevel.ALL})
