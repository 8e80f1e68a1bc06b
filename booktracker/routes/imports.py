import os
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user
from werkzeug.utils import secure_filename

from booktracker.errors import PermissionDeniedError, ValidationError
from booktracker.models import ImportKind, UserRole, roles_required
from booktracker.services import BulkImportService

bp = Blueprint("imports", __name__)

# Roles allowed to import each kind of file
KIND_ROLES = {
    ImportKind.BATCHES: UserRole.INVENTORY,
    ImportKind.DISTRIBUTIONS: UserRole.DISTRIBUTION,
    ImportKind.REGISTRATIONS: UserRole.REGISTRATION,
}


def _check_kind(kind):
    if kind not in ImportKind.ALL:
        raise ValidationError(f"Unknown import kind: {kind}", field="kind")
    if current_user.role not in KIND_ROLES[kind]:
        raise PermissionDeniedError()


def save_upload(file) -> tuple:
    """Keep a copy of the uploaded file and return ``(filename, content)``."""
    filename = secure_filename(file.filename)
    if not filename.lower().endswith((".csv", ".txt")):
        raise ValidationError(f"Invalid file type: {file.filename}. Must be .csv or .txt", field="file")

    content = file.read()
    upload_folder = current_app.config.get("UPLOAD_FOLDER", "/tmp/booktracker-uploads")
    os.makedirs(upload_folder, exist_ok=True)
    stored = f"{datetime.utcnow().strftime('%Y%m%d%H%M%S')}_{filename}"
    with open(os.path.join(upload_folder, stored), "wb") as f:
        f.write(content)
    return filename, content


@bp.route("/")
@login_required
@roles_required(*UserRole.REGISTRATION)
def index():
    kind = request.args.get("kind") or None
    imports = BulkImportService.list_imports(kind)
    return jsonify({"imports": [i.to_dict(include_rows=False) for i in imports]})


@bp.route("/<kind>/preview", methods=["POST"])
@login_required
@roles_required(*UserRole.REGISTRATION)
def preview(kind):
    """Reconcile an uploaded CSV (``file`` form field) or a raw CSV request body."""
    _check_kind(kind)

    if "file" in request.files and request.files["file"].filename:
        filename, content = save_upload(request.files["file"])
    else:
        filename, content = None, request.get_data()

    bulk_import = BulkImportService.preview(kind, content, filename=filename, user_id=current_user.id)
    return jsonify({"import": bulk_import.to_dict()}), 201


@bp.route("/<int:import_id>")
@login_required
@roles_required(*UserRole.REGISTRATION)
def show(import_id):
    return jsonify({"import": BulkImportService.get(import_id).to_dict()})


@bp.route("/<int:import_id>/commit", methods=["POST"])
@login_required
@roles_required(*UserRole.REGISTRATION)
def commit(import_id):
    _check_kind(BulkImportService.get(import_id).kind)
    bulk_import = BulkImportService.commit(import_id)
    return jsonify({"import": bulk_import.to_dict(include_rows=False)})
