from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user

from booktracker import db
from booktracker.errors import NotFoundError, ValidationError
from booktracker.models import User, UserRole, admin_required

bp = Blueprint("users", __name__)


def _get_user(id):
    user = db.session.get(User, id)
    if user is None:
        raise NotFoundError("User", id)
    return user


@bp.route("/")
@login_required
@admin_required
def index():
    """List all users."""
    users = User.query.order_by(User.name).all()
    return jsonify({"users": [u.to_dict() for u in users]})


@bp.route("/pending")
@login_required
@admin_required
def pending():
    """Sign-ups waiting for approval."""
    users = User.query.filter_by(is_approved=False).order_by(User.created_at).all()
    return jsonify({"users": [u.to_dict() for u in users]})


@bp.route("/<int:id>/approve", methods=["POST"])
@login_required
@admin_required
def approve(id):
    user = _get_user(id)
    data = request.get_json(silent=True) or {}
    role = data.get("role")
    if role:
        if role not in UserRole.values():
            raise ValidationError(f"Unknown role: {role}", field="role")
        user.role = role

    user.is_approved = True
    db.session.commit()
    current_app.logger.info("User %s approved as %s by %s", user.email, user.role, current_user.email)
    return jsonify({"user": user.to_dict()})


@bp.route("/<int:id>/reject", methods=["POST"])
@login_required
@admin_required
def reject(id):
    """Delete a pending sign-up."""
    user = _get_user(id)
    if user.is_approved:
        raise ValidationError("Only pending sign-ups can be rejected")

    db.session.delete(user)
    db.session.commit()
    return jsonify({"message": f"Registration for {user.email} rejected"})
