from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user

from booktracker import db
from booktracker.errors import AuthenticationError, ValidationError
from booktracker.models import User, UserRole
from booktracker.utils import clean, is_valid_email, is_valid_phone

bp = Blueprint("auth", __name__)

MIN_PASSWORD_LENGTH = 8


@bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = clean(data.get("email")).lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if user is None or not user.check_password(password):
        raise AuthenticationError("Invalid email or password")
    if not user.is_approved:
        raise AuthenticationError("Your account is awaiting approval by an administrator")

    login_user(user)
    return jsonify({"user": user.to_dict(), "token": user.get_token()})


@bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"message": "Logged out"})


@bp.route("/register", methods=["POST"])
def register():
    """Self sign-up. The account stays inactive until a super admin approves it."""
    data = request.get_json(silent=True) or {}
    email = clean(data.get("email")).lower()
    name = clean(data.get("name"))
    password = data.get("password") or ""
    role = clean(data.get("role")) or UserRole.VOLUNTEER

    if not name:
        raise ValidationError("Name is required", field="name")
    if not is_valid_email(email):
        raise ValidationError("Invalid email address.", field="email")
    if clean(data.get("phone")) and not is_valid_phone(data.get("phone")):
        raise ValidationError(f"Invalid phone number: {clean(data.get('phone'))}", field="phone")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", field="password")
    # Nobody can sign themselves up as super admin
    if role not in UserRole.values() or role == UserRole.SUPER_ADMIN:
        raise ValidationError(f"Unknown role: {role}", field="role")
    if User.query.filter_by(email=email).first():
        raise ValidationError("Email already registered", field="email")

    user = User(
        name=name,
        email=email,
        phone=clean(data.get("phone")) or None,
        pssm_id=clean(data.get("pssm_id")) or None,
        address=clean(data.get("address")) or None,
        region=clean(data.get("region")) or None,
        role=role,
        is_approved=False,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    return jsonify({"user": user.to_dict(), "message": "Registration received. Wait for approval."}), 201


@bp.route("/me")
@login_required
def me():
    return jsonify({"user": current_user.to_dict()})


@bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    data = request.get_json(silent=True) or {}
    if not current_user.check_password(data.get("current_password") or ""):
        raise ValidationError("Current password is incorrect.", field="current_password")

    new_password = data.get("new_password") or ""
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", field="new_password")

    current_user.set_password(new_password)
    db.session.commit()
    return jsonify({"message": "Password updated successfully."})
