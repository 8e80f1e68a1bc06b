from functools import wraps

from flask import current_app
from flask_login import UserMixin, current_user
from itsdangerous import URLSafeTimedSerializer, SignatureExpired, BadSignature
from werkzeug.security import generate_password_hash, check_password_hash

from booktracker import db, login_manager
from booktracker.errors import AuthenticationError, PermissionDeniedError, error_response

TOKEN_SALT = "api-token"


class UserRole:
    """User role constants."""
    SUPER_ADMIN = "super_admin"
    DISTRIBUTOR = "distributor"
    INCHARGE = "incharge"
    BOOK_RECEIVER = "book_receiver"
    STAFF = "staff"
    VOLUNTEER = "volunteer"

    CHOICES = [
        (SUPER_ADMIN, "Super Admin"),
        (DISTRIBUTOR, "Book Distributor"),
        (INCHARGE, "Incharge"),
        (BOOK_RECEIVER, "Book Receiver"),
        (STAFF, "Staff"),
        (VOLUNTEER, "Volunteer"),
    ]

    # Who may do what
    INVENTORY = (SUPER_ADMIN, DISTRIBUTOR)
    DISTRIBUTION = (SUPER_ADMIN, DISTRIBUTOR, INCHARGE)
    REGISTRATION = (SUPER_ADMIN, DISTRIBUTOR, INCHARGE, STAFF, VOLUNTEER)
    RECEIVING = (SUPER_ADMIN, BOOK_RECEIVER, STAFF)

    @classmethod
    def values(cls):
        return [value for value, _ in cls.CHOICES]


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256))
    phone = db.Column(db.String(20))
    pssm_id = db.Column(db.String(50))
    address = db.Column(db.String(255))
    region = db.Column(db.String(100))
    role = db.Column(db.String(20), default=UserRole.VOLUNTEER, nullable=False)
    is_approved = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        # Pending sign-ups cannot log in until a super admin approves them
        return bool(self.is_approved)

    @property
    def is_super_admin(self):
        return self.role == UserRole.SUPER_ADMIN

    @property
    def role_display(self):
        for value, label in UserRole.CHOICES:
            if value == self.role:
                return label
        return self.role

    def get_token(self):
        s = URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)
        return s.dumps(self.id)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "pssm_id": self.pssm_id,
            "address": self.address,
            "region": self.region,
            "role": self.role,
            "role_display": self.role_display,
            "is_approved": self.is_approved,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"


def roles_required(*roles):
    """Decorator to require one of *roles* for a route."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return login_manager.unauthorized()
            if current_user.role not in roles:
                return error_response(PermissionDeniedError())
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def admin_required(f):
    """Decorator to require the super admin role for a route."""
    return roles_required(UserRole.SUPER_ADMIN)(f)


@login_manager.user_loader
def load_user(id):
    return db.session.get(User, int(id))


@login_manager.request_loader
def load_user_from_request(request):
    """Accept ``Authorization: Bearer <token>`` for API clients."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None

    s = URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)
    try:
        user_id = s.loads(header[len("Bearer "):].strip(), max_age=current_app.config["AUTH_TOKEN_MAX_AGE"])
    except (SignatureExpired, BadSignature):
        return None

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    return error_response(AuthenticationError())
