"""
Book tracker - test configuration and fixtures
"""
import pytest
from flask import g, request_started

from booktracker import create_app, db
from booktracker.config import Config
from booktracker.models import User, UserRole
from booktracker.services import BatchLedgerService, DistributionService


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-for-testing-only"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ALLOW_BOOK_REOPEN = False
    LOG_LEVEL = "WARNING"


@pytest.fixture
def app(tmp_path):
    """App with a fresh in-memory schema for each test"""
    app = create_app(TestingConfig)
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "uploads")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


def _forget_login_user(sender, **extra):
    # Requests share the fixture's app context, and with it g
    g.pop("_login_user", None)


@pytest.fixture
def client(app):
    request_started.connect(_forget_login_user, app)
    yield app.test_client()
    request_started.disconnect(_forget_login_user, app)


def make_user(role, email=None, approved=True, password="testpassword123"):
    user = User(
        name=f"Test {role.replace('_', ' ').title()}",
        email=email or f"{role}@example.org",
        role=role,
        is_approved=approved,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(app):
    return make_user(UserRole.SUPER_ADMIN)


@pytest.fixture
def distributor(app):
    return make_user(UserRole.DISTRIBUTOR)


@pytest.fixture
def receiver(app):
    return make_user(UserRole.BOOK_RECEIVER)


@pytest.fixture
def volunteer(app):
    return make_user(UserRole.VOLUNTEER)


def bearer(user):
    return {"Authorization": f"Bearer {user.get_token()}"}


@pytest.fixture
def auth_headers(admin):
    """Bearer token headers for the super admin"""
    return bearer(admin)


RECIPIENT = {
    "recipient_name": "Ravi Kumar",
    "phone": "9876543210",
    "town": "Guntur",
    "district": "Guntur",
    "state": "Andhra Pradesh",
    "date": "2024-03-01",
}


@pytest.fixture
def batch(app):
    """A 100-book batch, PSSM00001 to PSSM00100"""
    return BatchLedgerService.create_batch(
        "B-2024-01", 100, serial_start="PSSM00001", serial_end="PSSM00100", printed_date="2024-01-10"
    )


@pytest.fixture
def distribution(batch):
    """Five books from the batch handed to one recipient"""
    serials = [f"PSSM0000{n}" for n in range(1, 6)]
    return DistributionService.distribute(dict(RECIPIENT), serials, batch_id=batch.id)


@pytest.fixture
def recipient(app):
    return dict(RECIPIENT)
