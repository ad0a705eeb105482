"""Shared test fixtures for the thank-you postcards test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off,
  postcard job inline)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- reset_rate_limits: empty rate limit counters per test
- donation_form: a valid donation form submission
- make_donation: factory for committed Donation rows
"""

import pytest

from postcards import create_app
from postcards.extensions import db as _db, limiter
from postcards.models.donation import Donation


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture(autouse=True)
def reset_rate_limits(app):
    """Start every test with empty rate limit counters."""
    limiter.reset()
    yield


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def donation_form():
    """A complete donation form as posted by the Stripe Checkout button."""
    return {
        "amount": "20.00",
        "stripeToken": "tok_valid",
        "shippingName": "Ann",
        "shippingAddressLine1": "1 Main St",
        "shippingAddressCity": "Springfield",
        "shippingAddressState": "IL",
        "shippingAddressCountry": "US",
        "shippingAddressZip": "62704",
    }


@pytest.fixture
def make_donation(db_session):
    """Return a factory that commits a Donation and returns it."""

    def _make(**overrides):
        fields = {
            "amount": 20,
            "stripe_token": "tok_valid",
            "name": "Ann",
            "address_line1": "1 Main St",
            "address_city": "Springfield",
            "address_state": "IL",
            "address_zip": "62704",
            "address_country": "US",
        }
        fields.update(overrides)
        donation = Donation(**fields)
        db_session.add(donation)
        db_session.commit()
        return donation

    return _make
