"""Tests for the thank-you postcard job and the Lob client.

Covers:
- Front template selection from the donated amount
- Postcard payload shape (no country in the recipient address)
- send_thankyou_postcard: success, unmapped amount, default template,
  Lob failures swallowed, missing donation
- enqueue_thankyou_postcard: inline vs background thread (mocked and real)
- lob_service request building and error mapping
"""

import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from postcards import create_app
from postcards.config import TestConfig, config_by_name
from postcards.extensions import db
from postcards.models.donation import Donation
from postcards.services import lob_service
from postcards.services.lob_service import LobError
from postcards.services.postcard_service import (
    DonationNotFoundError,
    _run_job,
    build_postcard_payload,
    enqueue_thankyou_postcard,
    select_front_template,
    send_thankyou_postcard,
)

TEMPLATES = {
    "TEMPLATE_FRONT_10": "tmpl_front_10",
    "TEMPLATE_FRONT_20": "tmpl_front_20",
    "TEMPLATE_FRONT_50": "tmpl_front_50",
}


@pytest.fixture
def threaded_app(tmp_path, monkeypatch):
    """An app on a file-backed SQLite database with the job run in a thread."""
    config = type("ThreadedTestConfig", (TestConfig,), {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'postcards.db'}",
        "POSTCARD_DISPATCH_ASYNC": True,
    })
    monkeypatch.setitem(config_by_name, "testing-threaded", config)

    app = create_app("testing-threaded")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


class TestSelectFrontTemplate:
    """Tests for the amount -> front template lookup."""

    @pytest.mark.parametrize("amount, expected", [
        (10, "tmpl_front_10"),
        (20, "tmpl_front_20"),
        (50, "tmpl_front_50"),
        ("20", "tmpl_front_20"),
    ])
    def test_mapped_amounts(self, amount, expected):
        assert select_front_template(amount, TEMPLATES) == expected

    @pytest.mark.parametrize("amount", [0, 5, 25, 100, None, "20.00", "ten"])
    def test_unmapped_amounts_resolve_nothing(self, amount):
        assert select_front_template(amount, TEMPLATES) is None

    def test_mapped_amount_without_config_value(self):
        assert select_front_template(10, {}) is None


class TestBuildPostcardPayload:
    """Tests for the Lob postcard body."""

    def test_payload_shape(self, make_donation):
        donation = make_donation(amount=10)

        payload = build_postcard_payload(donation, "tmpl_front_10", "tmpl_back")

        assert payload == {
            "description": f"Thank You Postcard - {donation.id}",
            "to": {
                "name": "Ann",
                "address_line1": "1 Main St",
                "address_city": "Springfield",
                "address_state": "IL",
                "address_zip": "62704",
            },
            "front": "tmpl_front_10",
            "back": "tmpl_back",
            "data": {"name": "Ann", "amount": 10},
            "metadata": {"donation_id": donation.id},
        }

    @pytest.mark.parametrize("country", ["US", "CA", "", None])
    def test_country_never_in_recipient(self, make_donation, country):
        donation = make_donation(address_country=country)

        payload = build_postcard_payload(donation, "tmpl_front_20", "tmpl_back")

        assert "address_country" not in payload["to"]


class TestSendThankyouPostcard:
    """Tests for the postcard job itself."""

    @patch("postcards.services.postcard_service.lob_service.create_postcard")
    def test_sends_postcard_with_amount_template(self, mock_create, make_donation):
        mock_create.return_value = {"id": "psc_123"}
        donation = make_donation(amount=50)

        result = send_thankyou_postcard(donation.id)

        assert result == {"id": "psc_123"}
        payload = mock_create.call_args.args[0]
        assert payload["front"] == "tmpl_front_50"
        assert payload["back"] == "tmpl_back"
        assert payload["data"] == {"name": "Ann", "amount": 50}

    @patch("postcards.services.postcard_service.lob_service.create_postcard")
    def test_unmapped_amount_skips_send(self, mock_create, make_donation, caplog):
        donation = make_donation(amount=25)

        with caplog.at_level(logging.WARNING):
            result = send_thankyou_postcard(donation.id)

        assert result is None
        mock_create.assert_not_called()
        records = [r for r in caplog.records if getattr(r, "donation_id", None) == donation.id]
        assert records and records[0].levelno == logging.WARNING

    @patch("postcards.services.postcard_service.lob_service.create_postcard")
    def test_unmapped_amount_uses_default_template(self, mock_create, make_donation,
                                                   app, monkeypatch):
        monkeypatch.setitem(app.config, "TEMPLATE_FRONT_DEFAULT", "tmpl_front_default")
        mock_create.return_value = {"id": "psc_456"}
        donation = make_donation(amount=100)

        result = send_thankyou_postcard(donation.id)

        assert result == {"id": "psc_456"}
        assert mock_create.call_args.args[0]["front"] == "tmpl_front_default"

    @patch("postcards.services.postcard_service.lob_service.create_postcard")
    def test_mapped_amount_ignores_default_template(self, mock_create, make_donation,
                                                    app, monkeypatch):
        monkeypatch.setitem(app.config, "TEMPLATE_FRONT_DEFAULT", "tmpl_front_default")
        mock_create.return_value = {"id": "psc_789"}
        donation = make_donation(amount=10)

        send_thankyou_postcard(donation.id)

        assert mock_create.call_args.args[0]["front"] == "tmpl_front_10"

    @pytest.mark.parametrize("error", [
        LobError("Lob POST /postcards returned 422: address invalid", status_code=422),
        RuntimeError("unexpected"),
    ])
    @patch("postcards.services.postcard_service.lob_service.create_postcard")
    def test_lob_failure_is_logged_not_raised(self, mock_create, error,
                                              make_donation, caplog):
        mock_create.side_effect = error
        donation = make_donation(amount=20)

        with caplog.at_level(logging.ERROR):
            result = send_thankyou_postcard(donation.id)

        assert result is None
        record = next(r for r in caplog.records if r.levelno == logging.ERROR)
        assert record.donation_id == donation.id
        assert record.error == str(error)

    def test_missing_donation_raises(self):
        with pytest.raises(DonationNotFoundError):
            send_thankyou_postcard("no-such-donation")


class TestEnqueue:
    """Tests for scheduling the postcard job."""

    @patch("postcards.services.postcard_service.send_thankyou_postcard")
    def test_inline_when_async_disabled(self, mock_send):
        enqueue_thankyou_postcard("don_123")

        mock_send.assert_called_once_with("don_123")

    @patch("postcards.services.postcard_service.threading.Thread")
    def test_background_thread_when_async_enabled(self, mock_thread, app, monkeypatch):
        monkeypatch.setitem(app.config, "POSTCARD_DISPATCH_ASYNC", True)

        enqueue_thankyou_postcard("don_123")

        mock_thread.assert_called_once_with(target=_run_job, args=(app, "don_123"))
        thread = mock_thread.return_value
        assert thread.daemon is True
        thread.start.assert_called_once_with()

    @patch("postcards.services.postcard_service.lob_service.create_postcard")
    def test_background_thread_sends_postcard(self, mock_create, threaded_app):
        """The real worker thread loads the committed row and calls Lob."""
        mock_create.return_value = {"id": "psc_threaded"}
        donation = Donation(
            amount=20, stripe_token="tok_valid", name="Ann",
            address_line1="1 Main St", address_city="Springfield",
            address_state="IL", address_zip="62704", address_country="US",
        )
        db.session.add(donation)
        db.session.commit()
        donation_id = donation.id

        thread = enqueue_thankyou_postcard(donation_id)
        thread.join(timeout=10)

        assert not thread.is_alive()
        mock_create.assert_called_once()
        payload = mock_create.call_args.args[0]
        assert payload["front"] == "tmpl_front_20"
        assert payload["metadata"] == {"donation_id": donation_id}

    def test_job_failure_does_not_escape_runner(self, app, caplog):
        with caplog.at_level(logging.ERROR):
            _run_job(app, "no-such-donation")

        assert any("no-such-donation" in r.getMessage() for r in caplog.records)


class TestLobService:
    """Tests for the Lob HTTP client."""

    @patch("postcards.services.lob_service.requests.request")
    def test_create_postcard_request(self, mock_request):
        mock_request.return_value = MagicMock(ok=True, json=lambda: {"id": "psc_1"})
        payload = {"description": "Thank You Postcard - x"}

        result = lob_service.create_postcard(payload)

        assert result == {"id": "psc_1"}
        mock_request.assert_called_once_with(
            "POST",
            "https://api.lob.com/v1/postcards",
            auth=("test_lob_fake", ""),
            timeout=30,
            json=payload,
        )

    @patch("postcards.services.lob_service.requests.request")
    def test_error_response_raises_lob_error(self, mock_request):
        mock_request.return_value = MagicMock(
            ok=False,
            status_code=422,
            json=lambda: {"error": {"message": "front is required", "status_code": 422}},
        )

        with pytest.raises(LobError) as exc_info:
            lob_service.create_postcard({})

        assert exc_info.value.status_code == 422
        assert "front is required" in str(exc_info.value)

    @patch("postcards.services.lob_service.requests.request")
    def test_network_error_raises_lob_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(LobError):
            lob_service.create_postcard({})

    @patch("postcards.services.lob_service.requests.request")
    def test_get_template(self, mock_request):
        mock_request.return_value = MagicMock(ok=True, json=lambda: {"id": "tmpl_1"})

        assert lob_service.get_template("tmpl_1") == {"id": "tmpl_1"}
        assert mock_request.call_args.args == ("GET", "https://api.lob.com/v1/templates/tmpl_1")

    def test_missing_api_key(self, app, monkeypatch):
        monkeypatch.setitem(app.config, "LOB_API_KEY", None)

        with pytest.raises(LobError):
            lob_service.create_postcard({})
