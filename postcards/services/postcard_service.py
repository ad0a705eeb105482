"""Postcard service: the thank-you postcard background job.

enqueue_thankyou_postcard() is called by the intake route right after a
donation is committed. The job itself (send_thankyou_postcard) loads the
donation, picks a front template from the donated amount, and creates the
postcard through Lob.

Delivery is best-effort: Lob failures are logged with the donation id and
never raised. A missing donation row is the only error that fails the job.

Usage:
    from postcards.services.postcard_service import enqueue_thankyou_postcard

    enqueue_thankyou_postcard(donation.id)
"""

import logging
import threading

from flask import current_app

from postcards.extensions import db
from postcards.models.donation import Donation
from postcards.services import lob_service

logger = logging.getLogger(__name__)

# Whole-unit amount (as a string) -> config key holding the front template id
FRONT_TEMPLATE_KEYS = {
    "10": "TEMPLATE_FRONT_10",
    "20": "TEMPLATE_FRONT_20",
    "50": "TEMPLATE_FRONT_50",
}


class DonationNotFoundError(LookupError):
    """No donation row exists for the id the job was given."""


def select_front_template(amount, config):
    """Return the configured front template id for amount, or None.

    Only exact whole-unit amounts 10, 20 and 50 are mapped.
    """
    key = FRONT_TEMPLATE_KEYS.get(str(amount))
    if key is None:
        return None
    return config.get(key)


def build_postcard_payload(donation, front_template, back_template):
    """Build the Lob postcard-create body for a donation.

    address_country is never part of the recipient address.
    """
    return {
        "description": f"Thank You Postcard - {donation.id}",
        "to": {
            "name": donation.name,
            "address_line1": donation.address_line1,
            "address_city": donation.address_city,
            "address_state": donation.address_state,
            "address_zip": donation.address_zip,
        },
        "front": front_template,
        "back": back_template,
        "data": {
            "name": donation.name,
            "amount": donation.amount,
        },
        "metadata": {
            "donation_id": donation.id,
        },
    }


def send_thankyou_postcard(donation_id):
    """Send the thank-you postcard for one donation.

    Returns the Lob postcard dict, or None if nothing was sent (no
    template for the amount, or Lob failed).
    Raises DonationNotFoundError if the donation doesn't exist.
    """
    donation = db.session.get(Donation, donation_id)
    if donation is None:
        raise DonationNotFoundError(f"Donation {donation_id} not found")

    config = current_app.config
    front_template = select_front_template(donation.amount, config)

    if front_template is None:
        front_template = config.get("TEMPLATE_FRONT_DEFAULT")
        if not front_template:
            logger.warning(
                f"No front template for amount {donation.amount}, "
                f"postcard not sent for donation {donation.id}",
                extra={"donation_id": donation.id, "amount": donation.amount},
            )
            return None
        logger.info(
            f"Using default front template for donation {donation.id} "
            f"(amount {donation.amount})"
        )

    payload = build_postcard_payload(
        donation, front_template, config.get("TEMPLATE_BACK")
    )

    try:
        postcard = lob_service.create_postcard(payload)
    except Exception as e:
        # Best-effort: a failed postcard never fails the job
        logger.error(
            f"Failed to send thank-you postcard for donation {donation.id}: {e}",
            extra={"donation_id": donation.id, "error": str(e)},
        )
        return None

    logger.info(
        f"Thank-you postcard {postcard.get('id')} sent for donation {donation.id}"
    )
    return postcard


def _run_job(app, donation_id):
    """Run the job inside an app context. Job failures are logged here."""
    with app.app_context():
        try:
            send_thankyou_postcard(donation_id)
        except Exception as e:
            logger.error(
                f"Postcard job failed for donation {donation_id}: {e}",
                exc_info=True,
                extra={"donation_id": donation_id, "error": str(e)},
            )


def enqueue_thankyou_postcard(donation_id):
    """Schedule the postcard job for a committed donation (fire-and-forget).

    Runs in a daemon thread so the request doesn't block, and returns the
    started thread. With POSTCARD_DISPATCH_ASYNC off the job runs inline
    instead and None is returned.
    """
    app = current_app._get_current_object()

    if not app.config.get("POSTCARD_DISPATCH_ASYNC", True):
        _run_job(app, donation_id)
        return None

    thread = threading.Thread(target=_run_job, args=(app, donation_id))
    thread.daemon = True
    thread.start()
    logger.info(f"Postcard job enqueued for donation {donation_id}")
    return thread
