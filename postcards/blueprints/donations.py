"""Donations blueprint: /donations/*

Donation form, card charge, and the thank-you page.

Routes:
- GET  /donations/new          donation form (Stripe Checkout button)
- POST /donations              charge card, save donation, enqueue postcard
- GET  /donations/<id>/thanks  thank-you page after a successful charge
"""

import logging

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from postcards.extensions import db, limiter
from postcards.models.donation import Donation
from postcards.services.donation_service import (
    AmountParseError,
    create_donation,
    to_minor_units,
)
from postcards.services.postcard_service import enqueue_thankyou_postcard
from postcards.services.stripe_service import CHARGE_DECLINED, charge_card

logger = logging.getLogger(__name__)

donations_bp = Blueprint("donations", __name__, url_prefix="/donations")


def _render_form(status=200):
    return render_template(
        "donations/new.html",
        stripe_publishable_key=current_app.config["STRIPE_PUBLISHABLE_KEY"],
    ), status


@donations_bp.route("/new")
def new():
    """Render the donation form."""
    return _render_form()


@donations_bp.route("", methods=["POST"])
@limiter.limit("20 per hour")
def create():
    """Charge the submitted card and record the donation.

    1. Convert the decimal amount to minor units
    2. Charge the card token through Stripe
    3. On a declined or failed charge: flash and redirect back, nothing saved
    4. On success: save the donation, commit, enqueue the postcard job
    """
    form = request.form

    try:
        amount_cents = to_minor_units(form.get("amount"))
    except AmountParseError as e:
        logger.warning(f"Rejected donation submission: {e}")
        flash("Please enter a valid donation amount.", "error")
        return _render_form(400)

    result = charge_card(amount_cents, form.get("stripeToken"))

    if not result.succeeded:
        if result.status == CHARGE_DECLINED:
            flash(result.message, "error")
        else:
            flash("Something went wrong processing your card. Please try again.", "error")
        return redirect(url_for("donations.new"))

    try:
        donation = create_donation(form)
    except Exception as e:
        # Card is already charged; the charge id is needed to reconcile
        db.session.rollback()
        logger.error(
            f"Charge {result.charge.id} succeeded but donation was not saved: {e}",
            exc_info=True,
            extra={"charge_id": result.charge.id, "error": str(e)},
        )
        raise

    enqueue_thankyou_postcard(donation.id)

    return redirect(url_for("donations.thanks", donation_id=donation.id))


@donations_bp.route("/<donation_id>/thanks")
def thanks(donation_id):
    """Thank-you page shown after a successful donation."""
    donation = db.session.get(Donation, donation_id)
    if donation is None:
        abort(404)
    return render_template("donations/thanks.html", donation=donation)
