"""Stripe service: card charges for one-off donations.

Responsible for:
- Creating a Stripe Charge from a client-side card token
- Translating Stripe errors into a ChargeResult the caller branches on

Declines and API failures never raise out of charge_card(); the caller
decides what to show the donor and must only persist on success.
"""

import logging
from collections import namedtuple

import stripe
from flask import current_app

logger = logging.getLogger(__name__)

CHARGE_SUCCEEDED = "succeeded"
CHARGE_DECLINED = "declined"
CHARGE_ERROR = "error"


class ChargeResult(namedtuple("ChargeResult", ["status", "charge", "message"])):
    __slots__ = ()

    @property
    def succeeded(self):
        return self.status == CHARGE_SUCCEEDED


def charge_card(amount_cents, source_token):
    """Charge a card token for amount_cents (minor units).

    Uses the configured currency and description (defaults "usd" and
    "Custom donation").

    Returns a ChargeResult:
      - succeeded: charge is the Stripe Charge object
      - declined:  message is Stripe's user-facing decline message
      - error:     any other Stripe failure (auth, network, invalid request)
    """
    stripe.api_key = current_app.config["STRIPE_SECRET_KEY"]

    try:
        charge = stripe.Charge.create(
            amount=amount_cents,
            currency=current_app.config["DONATION_CURRENCY"],
            source=source_token,
            description=current_app.config["DONATION_DESCRIPTION"],
        )
    except stripe.error.CardError as e:
        message = e.user_message or str(e)
        logger.warning(f"Card declined for {amount_cents} minor units: {message}")
        return ChargeResult(CHARGE_DECLINED, None, message)
    except stripe.error.StripeError as e:
        logger.error(f"Stripe charge failed: {e}", exc_info=True)
        return ChargeResult(CHARGE_ERROR, None, str(e))

    logger.info(f"Charge {charge.id} created for {amount_cents} minor units")
    return ChargeResult(CHARGE_SUCCEEDED, charge, None)
