"""Donation service: amount parsing and donation persistence.

Keeps the blueprint thin: the route charges, then calls create_donation()
and enqueues the postcard job itself.
"""

import logging
from decimal import Decimal, DecimalException, ROUND_DOWN

from postcards.extensions import db
from postcards.models.donation import Donation

logger = logging.getLogger(__name__)

# Form field -> Donation column
SHIPPING_FIELDS = {
    "shippingName": "name",
    "shippingAddressLine1": "address_line1",
    "shippingAddressCity": "address_city",
    "shippingAddressState": "address_state",
    "shippingAddressZip": "address_zip",
    "shippingAddressCountry": "address_country",
}


class AmountParseError(ValueError):
    """The submitted amount is not a usable donation amount."""


# Stripe rejects charges above 99,999,999 minor units
MAX_AMOUNT = Decimal("999999.99")


def parse_amount(raw):
    """Parse a decimal string like "10.00" into a Decimal.

    Raises AmountParseError for empty, non-numeric, NaN or infinite input,
    and for amounts that are not positive or exceed MAX_AMOUNT.
    """
    try:
        value = Decimal((raw or "").strip())
    except DecimalException:
        raise AmountParseError(f"Invalid donation amount: {raw!r}")
    if not value.is_finite():
        raise AmountParseError(f"Invalid donation amount: {raw!r}")
    if value <= 0 or value > MAX_AMOUNT:
        raise AmountParseError(f"Donation amount out of range: {raw!r}")
    return value


def to_minor_units(raw):
    """Return the amount in minor units (cents), truncated toward zero.

    "20.00" -> 2000, "19.999" -> 1999.
    """
    return int((parse_amount(raw) * 100).to_integral_value(rounding=ROUND_DOWN))


def to_whole_units(raw):
    """Return the amount in whole currency units, truncated. "20.00" -> 20."""
    return int(parse_amount(raw).to_integral_value(rounding=ROUND_DOWN))


def create_donation(form):
    """Persist a Donation from the submitted form fields and commit.

    Shipping fields are stored verbatim. Returns the new Donation.
    """
    donation = Donation(
        amount=to_whole_units(form.get("amount")),
        stripe_token=form.get("stripeToken"),
    )
    for field, column in SHIPPING_FIELDS.items():
        setattr(donation, column, form.get(field))

    db.session.add(donation)
    db.session.commit()

    logger.info(f"Donation {donation.id} created ({donation.amount})")
    return donation
