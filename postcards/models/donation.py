"""Donation model.

One row per successfully charged donation. Rows are written once by the
intake handler and never updated or deleted by the app. The amount is
stored in whole currency units; the minor-unit value sent to Stripe is
computed at request time and not persisted.
"""

import uuid

from postcards.extensions import db


class Donation(db.Model):
    __tablename__ = "donations"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    amount = db.Column(db.Integer, nullable=True)  # whole units, e.g. 20
    stripe_token = db.Column(db.String(255), nullable=True)  # e.g. "tok_..."

    # --- Shipping / recipient ---
    name = db.Column(db.String(255), nullable=True)
    address_line1 = db.Column(db.String(255), nullable=True)
    address_city = db.Column(db.String(255), nullable=True)
    address_state = db.Column(db.String(255), nullable=True)
    address_zip = db.Column(db.String(255), nullable=True)
    address_country = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self):
        return f"<Donation {self.id} ({self.amount})>"
