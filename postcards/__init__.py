import os
import logging

import click
from flask import Flask, redirect, render_template, url_for

from postcards.config import config_by_name
from postcards.extensions import db, migrate, csrf, limiter


def create_app(config_name=None):
    """Application factory."""

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from postcards import models  # noqa: F401

    # --- Register blueprints ---
    from postcards.blueprints.donations import donations_bp

    app.register_blueprint(donations_bp)

    # --- Root route ---
    @app.route("/")
    def index():
        """Root URL, straight to the donation form."""
        return redirect(url_for("donations.new"))

    # --- Error handlers ---
    @app.errorhandler(404)
    def not_found(e):
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def server_error(e):
        return render_template("errors/500.html"), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "camera=(), microphone=(), geolocation=(), payment=(self)"
        )
        # Stripe Checkout runs in an iframe served from checkout.stripe.com
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline' https://checkout.stripe.com https://js.stripe.com; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data: https://*.stripe.com; "
            "connect-src 'self' https://checkout.stripe.com https://api.stripe.com; "
            "frame-src https://checkout.stripe.com https://js.stripe.com; "
            "base-uri 'self'; "
            "form-action 'self'; "
            "frame-ancestors 'none';"
        )
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("send-postcard")
    @click.argument("donation_id")
    def send_postcard(donation_id):
        """Send (or re-send) the thank-you postcard for one donation.

        Runs the postcard job inline and prints the outcome.

        Usage:
            flask send-postcard 3f2b8c1e-...
        """
        from postcards.services.postcard_service import (
            DonationNotFoundError,
            send_thankyou_postcard,
        )

        try:
            postcard = send_thankyou_postcard(donation_id)
        except DonationNotFoundError as e:
            click.echo(f"ERROR: {e}")
            raise SystemExit(1)

        if postcard:
            click.echo(f"Postcard sent: {postcard.get('id')}")
        else:
            click.echo("Postcard not sent, check the logs for details.")

    @app.cli.command("verify-postcard-templates")
    def verify_postcard_templates():
        """Verify configured Lob template IDs exist (same mode as the key).

        Uses LOB_API_KEY, TEMPLATE_FRONT_10/20/50, TEMPLATE_FRONT_DEFAULT
        and TEMPLATE_BACK from env.
        """
        from postcards.services.lob_service import LobError, get_template

        api_key = app.config.get("LOB_API_KEY")
        if not api_key:
            click.echo("ERROR: LOB_API_KEY is not set.")
            return
        key_mode = "Live" if api_key.startswith("live_") else "Test"
        click.echo(f"Lob key mode: {key_mode}")
        click.echo("")

        labels = [
            "TEMPLATE_FRONT_10",
            "TEMPLATE_FRONT_20",
            "TEMPLATE_FRONT_50",
            "TEMPLATE_FRONT_DEFAULT",
            "TEMPLATE_BACK",
        ]
        for label in labels:
            template_id = app.config.get(label)
            if not template_id:
                click.echo(f"  {label}: (not set)")
                continue
            try:
                template = get_template(template_id)
                click.echo(f"  {label}: {template_id}")
                click.echo(f"    exists=True, description={template.get('description', '')!r}")
            except LobError as e:
                click.echo(f"  {label}: {template_id}")
                click.echo(f"    ERROR: {e}")
