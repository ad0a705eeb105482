"""Lob service: thin HTTP client for the Lob print & mail API.

Lob authenticates with HTTP basic auth: the API key is the username and
the password is empty. Only the two endpoints the app needs are wrapped.
"""

import logging

import requests
from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class LobError(Exception):
    """Lob returned a non-2xx response or could not be reached."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def _get_lob_config():
    """Return (base_url, api_key) from app config."""
    base_url = (current_app.config.get("LOB_API_BASE_URL") or "").rstrip("/")
    api_key = current_app.config.get("LOB_API_KEY")
    if not api_key:
        raise LobError("LOB_API_KEY is not configured")
    return base_url, api_key


def _error_message(resp):
    """Pull Lob's error message out of a failed response, if it sent one."""
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return resp.text or resp.reason


def _request(method, path, **kwargs):
    base_url, api_key = _get_lob_config()
    url = f"{base_url}/{path.lstrip('/')}"

    try:
        resp = requests.request(
            method, url, auth=(api_key, ""), timeout=DEFAULT_TIMEOUT, **kwargs
        )
    except requests.exceptions.RequestException as e:
        raise LobError(f"Lob request failed: {e}") from e

    if not resp.ok:
        raise LobError(
            f"Lob {method} /{path} returned {resp.status_code}: {_error_message(resp)}",
            status_code=resp.status_code,
        )
    return resp.json()


def create_postcard(payload):
    """Create (and queue for printing) a postcard. Returns Lob's postcard dict.

    Raises LobError on any failure.
    """
    postcard = _request("POST", "postcards", json=payload)
    logger.info(f"Lob postcard created: {postcard.get('id')}")
    return postcard


def get_template(template_id):
    """Fetch a template by id. Raises LobError (404) if it doesn't exist."""
    return _request("GET", f"templates/{template_id}")
