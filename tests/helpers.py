"""Helpers for building fake upstream responses."""

from __future__ import annotations

import json

import requests


def make_response(status: int = 200, payload=None, text: str | None = None) -> requests.Response:
    """Build a real requests.Response carrying a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status
    body = text if text is not None else json.dumps(payload if payload is not None else {})
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.headers["Content-Type"] = "application/json"
    return response
