"""Shared fixtures: a Flask test client and a mocked upstream."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import requests

from app import app as flask_app
from tests.helpers import make_response


@pytest.fixture
def client():
    flask_app.config["TESTING"] = True
    with flask_app.test_client() as test_client:
        yield test_client


@pytest.fixture
def upstream():
    """Patch every outbound call; call_count doubles as the network call counter."""
    with patch.object(requests.Session, "request") as mock_request:
        mock_request.return_value = make_response(200, {"retCode": 0, "retMsg": "OK", "result": {}})
        yield mock_request


@pytest.fixture
def frozen_clock():
    """Pin the signing clock to 1700000000000 ms."""
    with patch("custom_http.time.time", return_value=1700000000.0):
        yield "1700000000000"
