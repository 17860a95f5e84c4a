from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from securescan.api.security import rate_limiter
from securescan.api.server import create_app


FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def app():
    """Application with fresh in-memory history stores."""
    rate_limiter.reset()
    return create_app(persist_history=False)


@pytest.fixture
def client(app):
    """FastAPI test client fixture."""
    return TestClient(app)


@pytest.fixture
def fixed_clock():
    """Clock that always returns the same instant."""
    return lambda: FIXED_NOW


@pytest.fixture
def ticking_clock():
    """Clock that advances one minute per call, starting at FIXED_NOW."""
    state = {"now": FIXED_NOW}

    def tick():
        current = state["now"]
        state["now"] = current + timedelta(minutes=1)
        return current

    return tick


@pytest.fixture
def sample_phishing_url():
    """Known phishing domain from the blocklist."""
    return "http://fake-bank.com/start"


@pytest.fixture
def sample_safe_url():
    return "https://www.example.com"


@pytest.fixture
def sample_scam_sms():
    """Three suspicious keywords, a shortened link and urgency."""
    return "Pilne! Twoje konto zostanie zablokowane, kliknij: http://bit.ly/abc123"


@pytest.fixture
def sample_safe_sms():
    return "Hi, see you at the meeting tomorrow at 3pm."
