from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from massage_pos.main import app
from massage_pos.state import get_session
from tests.utils import AROMA, FOOT, OIL, THAI, FakeClock, make_session, therapist_row


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def published() -> list:
    return []


@pytest.fixture
def session(clock, published):
    """Lisa (Thai), Sarah (Thai, Foot), Emma (Oil, Aroma) clocked in; Anna off duty"""
    return make_session(
        [
            therapist_row("Lisa", [THAI]),
            therapist_row("Sarah", [THAI, FOOT]),
            therapist_row("Emma", [OIL, AROMA]),
            therapist_row("Anna", [THAI, FOOT], clocked_in=False),
        ],
        clock=clock,
        publisher=published.append,
    )


@pytest.fixture
def client(session):
    # No context manager: the lifespan (and its worker task) stays off in tests
    app.dependency_overrides[get_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()
