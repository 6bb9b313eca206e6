import os

import pytest

# Keep tests off any real engine binary and external text service.
os.environ["ENGINE_SOURCES"] = "/nonexistent/chess-engine"
os.environ["COACH_API_KEY"] = ""

from chessreview.main import app  # noqa: E402
from chessreview.services.review_state import get_review_state  # noqa: E402


@pytest.fixture(autouse=True)
def reset_state():
    get_review_state().clear()
    yield
    app.dependency_overrides.clear()
    get_review_state().clear()
