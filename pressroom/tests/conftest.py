"""Shared fixtures for pressroom tests."""

from datetime import datetime, timedelta, timezone

import pytest

from pressroom.services.highlighter import CodeHighlighter
from pressroom.services.markdown import MarkdownRenderer
from pressroom.services.post_store import PostStore


class FakeClock:
    """Deterministic clock: every call advances by one second."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset module-level caches between tests."""
    yield

    from pressroom.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def mock_settings(tmp_path, monkeypatch):
    """Provide a Settings object pointing at a temporary content directory."""
    from pressroom.config import Settings, get_settings

    test_settings = Settings(
        environment="development",
        content_dir=tmp_path / "posts",
        cors_origins=["http://localhost:3000"],
    )

    get_settings.cache_clear()
    monkeypatch.setattr("pressroom.config.get_settings", lambda: test_settings)
    return test_settings


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def highlighter():
    return CodeHighlighter()


@pytest.fixture
def renderer(highlighter):
    return MarkdownRenderer(highlighter)


@pytest.fixture
def content_dir(tmp_path):
    path = tmp_path / "posts"
    path.mkdir()
    return path


@pytest.fixture
def store(content_dir, renderer, clock):
    return PostStore(content_dir, renderer, clock=clock)


@pytest.fixture
def app(mock_settings, clock):
    """App wired to the temporary content directory with a fake clock."""
    from pressroom.main import create_app

    application = create_app(mock_settings)
    application.state.post_store._clock = clock
    return application
