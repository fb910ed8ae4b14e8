"""Pytest configuration and shared fixtures for all tests."""

import sys
import threading
from pathlib import Path
from typing import Any, Dict, Generator, Iterable
from unittest.mock import MagicMock

import pytest


# Ensure src is in path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


from viewmodel_motion.errors import NotFoundError  # noqa: E402


# ---------------------------------------------------------------------------
# Environment Variables Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Provide a clean environment without viewmodel env vars."""
    env_vars = [
        "VIEWMODEL_DEFAULT_ITEM",
        "VIEWMODEL_FRAME_RATE_HZ",
        "VIEWMODEL_REFERENCE_RATE",
        "VIEWMODEL_MAX_SWAY",
        "VIEWMODEL_LATERAL_BOB_RATIO",
        "VIEWMODEL_BOB_SPEED_SCALING",
        "VIEWMODEL_REFERENCE_SPEED",
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)
    yield


# ---------------------------------------------------------------------------
# Collaborator Fixtures
# ---------------------------------------------------------------------------


class ModelHandle:
    """Stand-in for a host model handle."""

    def __init__(self, identity: str) -> None:
        self.identity = identity

    def __repr__(self) -> str:
        return f"ModelHandle({self.identity!r})"


def make_resolver(known: Iterable[str], blockers: Dict[str, threading.Event] | None = None) -> MagicMock:
    """Create a mock asset resolver.

    ``resolve`` returns a fresh ``ModelHandle`` for known identities and
    raises ``NotFoundError`` otherwise. Identities present in ``blockers``
    wait on their event before resolving.
    """
    known_set = set(known)
    blockers = blockers or {}
    resolver = MagicMock()

    def _resolve(identity: str) -> ModelHandle:
        event = blockers.get(identity)
        if event is not None:
            event.wait(timeout=5.0)
        if identity not in known_set:
            raise NotFoundError(identity)
        return ModelHandle(identity)

    resolver.resolve = MagicMock(side_effect=_resolve)
    resolver.release = MagicMock()
    return resolver


@pytest.fixture
def mock_resolver() -> MagicMock:
    """Create a resolver that knows a handful of items."""
    return make_resolver(["default", "rifle", "pistol", "knife"])


@pytest.fixture
def mock_sink() -> MagicMock:
    """Create a mock render sink."""
    sink = MagicMock()
    sink.attach = MagicMock()
    sink.detach = MagicMock()
    sink.set_transform = MagicMock()
    return sink


@pytest.fixture
def call_log(mock_resolver: MagicMock, mock_sink: MagicMock) -> MagicMock:
    """Parent mock recording sink and resolver calls in order."""
    parent = MagicMock()
    parent.attach_mock(mock_sink.attach, "attach")
    parent.attach_mock(mock_sink.detach, "detach")
    parent.attach_mock(mock_resolver.release, "release")
    return parent


@pytest.fixture
def resolver_factory() -> Any:
    """Expose make_resolver to tests that need custom blocking behaviour."""
    return make_resolver


@pytest.fixture
def handle_identities() -> Any:
    """Map a mock's recorded single-argument calls to handle identities."""

    def _identities(mock: MagicMock) -> list:
        return [c.args[0].identity for c in mock.call_args_list]

    return _identities
