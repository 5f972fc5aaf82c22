from pathlib import Path

import pytest

from fusionimg.application.workflow_engine import WorkflowEngine
from fusionimg.domain.events.emitter import RunEventEmitter
from fusionimg.domain.gateways.gateway_factory import GatewayFactory
from tests.integration.gateways.fake_gateway import FakeGateway
from tests.integration.recording_sink import RecordingSink


@pytest.fixture(scope="session")
def repo_root() -> Path:
    """Resolve the repository root directory.

    Assumes tests live under <repo>/tests/.
    """
    return Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent tests from accidentally using developer machine credentials.

    If a test needs an env var, it should set it explicitly via monkeypatch.
    """
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _register_test_gateways():
    """Register the fake gateway and restore the registry afterward."""
    # Import gateways so built-in registration has happened before the snapshot
    import fusionimg.domain.gateways  # noqa: F401

    original_registry = dict(GatewayFactory._registry)
    GatewayFactory.register("fake", FakeGateway)

    yield

    GatewayFactory._registry.clear()
    GatewayFactory._registry.update(original_registry)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def engine(fake_gateway: FakeGateway, sink: RecordingSink) -> WorkflowEngine:
    """Engine over the fake gateway with a recording sink subscribed to all events."""
    emitter = RunEventEmitter()
    emitter.subscribe(sink)
    return WorkflowEngine(gateway=fake_gateway, event_emitter=emitter)
