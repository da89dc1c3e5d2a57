"""
Test configuration and fixtures.
"""

import random
from pathlib import Path

import pytest
import yaml

from relaybox.catalog.templates import FileTemplateCatalog, TemplateCatalog
from relaybox.catalog.variables import VariableCatalog
from relaybox.core.engine import ScriptExecutionEngine
from relaybox.core.events import CollectingEventSink
from relaybox.core.monitor import RecordingProgressMonitor
from relaybox.messaging.registry import SessionRegistry
from relaybox.messaging.transports.memory import InMemoryBroker, InMemorySession
from relaybox.models.template import MessageTemplate
from relaybox.models.variable import Variable


class DictTemplateCatalog(TemplateCatalog):
    """Template catalog handing out the very instances it was given."""

    def __init__(self, templates: dict[str, MessageTemplate]):
        self.templates = templates

    def get(self, path):
        return self.templates.get(path)

    def get_folder(self, name):
        prefix = name.strip("/") + "/"
        entries = sorted(
            (path.lstrip("/"), template)
            for path, template in self.templates.items()
            if path.lstrip("/").startswith(prefix)
        )
        return entries or None


class CancelAfterMonitor(RecordingProgressMonitor):
    """Requests cancellation once a given amount of work is done."""

    def __init__(self, token=None, after: int = 1):
        super().__init__(token)
        self.after = after

    def worked(self, units):
        super().worked(units)
        if self.work_done >= self.after:
            self.cancel()


def write_yaml(path: Path, data) -> Path:
    """Write data as YAML, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    return path


@pytest.fixture
def templates_dir(tmp_path):
    """Directory of YAML templates used by the engine tests."""
    root = tmp_path / "templates"
    write_yaml(root / "T1.yaml", {"payload_text": "Hello"})
    write_yaml(root / "order.yaml", {"payload_text": "order ${orderId}"})
    write_yaml(root / "batch.yaml", {"payload_text": "${batch}"})
    write_yaml(root / "row.yaml", {"payload_text": "code=${row.code} qty=${row.qty}"})
    write_yaml(root / "orders" / "a.yaml", {"payload_text": "A"})
    write_yaml(root / "orders" / "sub" / "b.yaml", {"payload_text": "B"})
    (root / "empty").mkdir()
    return root


@pytest.fixture
def templates(templates_dir):
    """File template catalog over templates_dir."""
    return FileTemplateCatalog(templates_dir)


@pytest.fixture
def broker():
    """Broker collecting the messages of in-memory sessions."""
    return InMemoryBroker()


@pytest.fixture
def sessions(broker):
    """Registry with one in-memory session S1."""
    registry = SessionRegistry()
    registry.register(InMemorySession("S1", queues=["Q1", "Q2"], topics=["T1"], broker=broker))
    return registry


@pytest.fixture
def variables():
    """Variable catalog with a few user variables."""
    return VariableCatalog([
        Variable(name="orderId", kind="SEQUENCE", sequence_start=100),
        Variable(name="batch", kind="STRING", string_length=8),
        Variable(name="country", kind="LIST", list_values=["FR", "DE"]),
    ])


@pytest.fixture
def sink():
    """Sink keeping every event."""
    return CollectingEventSink()


@pytest.fixture
def make_engine(templates, sessions, variables, sink):
    """Factory of engines over the fixtures, with a seeded random source."""

    def _make(**overrides):
        options = {
            "templates": templates,
            "sessions": sessions,
            "variables": variables,
            "event_sink": sink,
            "rng_factory": lambda: random.Random(42),
        }
        options.update(overrides)
        return ScriptExecutionEngine(**options)

    return _make
