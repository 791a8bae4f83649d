import logging
import os
import sys
import pytest

# Ensure savekit/features can be imported
sys.path.append(os.getcwd())

from savekit.core.events import EventBus
from savekit.storage.backends import FileStorage, MemoryStorage
from savekit.store.descriptor import FeatureDescriptor


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    return EventBus()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def file_storage(tmp_path):
    """FileStorage rooted in a per-test directory."""
    return FileStorage(tmp_path / "saves")


@pytest.fixture
def notes_descriptor():
    """Untyped feature with a primary and a secondary collection."""
    return FeatureDescriptor(name="notes", collections=("all", "pinned"))


@pytest.fixture
def recorder(event_bus):
    """Records every event published for the given types."""
    class Recorder:
        def __init__(self):
            self.events = []

        def listen(self, *event_types):
            for event_type in event_types:
                event_bus.subscribe(event_type, self.events.append, weak=False)
            return self

        @property
        def types(self):
            return [e.type for e in self.events]

    return Recorder()


@pytest.fixture
def reset_logging():
    """Remove handlers configure_logging() installs once the test is done."""
    yield
    for name in ("savekit", "features"):
        target = logging.getLogger(name)
        for handler in list(target.handlers):
            target.removeHandler(handler)
            handler.close()
        target.setLevel(logging.NOTSET)
