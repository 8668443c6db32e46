"""
Shared test fixtures for pytest
"""

import pytest

from shuffleboard.core.instance import ShuffleboardInstance
from shuffleboard.foundation.namespace import EntryNamespace
from shuffleboard.services import DiagnosticReporter, EventBus, setup_logging
from shuffleboard.shuffleboard import Shuffleboard


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for all tests"""
    setup_logging({"file_logging": False})


@pytest.fixture
def namespace():
    """Fresh in-process namespace"""
    return EntryNamespace()


@pytest.fixture
def event_bus():
    """EventBus dispatching inline (not started)"""
    bus = EventBus()
    yield bus
    bus.stop()
    bus.clear_all()


@pytest.fixture
def reporter(event_bus):
    """DiagnosticReporter publishing to the test bus"""
    return DiagnosticReporter(event_bus)


@pytest.fixture
def root(namespace, reporter, event_bus):
    """Dashboard tree root over the test namespace"""
    return ShuffleboardInstance(namespace, reporter, event_bus)


@pytest.fixture
def dashboard(namespace, reporter, event_bus):
    """Full Shuffleboard facade over the test namespace"""
    return Shuffleboard(namespace, reporter, event_bus)


@pytest.fixture
def writes(namespace):
    """Every namespace change as (key, value, kind), in order"""
    changes = []
    namespace.add_listener(lambda key, value, kind: changes.append((key, value, kind)))
    return changes
