"""Shared pytest fixtures for datewire tests."""

import pytest

from datewire.container import ContainerBuilder, Registry
from datewire.date_writer import DateWriter, TodayWriter
from datewire.output import ConsoleOutput, Output
from datewire.providers import Lifetime
from tests.helpers import RecordingOutput


@pytest.fixture()
def builder() -> ContainerBuilder:
    """Empty builder with the default (scoped) lifetime."""
    return ContainerBuilder()


@pytest.fixture()
def transient_builder() -> ContainerBuilder:
    """Empty builder registering transient producers by default."""
    return ContainerBuilder(default_lifetime=Lifetime.TRANSIENT)


@pytest.fixture()
def date_registry() -> Registry:
    """Registry wired the way the console program wires it."""
    builder = ContainerBuilder()
    builder.register(Output, ConsoleOutput)
    builder.register(DateWriter, TodayWriter)
    return builder.build()


@pytest.fixture()
def recording_output() -> RecordingOutput:
    return RecordingOutput()
