from datewire.container import ContainerBuilder, Registry
from datewire.date_writer import DateWriter, IsoDateWriter, TodayWriter
from datewire.exceptions import (
    DateWireCapabilityNotRegisteredError,
    DateWireCircularDependencyError,
    DateWireDependencyInferenceError,
    DateWireError,
    DateWireInvalidRegistrationError,
    DateWireRegistryFrozenError,
    DateWireScopeMisuseError,
)
from datewire.output import ConsoleOutput, LoggingOutput, Output
from datewire.providers import Lifetime
from datewire.scope import LifetimeScope, ScopeState
from datewire.settings import DateWireSettings

__all__ = [
    "ConsoleOutput",
    "ContainerBuilder",
    "DateWireCapabilityNotRegisteredError",
    "DateWireCircularDependencyError",
    "DateWireDependencyInferenceError",
    "DateWireError",
    "DateWireInvalidRegistrationError",
    "DateWireRegistryFrozenError",
    "DateWireScopeMisuseError",
    "DateWireSettings",
    "DateWriter",
    "IsoDateWriter",
    "Lifetime",
    "LifetimeScope",
    "LoggingOutput",
    "Output",
    "Registry",
    "ScopeState",
    "TodayWriter",
]
