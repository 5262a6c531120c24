from __future__ import annotations

import inspect
from typing import Any

from typing_extensions import is_protocol

from datewire.exceptions import DateWireInvalidRegistrationError


class ProducerRegistrationValidator:
    """Validates producers before creating provider specs."""

    def validate_capability(self, capability: Any) -> None:
        """Validate that a capability can be used as a registration key."""
        if capability is None:
            msg = "Capability must not be None."
            raise DateWireInvalidRegistrationError(msg)
        try:
            hash(capability)
        except TypeError as error:
            msg = f"Capability {capability!r} must be hashable."
            raise DateWireInvalidRegistrationError(msg) from error

    def validate_producer(self, producer: object) -> None:
        """Validate that a producer is a callable or an instantiable class."""
        if not callable(producer):
            msg = f"Producer must be a class or a callable, got {producer!r}."
            raise DateWireInvalidRegistrationError(msg)

        if not inspect.isclass(producer):
            return

        if is_protocol(producer):
            msg = f"Concrete producer '{producer.__qualname__}' cannot be a protocol."
            raise DateWireInvalidRegistrationError(msg)

        if inspect.isabstract(producer):
            msg = f"Concrete producer '{producer.__qualname__}' cannot be an abstract class."
            raise DateWireInvalidRegistrationError(msg)

    def validate_generator(self, generator: object) -> None:
        """Validate that a generator producer is a generator function."""
        if not inspect.isgeneratorfunction(generator):
            msg = f"Generator producer must be a generator function, got {generator!r}."
            raise DateWireInvalidRegistrationError(msg)
