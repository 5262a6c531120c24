from __future__ import annotations

from typing import Any


def _describe(capability: Any) -> str:
    return getattr(capability, "__qualname__", repr(capability))


class DateWireError(Exception):
    """Represent a base class for all datewire-specific failures.

    Catch this type when you want to handle any container error path without
    matching each concrete exception class individually.
    """


class DateWireInvalidRegistrationError(DateWireError):
    """Signal invalid registration input.

    Raised by ``ContainerBuilder.register``, ``register_instance`` and
    ``register_generator`` when the producer is not callable, is an abstract
    class, or the capability key cannot be used.
    """


class DateWireDependencyInferenceError(DateWireInvalidRegistrationError):
    """Signal that required producer dependencies cannot be inferred.

    Common triggers are missing or unresolvable type annotations on required
    constructor or factory parameters.
    """


class DateWireRegistryFrozenError(DateWireError):
    """Signal a registration attempt after ``ContainerBuilder.build``.

    Registrations are finalized when the registry is built. Register every
    capability first, then build exactly once.
    """


class DateWireCapabilityNotRegisteredError(DateWireError):
    """Signal that a capability has no bound producer.

    Raised by ``LifetimeScope.resolve`` before any producer runs, either for
    the requested capability itself or for one of its dependencies.
    """

    def __init__(self, capability: Any, *, required_by: Any = None) -> None:
        self.capability = capability
        self.required_by = required_by
        msg = f"Capability '{_describe(capability)}' is not registered"
        if required_by is not None:
            msg += f" (required by '{_describe(required_by)}')"
        super().__init__(f"{msg}.")


class DateWireCircularDependencyError(DateWireError):
    """Signal a dependency cycle in the registered producers."""

    def __init__(self, path: list[Any]) -> None:
        self.path = path
        chain = " -> ".join(_describe(capability) for capability in path)
        super().__init__(f"Circular dependency detected: {chain}.")


class DateWireScopeMisuseError(DateWireError):
    """Signal an operation on a scope that can no longer serve it.

    Raised when ``resolve`` or ``release`` is called on a released scope, and
    when a scope is used from a thread other than the one that opened it.
    """
