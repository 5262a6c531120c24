from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Generator
from contextlib import ExitStack
from typing import Any

from datewire.exceptions import (
    DateWireCapabilityNotRegisteredError,
    DateWireCircularDependencyError,
    DateWireInvalidRegistrationError,
    DateWireRegistryFrozenError,
    DateWireScopeMisuseError,
)
from datewire.providers import (
    Capability,
    Lifetime,
    ProviderDependenciesExtractor,
    ProviderSpec,
    ProvidersRegistrations,
    ReadOnlyProvidersRegistrations,
)
from datewire.scope import LifetimeScope, build_instance
from datewire.validators import ProducerRegistrationValidator


logger = logging.getLogger(__name__)


class ContainerBuilder:
    """Collect capability registrations and finalize them into a ``Registry``.

    Capabilities are usually ``typing.Protocol`` classes. Producers are
    concrete classes, factory callables, generator functions, or pre-built
    instances; their dependencies are inferred from parameter annotations.

    Registrations are mutable only until ``build``. Registering a capability
    twice before that replaces the earlier producer.

    Examples:
        .. code-block:: python

            builder = ContainerBuilder()
            builder.register(Output, ConsoleOutput)
            builder.register(DateWriter, TodayWriter)
            registry = builder.build()

    """

    def __init__(self, default_lifetime: Lifetime = Lifetime.SCOPED) -> None:
        """Initialize an empty builder.

        Args:
            default_lifetime: Lifetime used by registrations that omit ``lifetime``.

        """
        self._default_lifetime = default_lifetime
        self._registrations = ProvidersRegistrations()
        self._dependencies_extractor = ProviderDependenciesExtractor()
        self._validator = ProducerRegistrationValidator()
        self._registry: Registry | None = None

    @property
    def is_built(self) -> bool:
        return self._registry is not None

    def register(
        self,
        capability: Any,
        producer: Callable[..., Any],
        *,
        lifetime: Lifetime | None = None,
    ) -> None:
        """Bind a concrete class or factory callable to a capability.

        Args:
            capability: Capability key consumers resolve or depend on.
            producer: Concrete class or factory whose annotated parameters
                declare its dependencies.
            lifetime: Lifestyle policy; defaults to the builder's default.

        Raises:
            DateWireRegistryFrozenError: If the registry was already built.
            DateWireInvalidRegistrationError: If the producer cannot be used.
            DateWireDependencyInferenceError: If a required parameter has no
                usable annotation.

        """
        self._ensure_not_built(capability)
        self._validator.validate_capability(capability)
        self._validator.validate_producer(producer)

        spec = ProviderSpec(
            provides=capability,
            dependencies=self._dependencies_extractor.extract(producer),
            lifetime=lifetime or self._default_lifetime,
        )
        if isinstance(producer, type):
            spec.concrete_type = producer
        else:
            spec.factory = producer
        self._add(spec)

    def register_instance(self, capability: Any, instance: Any) -> None:
        """Bind a pre-built instance to a capability.

        The instance is shared by every scope and is never released by them.

        Args:
            capability: Capability key consumers resolve or depend on.
            instance: Object returned on every resolution.

        """
        self._ensure_not_built(capability)
        self._validator.validate_capability(capability)
        if instance is None:
            msg = f"Instance registered for '{capability!r}' must not be None."
            raise DateWireInvalidRegistrationError(msg)
        self._add(
            ProviderSpec(provides=capability, instance=instance, lifetime=Lifetime.SINGLETON),
        )

    def register_generator(
        self,
        capability: Any,
        generator: Callable[..., Generator[Any, None, None]],
        *,
        lifetime: Lifetime | None = None,
    ) -> None:
        """Bind a generator function to a capability.

        The yielded value is the instance; code after ``yield`` runs when the
        owning scope (or registry, for singletons) is released.

        Args:
            capability: Capability key consumers resolve or depend on.
            generator: Generator function with annotated parameters.
            lifetime: Lifestyle policy; defaults to the builder's default.

        """
        self._ensure_not_built(capability)
        self._validator.validate_capability(capability)
        self._validator.validate_generator(generator)
        self._add(
            ProviderSpec(
                provides=capability,
                generator=generator,
                dependencies=self._dependencies_extractor.extract(generator),
                lifetime=lifetime or self._default_lifetime,
            ),
        )

    def build(self) -> Registry:
        """Finalize registrations into an immutable ``Registry``.

        Raises:
            DateWireRegistryFrozenError: If called a second time.
            DateWireInvalidRegistrationError: If a singleton depends on a
                shorter-lived capability.

        """
        if self._registry is not None:
            msg = "Registry has already been built; build() may only be called once."
            raise DateWireRegistryFrozenError(msg)

        self._validate_singleton_dependencies()
        self._registry = Registry(self._registrations.freeze())
        logger.info("Built registry with %d capabilities", len(self._registrations))
        return self._registry

    def _add(self, spec: ProviderSpec) -> None:
        previous_spec = self._registrations.add(spec)
        if previous_spec is not None:
            logger.debug(
                "Replaced producer %s with %s for %r",
                previous_spec.producer_name,
                spec.producer_name,
                spec.provides,
            )
        else:
            logger.debug(
                "Registered %s for %r (%s)",
                spec.producer_name,
                spec.provides,
                spec.lifetime.value,
            )

    def _ensure_not_built(self, capability: Any) -> None:
        if self._registry is not None:
            msg = f"Cannot register {capability!r}: the registry has already been built."
            raise DateWireRegistryFrozenError(msg)

    def _validate_singleton_dependencies(self) -> None:
        for spec in self._registrations.values():
            if spec.lifetime is not Lifetime.SINGLETON:
                continue
            for dependency in spec.dependencies:
                dependency_spec = self._registrations.find_by_type(dependency.provides)
                if dependency_spec is None or dependency_spec.lifetime is Lifetime.SINGLETON:
                    continue
                msg = (
                    f"Singleton producer '{spec.producer_name}' cannot depend on "
                    f"{dependency_spec.lifetime.value} capability {dependency.provides!r}."
                )
                raise DateWireInvalidRegistrationError(msg)


class Registry:
    """A finalized, read-only set of registrations.

    The registry can be shared across threads: each thread opens its own
    ``LifetimeScope``. Singleton instances are created lazily under a lock
    and released by ``close``.
    """

    def __init__(self, registrations: ReadOnlyProvidersRegistrations) -> None:
        self._registrations = registrations
        self._verified: set[Capability] = set()
        self._singletons: dict[Capability, Any] = {}
        self._singleton_lock = threading.RLock()
        self._exit_stack = ExitStack()
        self._closed = False

    @property
    def registrations(self) -> ReadOnlyProvidersRegistrations:
        return self._registrations

    @property
    def capabilities(self) -> frozenset[Capability]:
        return frozenset(self._registrations)

    def is_registered(self, capability: Any) -> bool:
        try:
            return capability in self._registrations
        except TypeError:
            return False

    def begin_scope(self) -> LifetimeScope:
        """Open a new resolution scope bound to this registry.

        Raises:
            DateWireScopeMisuseError: If the registry was closed.

        """
        if self._closed:
            msg = "Cannot begin a scope on a closed registry."
            raise DateWireScopeMisuseError(msg)
        return LifetimeScope(self)

    def verified_spec(self, capability: Any) -> ProviderSpec:
        """Return the spec for a capability whose dependency graph is complete.

        Raises:
            DateWireCapabilityNotRegisteredError: If any required capability in
                the graph has no producer.
            DateWireCircularDependencyError: If the graph has a cycle.

        """
        try:
            verified = capability in self._verified
        except TypeError as error:
            raise DateWireCapabilityNotRegisteredError(capability) from error
        if not verified:
            self._verify(capability, [])
        return self._registrations.find_by_type(capability)  # type: ignore[return-value]

    def resolve_singleton(self, spec: ProviderSpec) -> Any:
        """Return the registry-wide instance for a singleton spec, creating it once."""
        with self._singleton_lock:
            if self._closed:
                msg = "Cannot resolve singletons from a closed registry."
                raise DateWireScopeMisuseError(msg)
            if spec.provides not in self._singletons:
                self._singletons[spec.provides] = build_instance(
                    spec,
                    registrations=self._registrations,
                    exit_stack=self._exit_stack,
                    resolve_dependency=self._resolve_root,
                )
            return self._singletons[spec.provides]

    def close(self) -> None:
        """Release singleton instances. Calling it again does nothing."""
        with self._singleton_lock:
            if self._closed:
                return
            self._closed = True
            self._singletons.clear()
        logger.debug("Closing registry")
        self._exit_stack.close()

    def _resolve_root(self, spec: ProviderSpec) -> Any:
        if spec.producer is None:
            return spec.instance
        return self.resolve_singleton(spec)

    def _verify(self, capability: Any, path: list[Any]) -> None:
        if capability in path:
            raise DateWireCircularDependencyError([*path[path.index(capability) :], capability])

        spec = self._registrations.find_by_type(capability)
        if spec is None:
            raise DateWireCapabilityNotRegisteredError(
                capability,
                required_by=path[-1] if path else None,
            )

        for dependency in spec.dependencies:
            if dependency.provides in self._verified:
                continue
            if dependency.is_optional and dependency.provides not in self._registrations:
                continue
            self._verify(dependency.provides, [*path, capability])

        self._verified.add(capability)
