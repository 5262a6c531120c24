from __future__ import annotations

import inspect
from collections.abc import Callable, Generator, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from inspect import Parameter
from types import MappingProxyType
from typing import Any, TypeAlias, TypeVar, get_type_hints

from datewire.exceptions import DateWireDependencyInferenceError

T = TypeVar("T")

Capability: TypeAlias = Any
"""A registration key, usually a ``typing.Protocol`` or abstract class."""

ConcreteTypeProvider: TypeAlias = type[T]
"""A concrete type that can be instantiated to produce a capability."""

FactoryProvider: TypeAlias = Callable[..., T]
"""A factory callable that produces a capability."""

GeneratorProvider: TypeAlias = Callable[..., Generator[T, None, None]]
"""A generator function that yields a capability and cleans it up afterwards."""

_MISSING_ANNOTATION: Any = object()


class Lifetime(str, Enum):
    """Define how long a resolved instance is reused."""

    TRANSIENT = "transient"
    """A new instance is created every time the capability is resolved."""

    SCOPED = "scoped"
    """One instance per scope, released when that scope is released."""

    SINGLETON = "singleton"
    """One instance per registry, released by ``Registry.close``."""


@dataclass(slots=True)
class ProviderDependency:
    """Represent a dependency capability bound to a producer parameter."""

    provides: Capability
    parameter: Parameter

    @property
    def is_optional(self) -> bool:
        """Return whether the parameter falls back to its default when unregistered."""
        return self.parameter.default is not Parameter.empty


@dataclass(kw_only=True)
class ProviderSpec:
    """Describe how a single capability is produced and cached.

    Exactly one producer source is set: a pre-built instance, a concrete
    type, a factory, or a generator.
    """

    provides: Capability
    """The capability that this provider supplies."""

    instance: Any | None = None
    """A pre-built instance, if applicable."""
    concrete_type: ConcreteTypeProvider[Any] | None = None
    """A concrete type to instantiate, if applicable."""
    factory: FactoryProvider[Any] | None = None
    """A factory callable, if applicable."""
    generator: GeneratorProvider[Any] | None = None
    """A generator function whose teardown runs on release, if applicable."""

    dependencies: list[ProviderDependency] = field(default_factory=list)
    """Dependencies inferred from the producer's signature."""
    lifetime: Lifetime = Lifetime.SCOPED

    @property
    def producer(self) -> Callable[..., Any] | None:
        """Return the callable that builds the instance, or ``None`` for instances."""
        return self.concrete_type or self.factory or self.generator

    @property
    def producer_name(self) -> str:
        producer = self.producer
        if producer is None:
            return f"instance of {type(self.instance).__qualname__}"
        return getattr(producer, "__qualname__", repr(producer))


class ReadOnlyProvidersRegistrations:
    """Look up provider specs indexed by capability without changing them."""

    def __init__(self, registrations_by_type: Mapping[Capability, ProviderSpec]) -> None:
        self._registrations_by_type: Mapping[Capability, ProviderSpec] = MappingProxyType(
            dict(registrations_by_type),
        )

    def find_by_type(self, capability: Capability) -> ProviderSpec | None:
        """Get a provider spec by the capability it provides, if it exists.

        Args:
            capability: Capability key to look up.

        """
        return self._registrations_by_type.get(capability)

    def values(self) -> list[ProviderSpec]:
        """Get all provider specifications."""
        return list(self._registrations_by_type.values())

    def __contains__(self, capability: object) -> bool:
        return capability in self._registrations_by_type

    def __iter__(self) -> Iterator[Capability]:
        return iter(self._registrations_by_type)

    def __len__(self) -> int:
        return len(self._registrations_by_type)


class ProvidersRegistrations(ReadOnlyProvidersRegistrations):
    """Store provider specs indexed by capability.

    Registration keys are unique: adding a spec for an existing capability
    replaces the previous spec.
    """

    def __init__(self) -> None:
        self._specs_by_type: dict[Capability, ProviderSpec] = {}
        self._registrations_by_type = self._specs_by_type

    def add(self, spec: ProviderSpec) -> ProviderSpec | None:
        """Add a provider spec and return the one it replaced, if any.

        Args:
            spec: Provider specification to register.

        """
        previous_spec = self._specs_by_type.get(spec.provides)
        self._specs_by_type[spec.provides] = spec
        return previous_spec

    def freeze(self) -> ReadOnlyProvidersRegistrations:
        """Return a read-only snapshot that later ``add`` calls do not affect."""
        return ReadOnlyProvidersRegistrations(self._specs_by_type)


@dataclass(slots=True)
class ProviderDependenciesExtractor:
    """Extracts dependencies from user-defined producers."""

    def extract(self, provider: Callable[..., Any]) -> list[ProviderDependency]:
        """Extract dependencies from a concrete type, factory, or generator.

        Args:
            provider: Producer callable to inspect.

        """
        provider_name = getattr(provider, "__qualname__", repr(provider))
        annotations, annotation_error = self._resolved_type_hints(provider)
        dependencies: list[ProviderDependency] = []

        for parameter in inspect.signature(provider).parameters.values():
            if parameter.kind in (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD):
                continue
            provides = self._resolve_parameter_annotation(
                parameter=parameter,
                annotations=annotations,
                annotation_error=annotation_error,
                provider_name=provider_name,
            )
            if provides is _MISSING_ANNOTATION:
                continue
            dependencies.append(ProviderDependency(provides=provides, parameter=parameter))

        return dependencies

    def _resolve_parameter_annotation(
        self,
        *,
        parameter: Parameter,
        annotations: dict[str, Any],
        annotation_error: Exception | None,
        provider_name: str,
    ) -> Any:
        annotation = annotations.get(parameter.name, _MISSING_ANNOTATION)
        if annotation is not _MISSING_ANNOTATION:
            return annotation

        raw_annotation = parameter.annotation
        if raw_annotation is not Parameter.empty and not isinstance(raw_annotation, str):
            return raw_annotation

        if parameter.default is not Parameter.empty:
            return _MISSING_ANNOTATION

        error_message = (
            f"Unable to infer dependency for required parameter '{parameter.name}' "
            f"in provider '{provider_name}'. Add a type annotation."
        )
        if annotation_error is None:
            raise DateWireDependencyInferenceError(error_message)
        msg = f"{error_message} Original annotation error: {annotation_error}"
        raise DateWireDependencyInferenceError(msg) from annotation_error

    def _resolved_type_hints(
        self,
        provider: Callable[..., Any],
    ) -> tuple[dict[str, Any], Exception | None]:
        # Class-level annotations describe attributes, not constructor
        # parameters, so classes are inspected through __init__ only.
        target = provider.__init__ if inspect.isclass(provider) else provider
        try:
            return get_type_hints(target), None
        except (AttributeError, NameError, TypeError) as error:
            return {}, error
