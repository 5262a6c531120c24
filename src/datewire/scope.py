from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from contextlib import ExitStack, contextmanager
from enum import Enum
from inspect import Parameter
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar, cast, overload

from typing_extensions import Self

from datewire.exceptions import DateWireScopeMisuseError
from datewire.providers import (
    Capability,
    Lifetime,
    ProviderSpec,
    ReadOnlyProvidersRegistrations,
)

if TYPE_CHECKING:
    from datewire.container import Registry

T = TypeVar("T")

logger = logging.getLogger(__name__)
_scope_ids = itertools.count(1)


class ScopeState(str, Enum):
    """Lifecycle states of a ``LifetimeScope``."""

    OPEN = "open"
    RELEASED = "released"


def build_instance(
    spec: ProviderSpec,
    *,
    registrations: ReadOnlyProvidersRegistrations,
    exit_stack: ExitStack,
    resolve_dependency: Callable[[ProviderSpec], Any],
) -> Any:
    """Call the spec's producer with its dependencies and register its cleanup.

    Optional parameters whose capability is not registered keep their
    defaults. Generator teardown and ``close()`` are pushed onto
    ``exit_stack`` so they run when the owner releases it.
    """
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for dependency in spec.dependencies:
        dependency_spec = registrations.find_by_type(dependency.provides)
        if dependency_spec is None:
            continue
        value = resolve_dependency(dependency_spec)
        if dependency.parameter.kind is Parameter.POSITIONAL_ONLY:
            args.append(value)
        else:
            kwargs[dependency.parameter.name] = value

    if spec.generator is not None:
        return exit_stack.enter_context(contextmanager(spec.generator)(*args, **kwargs))

    producer = cast("Callable[..., Any]", spec.producer)
    instance = producer(*args, **kwargs)
    close = getattr(instance, "close", None)
    if callable(close):
        exit_stack.callback(close)
    return instance


class LifetimeScope:
    """A bounded-lifetime resolution context over a built ``Registry``.

    Scoped and transient instances created here belong to the scope and are
    released, in reverse creation order, when the scope is released. A scope
    moves ``OPEN -> RELEASED`` exactly once and is confined to the thread
    that opened it.

    Examples:
        .. code-block:: python

            with registry.begin_scope() as scope:
                scope.resolve(DateWriter).write_date()

    """

    def __init__(self, registry: Registry) -> None:
        self.scope_id = next(_scope_ids)
        self._registry = registry
        self._registrations = registry.registrations
        self._instances: dict[Capability, Any] = {}
        self._exit_stack = ExitStack()
        self._state = ScopeState.OPEN
        self._owner_thread_id = threading.get_ident()
        logger.debug("Opened scope %d", self.scope_id)

    @property
    def state(self) -> ScopeState:
        return self._state

    @overload
    def resolve(self, capability: type[T]) -> T: ...

    @overload
    def resolve(self, capability: Any) -> Any: ...

    def resolve(self, capability: Any) -> Any:
        """Resolve the given capability and return its instance.

        The capability's dependency graph is verified before any producer is
        called, so a failed resolve leaves nothing half-built.

        Args:
            capability: Capability key to resolve.

        Raises:
            DateWireCapabilityNotRegisteredError: If the capability or one of
                its required dependencies has no producer.
            DateWireCircularDependencyError: If the dependency graph has a cycle.
            DateWireScopeMisuseError: If the scope was released or is used
                from another thread.

        """
        self._ensure_usable("resolve")
        spec = self._registry.verified_spec(capability)
        return self._resolve_spec(spec)

    def release(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        """Release every instance created within the scope.

        Cleanup callbacks receive the given exception context, the same way
        ``__exit__`` forwards it.

        Raises:
            DateWireScopeMisuseError: If the scope was already released.

        """
        self._ensure_usable("release")
        self._state = ScopeState.RELEASED
        self._instances.clear()
        logger.debug("Releasing scope %d", self.scope_id)
        self._exit_stack.__exit__(exc_type, exc_value, traceback)

    def __enter__(self) -> Self:
        self._ensure_usable("enter")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.release(exc_type, exc_value, traceback)

    def _resolve_spec(self, spec: ProviderSpec) -> Any:
        if spec.producer is None:
            return spec.instance
        if spec.lifetime is Lifetime.SINGLETON:
            return self._registry.resolve_singleton(spec)
        if spec.lifetime is Lifetime.SCOPED and spec.provides in self._instances:
            return self._instances[spec.provides]

        instance = build_instance(
            spec,
            registrations=self._registrations,
            exit_stack=self._exit_stack,
            resolve_dependency=self._resolve_spec,
        )
        if spec.lifetime is Lifetime.SCOPED:
            self._instances[spec.provides] = instance
        return instance

    def _ensure_usable(self, operation: str) -> None:
        if self._state is ScopeState.RELEASED:
            msg = f"Cannot {operation} scope {self.scope_id}: it has already been released."
            raise DateWireScopeMisuseError(msg)
        if threading.get_ident() != self._owner_thread_id:
            msg = (
                f"Cannot {operation} scope {self.scope_id} from a thread other than "
                "the one that opened it."
            )
            raise DateWireScopeMisuseError(msg)

    def __repr__(self) -> str:
        return f"LifetimeScope(id={self.scope_id}, state={self._state.value})"
