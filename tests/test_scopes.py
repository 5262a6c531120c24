"""Tests for scoped resolution, lifetimes and release."""

import threading
from collections.abc import Generator
from concurrent.futures import ThreadPoolExecutor

import pytest

from datewire.container import ContainerBuilder, Registry
from datewire.date_writer import DateWriter, TodayWriter
from datewire.exceptions import (
    DateWireCapabilityNotRegisteredError,
    DateWireScopeMisuseError,
)
from datewire.output import Output
from datewire.providers import Lifetime
from datewire.scope import LifetimeScope, ScopeState
from tests.helpers import RecordingOutput, fixed_today


class Session:
    pass


class ClosingResource:
    def __init__(self) -> None:
        self.closed = 0

    def close(self) -> None:
        self.closed += 1


class TestLifetimes:
    def test_scoped_instance_is_reused_within_scope(self, builder: ContainerBuilder) -> None:
        builder.register(Session, Session)
        registry = builder.build()

        with registry.begin_scope() as scope:
            assert scope.resolve(Session) is scope.resolve(Session)

    def test_independent_scopes_get_independent_instances(
        self,
        builder: ContainerBuilder,
    ) -> None:
        """Fresh-per-scope instances are never shared between scopes."""
        builder.register(Output, RecordingOutput)
        registry = builder.build()

        with registry.begin_scope() as first:
            first_output = first.resolve(Output)
            first_output.write("only in first")
        with registry.begin_scope() as second:
            second_output = second.resolve(Output)

        assert first_output is not second_output
        assert second_output.lines == []

    def test_transient_instance_is_new_on_every_resolve(
        self,
        transient_builder: ContainerBuilder,
    ) -> None:
        transient_builder.register(Session, Session)
        registry = transient_builder.build()

        with registry.begin_scope() as scope:
            assert scope.resolve(Session) is not scope.resolve(Session)

    def test_singleton_is_shared_across_scopes(self, builder: ContainerBuilder) -> None:
        builder.register(Session, Session, lifetime=Lifetime.SINGLETON)
        registry = builder.build()

        with registry.begin_scope() as first:
            first_session = first.resolve(Session)
        with registry.begin_scope() as second:
            second_session = second.resolve(Session)

        assert first_session is second_session

    def test_dependency_shares_scoped_instance_with_direct_resolution(
        self,
        builder: ContainerBuilder,
    ) -> None:
        def make_writer(output: Output) -> DateWriter:
            return TodayWriter(output, fixed_today)

        builder.register(Output, RecordingOutput)
        builder.register(DateWriter, make_writer)
        registry = builder.build()

        with registry.begin_scope() as scope:
            scope.resolve(DateWriter).write_date()
            output = scope.resolve(Output)

        assert output.lines == ["3/7/2026"]


class TestResolve:
    def test_unregistered_capability_fails(self, builder: ContainerBuilder) -> None:
        registry = builder.build()

        with registry.begin_scope() as scope, pytest.raises(
            DateWireCapabilityNotRegisteredError,
        ) as exc_info:
            scope.resolve(DateWriter)

        assert exc_info.value.capability is DateWriter
        assert exc_info.value.required_by is None
        assert "'DateWriter' is not registered" in str(exc_info.value)

    def test_failed_resolve_leaves_scope_usable(self, builder: ContainerBuilder) -> None:
        builder.register(Session, Session)
        registry = builder.build()

        with registry.begin_scope() as scope:
            with pytest.raises(DateWireCapabilityNotRegisteredError):
                scope.resolve(DateWriter)
            assert isinstance(scope.resolve(Session), Session)

    def test_unhashable_capability_is_reported_as_not_registered(
        self,
        builder: ContainerBuilder,
    ) -> None:
        registry = builder.build()

        with registry.begin_scope() as scope, pytest.raises(
            DateWireCapabilityNotRegisteredError,
        ) as exc_info:
            scope.resolve([Output])

        assert exc_info.value.capability == [Output]
        assert not registry.is_registered([Output])


class TestRelease:
    def test_release_moves_scope_to_released(self, date_registry: Registry) -> None:
        scope = date_registry.begin_scope()
        assert scope.state is ScopeState.OPEN

        scope.release()

        assert scope.state is ScopeState.RELEASED

    def test_resolve_after_release_fails(self, date_registry: Registry) -> None:
        scope = date_registry.begin_scope()
        scope.release()

        with pytest.raises(DateWireScopeMisuseError, match="already been released"):
            scope.resolve(Output)

    def test_second_release_fails(self, date_registry: Registry) -> None:
        scope = date_registry.begin_scope()
        scope.release()

        with pytest.raises(DateWireScopeMisuseError):
            scope.release()

    def test_entering_released_scope_fails(self, date_registry: Registry) -> None:
        scope = date_registry.begin_scope()
        scope.release()

        with pytest.raises(DateWireScopeMisuseError), scope:
            pass

    def test_close_method_runs_on_release(self, builder: ContainerBuilder) -> None:
        builder.register(ClosingResource, ClosingResource)
        registry = builder.build()

        with registry.begin_scope() as scope:
            resource = scope.resolve(ClosingResource)
            assert resource.closed == 0

        assert resource.closed == 1

    def test_transient_instances_are_each_closed(
        self,
        transient_builder: ContainerBuilder,
    ) -> None:
        transient_builder.register(ClosingResource, ClosingResource)
        registry = transient_builder.build()

        with registry.begin_scope() as scope:
            first = scope.resolve(ClosingResource)
            second = scope.resolve(ClosingResource)

        assert (first.closed, second.closed) == (1, 1)

    def test_generator_teardown_runs_on_release(self, builder: ContainerBuilder) -> None:
        events: list[str] = []

        def provide_output() -> Generator[Output, None, None]:
            events.append("open")
            try:
                yield RecordingOutput()
            finally:
                events.append("close")

        builder.register_generator(Output, provide_output)
        registry = builder.build()

        with registry.begin_scope() as scope:
            scope.resolve(Output)
            assert events == ["open"]

        assert events == ["open", "close"]

    def test_cleanup_runs_in_reverse_creation_order(self, builder: ContainerBuilder) -> None:
        events: list[str] = []

        def provide_output() -> Generator[Output, None, None]:
            yield RecordingOutput()
            events.append("output")

        def provide_writer(output: Output) -> Generator[DateWriter, None, None]:
            yield TodayWriter(output)
            events.append("writer")

        builder.register_generator(Output, provide_output)
        builder.register_generator(DateWriter, provide_writer)
        registry = builder.build()

        with registry.begin_scope() as scope:
            scope.resolve(DateWriter)

        assert events == ["writer", "output"]

    def test_release_runs_when_body_raises(self, builder: ContainerBuilder) -> None:
        """Cleanup is guaranteed on error paths and the error propagates."""
        builder.register(ClosingResource, ClosingResource)
        registry = builder.build()
        scope = registry.begin_scope()

        with pytest.raises(RuntimeError, match="boom"), scope:
            resource = scope.resolve(ClosingResource)
            msg = "boom"
            raise RuntimeError(msg)

        assert resource.closed == 1
        assert scope.state is ScopeState.RELEASED

    def test_generator_sees_body_exception(self, builder: ContainerBuilder) -> None:
        seen: list[type[BaseException]] = []

        def provide_session() -> Generator[Session, None, None]:
            try:
                yield Session()
            except ValueError as error:
                seen.append(type(error))
                raise

        builder.register_generator(Session, provide_session)
        registry = builder.build()

        with pytest.raises(ValueError, match="bad"), registry.begin_scope() as scope:
            scope.resolve(Session)
            msg = "bad"
            raise ValueError(msg)

        assert seen == [ValueError]

    def test_released_instances_are_not_reachable_through_scope(
        self,
        builder: ContainerBuilder,
    ) -> None:
        builder.register(ClosingResource, ClosingResource)
        registry = builder.build()
        scope = registry.begin_scope()
        resource = scope.resolve(ClosingResource)

        scope.release()

        assert resource.closed == 1
        with pytest.raises(DateWireScopeMisuseError, match="already been released"):
            scope.resolve(ClosingResource)
        with registry.begin_scope() as fresh:
            assert fresh.resolve(ClosingResource) is not resource

    def test_scope_repr_shows_state(self, date_registry: Registry) -> None:
        scope = date_registry.begin_scope()
        assert "state=open" in repr(scope)
        scope.release()
        assert "state=released" in repr(scope)


class TestRegistryClose:
    def test_close_releases_singletons(self, builder: ContainerBuilder) -> None:
        builder.register(ClosingResource, ClosingResource, lifetime=Lifetime.SINGLETON)
        registry = builder.build()
        with registry.begin_scope() as scope:
            resource = scope.resolve(ClosingResource)

        assert resource.closed == 0
        registry.close()
        assert resource.closed == 1

    def test_close_is_idempotent(self, builder: ContainerBuilder) -> None:
        builder.register(ClosingResource, ClosingResource, lifetime=Lifetime.SINGLETON)
        registry = builder.build()
        with registry.begin_scope() as scope:
            resource = scope.resolve(ClosingResource)

        registry.close()
        registry.close()

        assert resource.closed == 1

    def test_begin_scope_after_close_fails(self, date_registry: Registry) -> None:
        date_registry.close()

        with pytest.raises(DateWireScopeMisuseError, match="closed registry"):
            date_registry.begin_scope()

    def test_registered_instance_is_not_closed_by_registry(
        self,
        builder: ContainerBuilder,
    ) -> None:
        resource = ClosingResource()
        builder.register_instance(ClosingResource, resource)
        registry = builder.build()
        with registry.begin_scope() as scope:
            scope.resolve(ClosingResource)

        registry.close()

        assert resource.closed == 0


class TestThreads:
    def test_scope_cannot_be_used_from_another_thread(self, date_registry: Registry) -> None:
        scope = date_registry.begin_scope()
        errors: list[Exception] = []

        def resolve_elsewhere() -> None:
            try:
                scope.resolve(Output)
            except DateWireScopeMisuseError as error:
                errors.append(error)

        thread = threading.Thread(target=resolve_elsewhere)
        thread.start()
        thread.join()
        scope.release()

        assert len(errors) == 1
        assert "thread other than" in str(errors[0])

    def test_concurrent_scopes_receive_independent_instances(
        self,
        builder: ContainerBuilder,
    ) -> None:
        """A shared registry serves concurrent scopes without sharing scoped state."""
        builder.register(Output, RecordingOutput)
        builder.register(Session, Session, lifetime=Lifetime.SINGLETON)
        registry = builder.build()

        def run_unit_of_work(index: int) -> tuple[Output, Session]:
            with registry.begin_scope() as scope:
                output = scope.resolve(Output)
                output.write(str(index))
                return output, scope.resolve(Session)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(run_unit_of_work, range(32)))

        outputs = [output for output, _ in results]
        sessions = {id(session) for _, session in results}
        assert len({id(output) for output in outputs}) == 32
        assert all(output.lines == [str(index)] for index, output in enumerate(outputs))
        assert len(sessions) == 1

    def test_scope_ids_are_unique(self, date_registry: Registry) -> None:
        scopes: list[LifetimeScope] = [date_registry.begin_scope() for _ in range(3)]
        assert len({scope.scope_id for scope in scopes}) == 3
        for scope in scopes:
            scope.release()
