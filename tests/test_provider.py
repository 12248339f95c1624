from __future__ import annotations

from collections.abc import Sequence
from typing import Generic, TypeVar

import pytest
from scan_fixtures.greetings import EnglishGreeter, FrenchGreeter, Greeter
from scan_fixtures.naming import Clock, IClock
from scan_fixtures.repositories import Repository, User, UserRepository

from wirescan import (
    Lifetime,
    ServiceCollection,
    ServiceDescriptor,
    ServiceProvider,
    WirescanDependencyNotRegisteredError,
    WirescanInvalidArgumentError,
    WirescanInvalidRegistrationError,
)

T = TypeVar("T")


class _Welcome:
    def __init__(self, greeter: Greeter, clock: IClock) -> None:
        self.greeter = greeter
        self.clock = clock


class _Choir:
    def __init__(self, greeters: Sequence[Greeter]) -> None:
        self.greeters = greeters


class _Banner:
    def __init__(self, greeter: Greeter, title: str = "Welcome", clock: IClock | None = None) -> None:
        self.greeter = greeter
        self.title = title
        self.clock = clock


class _Untyped:
    def __init__(self, value) -> None:  # noqa: ANN001
        self.value = value


class _Wrapper(Generic[T]):
    def __init__(self, inner: Repository[T], clock: IClock) -> None:
        self.inner = inner
        self.clock = clock


@pytest.fixture()
def provider(services: ServiceCollection) -> ServiceProvider:
    services.add_concrete(EnglishGreeter, provides=Greeter)
    services.add_concrete(FrenchGreeter, provides=Greeter)
    services.add_concrete(Clock, provides=IClock, lifetime=Lifetime.SINGLETON)
    return services.build_provider()


def test_single_resolution_returns_last_registration(provider: ServiceProvider) -> None:
    assert isinstance(provider.get_required_service(Greeter), FrenchGreeter)


def test_get_services_returns_all_registrations_in_order(provider: ServiceProvider) -> None:
    greeters = provider.get_services(Greeter)

    assert [type(greeter) for greeter in greeters] == [EnglishGreeter, FrenchGreeter]


def test_get_service_returns_none_when_missing(provider: ServiceProvider) -> None:
    assert provider.get_service(User) is None
    with pytest.raises(WirescanDependencyNotRegisteredError):
        provider.get_required_service(User)


def test_constructor_injection(provider: ServiceProvider) -> None:
    welcome = provider.create_instance(_Welcome)

    assert isinstance(welcome.greeter, FrenchGreeter)
    assert welcome.clock is provider.get_required_service(IClock)


def test_collection_parameters_receive_every_registration(provider: ServiceProvider) -> None:
    choir = provider.create_instance(_Choir)

    assert [type(greeter) for greeter in choir.greeters] == [EnglishGreeter, FrenchGreeter]


def test_defaults_and_optional_parameters(services: ServiceCollection) -> None:
    services.add_concrete(EnglishGreeter, provides=Greeter)

    banner = services.build_provider().create_instance(_Banner)

    assert banner.title == "Welcome"
    assert banner.clock is None


def test_explicit_arguments_take_precedence(provider: ServiceProvider) -> None:
    greeter = EnglishGreeter()

    welcome = provider.create_instance(_Welcome, greeter)

    assert welcome.greeter is greeter


def test_explicit_argument_binds_to_unannotated_parameter(provider: ServiceProvider) -> None:
    assert provider.create_instance(_Untyped, 42).value == 42


def test_unbindable_argument_is_rejected(provider: ServiceProvider) -> None:
    with pytest.raises(WirescanInvalidRegistrationError):
        provider.create_instance(_Welcome, 42)


def test_unannotated_parameter_without_argument_fails(provider: ServiceProvider) -> None:
    with pytest.raises(WirescanDependencyNotRegisteredError, match="type annotation"):
        provider.create_instance(_Untyped)


def test_missing_dependency_fails(services: ServiceCollection) -> None:
    with pytest.raises(WirescanDependencyNotRegisteredError, match="is not registered"):
        services.build_provider().create_instance(_Welcome)


def test_create_instance_requires_a_class(provider: ServiceProvider) -> None:
    with pytest.raises(WirescanInvalidArgumentError):
        provider.create_instance(lambda: None)


def test_closed_generic_alias_closes_constructor_annotations(provider: ServiceProvider) -> None:
    repository = UserRepository()

    wrapper = provider.create_instance(_Wrapper[User], repository)

    assert wrapper.inner is repository
    assert isinstance(wrapper, _Wrapper)


class TestLifetimes:
    def test_transient_creates_new_instances(self, services: ServiceCollection) -> None:
        services.add_concrete(Clock)
        provider = services.build_provider()

        assert provider.get_required_service(Clock) is not provider.get_required_service(Clock)

    def test_singleton_is_shared_across_scopes(self, services: ServiceCollection) -> None:
        services.add_concrete(Clock, lifetime=Lifetime.SINGLETON)
        provider = services.build_provider()

        scoped = provider.create_scope()

        assert scoped.get_required_service(Clock) is provider.get_required_service(Clock)
        assert not scoped.is_root

    def test_scoped_is_shared_within_a_scope_only(self, services: ServiceCollection) -> None:
        services.add_concrete(Clock, lifetime=Lifetime.SCOPED)
        provider = services.build_provider()
        first, second = provider.create_scope(), provider.create_scope()

        assert first.get_required_service(Clock) is first.get_required_service(Clock)
        assert first.get_required_service(Clock) is not second.get_required_service(Clock)

    def test_instance_registration_is_returned_as_is(self, services: ServiceCollection) -> None:
        clock = Clock()
        services.add_instance(clock, provides=IClock)

        assert services.build_provider().get_required_service(IClock) is clock

    def test_factory_receives_the_provider(self, services: ServiceCollection) -> None:
        seen: list[object] = []

        def factory(resolver: object) -> Clock:
            seen.append(resolver)
            return Clock()

        services.add_factory(factory, provides=Clock)
        provider = services.build_provider()
        provider.get_required_service(Clock)

        assert seen == [provider]


def test_get_instance_bypasses_caching(provider: ServiceProvider) -> None:
    descriptor = ServiceDescriptor.describe(Clock, Clock, Lifetime.SINGLETON)

    assert provider.get_instance(descriptor) is not provider.get_instance(descriptor)


def test_get_instance_prefers_registered_implementation_type(services: ServiceCollection) -> None:
    services.add_concrete(Clock, lifetime=Lifetime.SINGLETON)
    provider = services.build_provider()
    descriptor = ServiceDescriptor.describe(IClock, Clock, Lifetime.TRANSIENT)

    assert provider.get_instance(descriptor) is provider.get_required_service(Clock)
