from __future__ import annotations

import pytest
from scan_fixtures.greetings import EnglishGreeter, FrenchGreeter, Greeter
from scan_fixtures.naming import Clock

from wirescan import (
    Lifetime,
    RegistrationStrategy,
    ServiceCollection,
    ServiceDescriptor,
    WirescanDuplicateRegistrationError,
)


def _greeter(implementation_type: type = EnglishGreeter) -> ServiceDescriptor:
    return ServiceDescriptor.describe(Greeter, implementation_type, Lifetime.TRANSIENT)


def test_append_always_adds(services: ServiceCollection) -> None:
    first, second = _greeter(), _greeter()

    assert RegistrationStrategy.APPEND.apply(services, first) is True
    assert RegistrationStrategy.APPEND.apply(services, second) is True
    assert list(services) == [first, second]


def test_skip_leaves_registry_unchanged_when_service_type_exists(
    services: ServiceCollection,
) -> None:
    existing = _greeter()
    services.append(existing)

    assert RegistrationStrategy.SKIP.apply(services, _greeter(FrenchGreeter)) is False
    assert list(services) == [existing]


def test_skip_adds_unregistered_service_type(services: ServiceCollection) -> None:
    descriptor = _greeter()

    assert RegistrationStrategy.SKIP.apply(services, descriptor) is True
    assert list(services) == [descriptor]


def test_skip_if_same_implementation(services: ServiceCollection) -> None:
    services.append(_greeter())

    assert RegistrationStrategy.SKIP_IF_SAME_IMPLEMENTATION.apply(services, _greeter()) is False
    assert RegistrationStrategy.SKIP_IF_SAME_IMPLEMENTATION.apply(
        services,
        _greeter(FrenchGreeter),
    )
    assert [descriptor.implementation_type for descriptor in services] == [
        EnglishGreeter,
        FrenchGreeter,
    ]


def test_replace_removes_every_prior_registration_and_appends(
    services: ServiceCollection,
) -> None:
    services.append(_greeter())
    clock = ServiceDescriptor.describe(Clock, Clock, Lifetime.TRANSIENT)
    services.append(clock)
    services.append(_greeter(FrenchGreeter))
    replacement = _greeter()

    assert RegistrationStrategy.REPLACE.apply(services, replacement) is True
    assert list(services) == [clock, replacement]


def test_throw_raises_on_existing_service_type(services: ServiceCollection) -> None:
    services.append(_greeter())

    with pytest.raises(WirescanDuplicateRegistrationError) as exc_info:
        RegistrationStrategy.THROW.apply(services, _greeter(FrenchGreeter))

    assert exc_info.value.service_type is Greeter
    assert len(services) == 1


def test_throw_adds_unregistered_service_type(services: ServiceCollection) -> None:
    assert RegistrationStrategy.THROW.apply(services, _greeter()) is True
