from __future__ import annotations

from typing import Protocol

import pytest
from scan_fixtures import attributed
from scan_fixtures.attributed import (
    Auditable,
    BaseNotifier,
    EmailNotifier,
    Notifier,
    PushNotifier,
    SmsNotifier,
    Undeclared,
)
from scan_fixtures.naming import Clock

from wirescan import (
    Lifetime,
    RegistrationStrategy,
    ServiceCollection,
    ServiceDeclaration,
    WirescanInvalidArgumentError,
    WirescanInvalidRegistrationError,
    WirescanTypeMismatchError,
    declared_services,
    scan,
    service_descriptor,
)


class _Sink(Protocol):
    def write(self, data: str) -> None: ...


def test_service_descriptor_records_declarations_in_source_order() -> None:
    @service_descriptor(Notifier)
    @service_descriptor(Auditable, lifetime=Lifetime.SCOPED)
    class _Both:
        def notify(self, message: str) -> str:
            return message

        def audit(self) -> list[str]:
            return []

    assert declared_services(_Both) == (
        ServiceDeclaration(service_type=Notifier, lifetime=Lifetime.TRANSIENT, strategy=None),
        ServiceDeclaration(service_type=Auditable, lifetime=Lifetime.SCOPED, strategy=None),
    )


def test_declarations_are_not_inherited() -> None:
    class _Child(EmailNotifier):
        pass

    assert declared_services(_Child) == ()
    assert declared_services(Undeclared) == ()


def test_service_descriptor_rejects_non_classes() -> None:
    with pytest.raises(WirescanInvalidArgumentError):
        service_descriptor(Notifier)(lambda: None)  # type: ignore[type-var]


def test_service_descriptor_rejects_invalid_lifetime() -> None:
    with pytest.raises(WirescanInvalidArgumentError):
        service_descriptor(Notifier, lifetime="singleton")  # type: ignore[arg-type]


def test_using_attributes_registers_declared_services(services: ServiceCollection) -> None:
    scan(services, lambda selector: selector.from_modules(attributed).add_classes().using_attributes())

    assert [
        (descriptor.service_type, descriptor.implementation_type, descriptor.lifetime)
        for descriptor in services
    ] == [
        (Notifier, EmailNotifier, Lifetime.SINGLETON),
        (SmsNotifier, SmsNotifier, Lifetime.TRANSIENT),
        (Notifier, SmsNotifier, Lifetime.TRANSIENT),
        (Auditable, SmsNotifier, Lifetime.TRANSIENT),
        (BaseNotifier, SmsNotifier, Lifetime.TRANSIENT),
    ]


def test_declared_strategy_overrides_scan_strategy(services: ServiceCollection) -> None:
    scan(
        services,
        lambda selector: selector.add_types(EmailNotifier, PushNotifier).using_attributes(),
    )

    assert [descriptor.implementation_type for descriptor in services] == [EmailNotifier]


def test_undeclared_classes_are_ignored(services: ServiceCollection) -> None:
    scan(services, lambda selector: selector.add_types(Undeclared).using_attributes())

    assert len(services) == 0


def test_duplicate_declared_service_type_is_rejected(services: ServiceCollection) -> None:
    @service_descriptor(Notifier)
    @service_descriptor(Notifier, lifetime=Lifetime.SINGLETON)
    class DoubleNotifier:
        def notify(self, message: str) -> str:
            return message

    with pytest.raises(WirescanInvalidRegistrationError):
        scan(services, lambda selector: selector.add_types(DoubleNotifier).using_attributes())
    assert len(services) == 0


def test_declared_service_type_must_be_satisfied(services: ServiceCollection) -> None:
    @service_descriptor(_Sink)
    class NotASink:
        pass

    with pytest.raises(WirescanTypeMismatchError):
        scan(services, lambda selector: selector.add_types(NotASink).using_attributes())


def test_using_attributes_keeps_chaining(services: ServiceCollection) -> None:
    scan(
        services,
        lambda selector: selector.add_types(EmailNotifier)
        .using_attributes()
        .add_types(Clock)
        .as_self()
        .with_singleton_lifetime(),
    )

    assert services.service_types() == [Notifier, Clock]


def test_declared_strategy_is_recorded() -> None:
    assert declared_services(PushNotifier)[0].strategy is RegistrationStrategy.SKIP
