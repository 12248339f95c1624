"""Tests for the exception hierarchy."""

import pytest
from scan_fixtures.greetings import EnglishGreeter, Greeter
from scan_fixtures.naming import Clock

from wirescan import (
    Lifetime,
    RegistrationStrategy,
    ServiceCollection,
    ServiceDescriptor,
    WirescanDependencyNotRegisteredError,
    WirescanDuplicateRegistrationError,
    WirescanError,
    WirescanInvalidArgumentError,
    WirescanInvalidRegistrationError,
    WirescanMissingRegistrationError,
    WirescanTypeMismatchError,
    decorate,
    scan,
)


@pytest.mark.parametrize(
    "error_type",
    [
        WirescanDependencyNotRegisteredError,
        WirescanDuplicateRegistrationError,
        WirescanInvalidArgumentError,
        WirescanInvalidRegistrationError,
        WirescanMissingRegistrationError,
        WirescanTypeMismatchError,
    ],
)
def test_every_error_derives_from_base(error_type: type[Exception]) -> None:
    assert issubclass(error_type, WirescanError)


class TestWirescanMissingRegistrationError:
    def test_message_names_the_service_type(self) -> None:
        services = ServiceCollection()

        with pytest.raises(WirescanMissingRegistrationError) as exc_info:
            decorate(services, Greeter, EnglishGreeter)

        assert exc_info.value.service_type is Greeter
        assert str(exc_info.value) == (
            "Could not find any registered services for type 'scan_fixtures.greetings.Greeter'."
        )


class TestWirescanTypeMismatchError:
    def test_is_a_type_error(self) -> None:
        with pytest.raises(TypeError) as exc_info:
            scan(ServiceCollection(), lambda selector: selector.add_types(Clock).as_(Greeter))

        assert isinstance(exc_info.value, WirescanTypeMismatchError)
        assert str(exc_info.value) == (
            "Type 'scan_fixtures.naming.Clock' is not assignable to "
            "'scan_fixtures.greetings.Greeter'."
        )


class TestWirescanInvalidArgumentError:
    def test_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="must not be None"):
            scan(ServiceCollection(), None)  # type: ignore[arg-type]


class TestWirescanDuplicateRegistrationError:
    def test_message_names_the_service_type(self) -> None:
        services = ServiceCollection().add_concrete(Clock)

        with pytest.raises(WirescanDuplicateRegistrationError, match="already been registered"):
            RegistrationStrategy.THROW.apply(
                services,
                ServiceDescriptor.describe(Clock, Clock, Lifetime.TRANSIENT),
            )
