from typing import Any


def _format_type(value: Any) -> str:
    if isinstance(value, type):
        return f"{value.__module__}.{value.__qualname__}"
    return repr(value)


class WirescanError(Exception):
    """Represent a base class for all wirescan-specific failures.

    Catch this type when you want to handle any wirescan error path without
    matching each concrete exception class individually.
    """


class WirescanInvalidArgumentError(WirescanError, ValueError):
    """Signal a missing or malformed required argument.

    Raised by ``scan``, the selector chain and the decoration functions before
    any registry mutation happens, for example when the registry, a service
    type, a decorator or a configuration callback is ``None``.
    """


class WirescanInvalidRegistrationError(WirescanError):
    """Signal an invalid registration payload.

    Raised when a ``ServiceDescriptor`` does not carry exactly one
    implementation source, when an instance registration is not a singleton,
    and when a class declares the same service type twice through
    ``@service_descriptor``.
    """


class WirescanMissingRegistrationError(WirescanError):
    """Signal decoration of a service type that has no registrations.

    Raised by ``decorate`` and its lifetime shorthands. The ``try_decorate``
    family returns ``False`` instead and leaves the registry unchanged.

    Typical fix is registering the service (or scanning the module that
    provides it) before decorating it.
    """

    def __init__(self, service_type: Any) -> None:
        self.service_type = service_type
        super().__init__(
            f"Could not find any registered services for type '{_format_type(service_type)}'.",
        )


class WirescanTypeMismatchError(WirescanError, TypeError):
    """Signal an implementation that does not satisfy a requested service type.

    Raised when committing an explicit ``as_(...)`` mapping or an
    ``@service_descriptor(service_type=...)`` declaration whose implementation
    class is not assignable to the service type. Detection happens while
    registering, before any instance is constructed.
    """

    def __init__(self, implementation_type: Any, service_type: Any) -> None:
        self.implementation_type = implementation_type
        self.service_type = service_type
        super().__init__(
            f"Type '{_format_type(implementation_type)}' is not assignable to "
            f"'{_format_type(service_type)}'.",
        )


class WirescanDuplicateRegistrationError(WirescanError):
    """Signal a registration rejected by ``RegistrationStrategy.THROW``."""

    def __init__(self, service_type: Any) -> None:
        self.service_type = service_type
        super().__init__(
            f"A service of type '{_format_type(service_type)}' has already been registered.",
        )


class WirescanDependencyNotRegisteredError(WirescanError):
    """Signal that the reference provider cannot satisfy a dependency.

    Raised by ``ServiceProvider.get_required_service`` and while constructing
    classes whose required constructor parameters have no registration.

    Typical fixes include registering the dependency or giving the parameter a
    default value.
    """
