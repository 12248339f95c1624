"""Decoration of already-registered services.

Decorating replaces every registration of a service type, in place, with a
factory registration that first produces the original instance and then wraps
it. Positions in the registry and the number of registrations are preserved,
and decorating the same service type again wraps the previous result, so
decorators compose in application order.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from inspect import Parameter
from typing import TYPE_CHECKING, Any, TypeAlias, get_args, get_origin

from wirescan._internal.open_generics import (
    canonicalize_open_key,
    close_generic,
    generic_parameters,
    is_closed_generic,
)
from wirescan._internal.type_checks import describe_type, is_runtime_class
from wirescan.exceptions import WirescanInvalidArgumentError, WirescanMissingRegistrationError
from wirescan.registrations import Lifetime, ServiceCollection, ServiceDescriptor

if TYPE_CHECKING:
    from wirescan.provider import ResolverProtocol

logger = logging.getLogger(__name__)

Decorator: TypeAlias = Any
"""A class constructed around the inner instance, or a callable ``fn(inner)`` /
``fn(inner, resolver)`` returning the decorated instance."""

_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


def decorate(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
    *,
    lifetime: Lifetime | None = None,
) -> ServiceCollection:
    """Decorate every registration of ``service_type`` with ``decorator``.

    When ``service_type`` is an open generic pattern (``Repository`` or
    ``Repository[T]``), every closed instantiation currently registered
    (``Repository[User]``, ``Repository[Order]``, ...) is decorated on its own;
    an open generic decorator class is closed over the same type arguments.

    Args:
        services: Registry to mutate.
        service_type: Service type, or open generic pattern, to decorate.
        decorator: Decorator class, or callable receiving the inner instance
            (and optionally the resolver).
        lifetime: Lifetime of the decorated registrations. ``None`` keeps the
            lifetime of each decorated registration.

    Returns:
        The same ``services`` collection, for chaining.

    Raises:
        WirescanMissingRegistrationError: If nothing is registered for
            ``service_type``.
        WirescanInvalidArgumentError: If a required argument is missing.

    Examples:
        .. code-block:: python

            decorate(services, Greeter, LoudGreeter)
            decorate(services, Greeter, lambda inner: TimestampGreeter(inner))

    """
    if not try_decorate(services, service_type, decorator, lifetime=lifetime):
        raise WirescanMissingRegistrationError(service_type)
    return services


def try_decorate(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
    *,
    lifetime: Lifetime | None = None,
) -> bool:
    """Decorate like ``decorate`` but return ``False`` when nothing is registered.

    The registry is left unchanged when ``False`` is returned.
    """
    _validate_arguments(services, service_type, decorator, lifetime)

    open_pattern = canonicalize_open_key(service_type)
    if open_pattern is not None:
        return _try_decorate_open_generic(services, open_pattern, decorator, lifetime)
    return _try_decorate_descriptors(services, service_type, decorator, lifetime)


def decorate_transient(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
) -> ServiceCollection:
    return decorate(services, service_type, decorator, lifetime=Lifetime.TRANSIENT)


def decorate_scoped(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
) -> ServiceCollection:
    return decorate(services, service_type, decorator, lifetime=Lifetime.SCOPED)


def decorate_singleton(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
) -> ServiceCollection:
    return decorate(services, service_type, decorator, lifetime=Lifetime.SINGLETON)


def try_decorate_transient(services: ServiceCollection, service_type: Any, decorator: Decorator) -> bool:
    return try_decorate(services, service_type, decorator, lifetime=Lifetime.TRANSIENT)


def try_decorate_scoped(services: ServiceCollection, service_type: Any, decorator: Decorator) -> bool:
    return try_decorate(services, service_type, decorator, lifetime=Lifetime.SCOPED)


def try_decorate_singleton(services: ServiceCollection, service_type: Any, decorator: Decorator) -> bool:
    return try_decorate(services, service_type, decorator, lifetime=Lifetime.SINGLETON)


def _validate_arguments(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
    lifetime: Lifetime | None,
) -> None:
    if services is None:
        msg = "decorate() parameter 'services' must not be None."
        raise WirescanInvalidArgumentError(msg)
    if service_type is None:
        msg = "decorate() parameter 'service_type' must not be None."
        raise WirescanInvalidArgumentError(msg)
    if decorator is None or not callable(decorator):
        msg = "decorate() parameter 'decorator' must be a class or a callable."
        raise WirescanInvalidArgumentError(msg)
    if lifetime is not None and not isinstance(lifetime, Lifetime):
        msg = f"decorate() parameter 'lifetime' must be a Lifetime or None, got {lifetime!r}."
        raise WirescanInvalidArgumentError(msg)


def _try_decorate_open_generic(
    services: ServiceCollection,
    open_pattern: Any,
    decorator: Decorator,
    lifetime: Lifetime | None,
) -> bool:
    pattern_origin = get_origin(open_pattern)
    closed_service_types: list[Any] = []
    for descriptor in services:
        service_type = descriptor.service_type
        if (
            get_origin(service_type) is pattern_origin
            and is_closed_generic(service_type)
            and service_type not in closed_service_types
        ):
            closed_service_types.append(service_type)

    if not closed_service_types:
        return False

    for closed_service_type in closed_service_types:
        _try_decorate_descriptors(
            services,
            closed_service_type,
            _close_decorator(decorator, get_args(closed_service_type)),
            lifetime,
        )
    return True


def _try_decorate_descriptors(
    services: ServiceCollection,
    service_type: Any,
    decorator: Decorator,
    lifetime: Lifetime | None,
) -> bool:
    descriptors = services.find(service_type)
    if not descriptors:
        return False

    for descriptor in descriptors:
        index = services.index_of(descriptor)
        # Insert before removing so positions of other registrations never shift.
        services.insert(index, _decorate_descriptor(descriptor, decorator, lifetime))
        del services[index + 1]
        logger.debug(
            "Decorated %s at index %d with %s",
            describe_type(service_type),
            index,
            describe_type(decorator),
        )
    return True


def _decorate_descriptor(
    descriptor: ServiceDescriptor,
    decorator: Decorator,
    lifetime: Lifetime | None,
) -> ServiceDescriptor:
    if _is_decorator_class(decorator):

        def factory(resolver: ResolverProtocol) -> Any:
            return resolver.create_instance(decorator, resolver.get_instance(descriptor))

    elif _accepts_resolver(decorator):

        def factory(resolver: ResolverProtocol) -> Any:
            return decorator(resolver.get_instance(descriptor), resolver)

    else:

        def factory(resolver: ResolverProtocol) -> Any:
            return decorator(resolver.get_instance(descriptor))

    return ServiceDescriptor.from_factory(
        descriptor.service_type,
        factory,
        descriptor.lifetime if lifetime is None else lifetime,
    )


def _close_decorator(decorator: Decorator, arguments: tuple[Any, ...]) -> Decorator:
    if is_runtime_class(decorator) and len(generic_parameters(decorator)) == len(arguments):
        return close_generic(decorator, arguments)
    return decorator


def _is_decorator_class(decorator: Decorator) -> bool:
    return is_runtime_class(get_origin(decorator) or decorator)


def _accepts_resolver(decorator: Callable[..., Any]) -> bool:
    try:
        parameters = inspect.signature(decorator).parameters.values()
    except (TypeError, ValueError):
        return False
    if any(parameter.kind is Parameter.VAR_POSITIONAL for parameter in parameters):
        return True
    return sum(1 for parameter in parameters if parameter.kind in _POSITIONAL_KINDS) >= 2  # noqa: PLR2004
