from __future__ import annotations

import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from wirescan._internal.type_checks import is_runtime_class
from wirescan.exceptions import WirescanInvalidArgumentError
from wirescan.registrations import Lifetime
from wirescan.strategies import RegistrationStrategy

C = TypeVar("C", bound=type[Any])


@dataclass(frozen=True, slots=True)
class ServiceDeclaration:
    """Registration metadata declared directly on a class."""

    service_type: Any | None
    """Service key to register under. ``None`` exposes the class itself, its
    interfaces and its direct base class."""
    lifetime: Lifetime
    strategy: RegistrationStrategy | None
    """Per-declaration strategy. ``None`` defers to the scan's strategy."""


_DECLARATIONS: weakref.WeakKeyDictionary[type[Any], tuple[ServiceDeclaration, ...]] = (
    weakref.WeakKeyDictionary()
)


def service_descriptor(
    service_type: Any | None = None,
    *,
    lifetime: Lifetime = Lifetime.TRANSIENT,
    strategy: RegistrationStrategy | None = None,
) -> Callable[[C], C]:
    """Declare how a class registers itself when scanned with ``using_attributes()``.

    The decorator may be stacked to expose one class under several service
    types. Declarations are kept in a side table keyed by the class, so they are
    not inherited by subclasses.

    Args:
        service_type: Service key to register under, or ``None`` to expose the
            class itself, its implemented interfaces and its direct base class.
        lifetime: Lifetime of the registration.
        strategy: Registration strategy overriding the scan's strategy.

    Returns:
        A class decorator returning the class unchanged.

    Examples:
        .. code-block:: python

            @service_descriptor(Greeter, lifetime=Lifetime.SINGLETON)
            class EnglishGreeter(Greeter): ...

    """
    if not isinstance(lifetime, Lifetime):
        msg = f"service_descriptor() parameter 'lifetime' must be a Lifetime, got {lifetime!r}."
        raise WirescanInvalidArgumentError(msg)
    declaration = ServiceDeclaration(
        service_type=service_type,
        lifetime=lifetime,
        strategy=strategy,
    )

    def decorator(decorated: C) -> C:
        if not is_runtime_class(decorated):
            msg = f"service_descriptor() can only decorate classes, got {decorated!r}."
            raise WirescanInvalidArgumentError(msg)
        # Decorators apply bottom-up; prepend to keep source order.
        _DECLARATIONS[decorated] = (declaration, *_DECLARATIONS.get(decorated, ()))
        return decorated

    return decorator


def declared_services(implementation_type: type[Any]) -> tuple[ServiceDeclaration, ...]:
    """Return the declarations attached to exactly ``implementation_type``."""
    return _DECLARATIONS.get(implementation_type, ())
