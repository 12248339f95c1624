from __future__ import annotations

import logging
from collections.abc import Callable

from wirescan.defaults import DEFAULT_INTERFACE_PREFIX, DEFAULT_REGISTRATION_STRATEGY
from wirescan.exceptions import WirescanInvalidArgumentError
from wirescan.registrations import ServiceCollection
from wirescan.sources import TypeSourceSelector

logger = logging.getLogger(__name__)


def scan(
    services: ServiceCollection,
    action: Callable[[TypeSourceSelector], object],
    *,
    interface_prefix: str = DEFAULT_INTERFACE_PREFIX,
) -> ServiceCollection:
    """Register classes discovered by convention into ``services``.

    ``action`` configures the scan on a ``TypeSourceSelector``: which modules to
    read, which classes to keep, which service types to expose them as and with
    which lifetime. Every planned registration is validated before the first one
    is committed, so a type mismatch leaves ``services`` untouched.

    Args:
        services: Registry receiving the registrations.
        action: Configuration callback.
        interface_prefix: Prefix used by ``as_matching_interface`` to derive the
            interface name from the class name.

    Returns:
        The same ``services`` collection, for chaining.

    Raises:
        WirescanInvalidArgumentError: If ``services`` or ``action`` is missing.
        WirescanTypeMismatchError: If a class is mapped to a service type it
            does not satisfy.

    Examples:
        .. code-block:: python

            scan(
                services,
                lambda selector: selector.from_module_of(EnglishGreeter)
                .add_classes(lambda classes: classes.assignable_to(Greeter))
                .as_implemented_interfaces()
                .with_singleton_lifetime(),
            )

    """
    if services is None:
        msg = "scan() parameter 'services' must not be None."
        raise WirescanInvalidArgumentError(msg)
    if action is None:
        msg = "scan() parameter 'action' must not be None."
        raise WirescanInvalidArgumentError(msg)

    selector = TypeSourceSelector(interface_prefix=interface_prefix)
    action(selector)

    planned = list(selector.plan(DEFAULT_REGISTRATION_STRATEGY))
    committed = sum(1 for descriptor, strategy in planned if strategy.apply(services, descriptor))
    logger.info("Scan committed %d of %d planned registration(s)", committed, len(planned))
    return services
