from __future__ import annotations

import logging
from enum import Enum, auto

from wirescan._internal.type_checks import describe_type
from wirescan.exceptions import WirescanDuplicateRegistrationError
from wirescan.registrations import ServiceCollection, ServiceDescriptor

logger = logging.getLogger(__name__)


class RegistrationStrategy(Enum):
    """Defines how a new registration interacts with existing ones for its service type."""

    APPEND = auto()
    """Always add the registration. Multiple registrations resolve as a collection."""

    SKIP = auto()
    """Omit the registration when the service type already has any registration."""

    SKIP_IF_SAME_IMPLEMENTATION = auto()
    """Omit the registration only when the same service type and implementation exist."""

    REPLACE = auto()
    """Remove every registration of the service type before adding the new one."""

    THROW = auto()
    """Raise ``WirescanDuplicateRegistrationError`` when the service type is registered."""

    def apply(self, services: ServiceCollection, descriptor: ServiceDescriptor) -> bool:
        """Commit ``descriptor`` into ``services`` according to this strategy.

        Args:
            services: Registry to mutate.
            descriptor: Registration to commit.

        Returns:
            ``True`` when the descriptor was added, ``False`` when it was skipped.

        Raises:
            WirescanDuplicateRegistrationError: For ``THROW`` when the service
                type already has a registration.

        """
        existing = services.find(descriptor.service_type)

        if self is RegistrationStrategy.SKIP and existing:
            logger.debug("Skipping %r: service type already registered", descriptor)
            return False

        if self is RegistrationStrategy.SKIP_IF_SAME_IMPLEMENTATION and any(
            _same_implementation(current, descriptor) for current in existing
        ):
            logger.debug("Skipping %r: same implementation already registered", descriptor)
            return False

        if self is RegistrationStrategy.THROW and existing:
            raise WirescanDuplicateRegistrationError(descriptor.service_type)

        if self is RegistrationStrategy.REPLACE and existing:
            for current in existing:
                del services[services.index_of(current)]
            logger.debug(
                "Removed %d registration(s) of %s before replacing",
                len(existing),
                describe_type(descriptor.service_type),
            )

        services.append(descriptor)
        logger.debug("Registered %r", descriptor)
        return True


def _same_implementation(left: ServiceDescriptor, right: ServiceDescriptor) -> bool:
    if left.implementation_type is not None or right.implementation_type is not None:
        return left.implementation_type == right.implementation_type
    return left.implementation_source is right.implementation_source
