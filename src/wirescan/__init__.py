from wirescan.attributes import ServiceDeclaration, declared_services, service_descriptor
from wirescan.candidates import CandidateType, GenericArity
from wirescan.decoration import (
    decorate,
    decorate_scoped,
    decorate_singleton,
    decorate_transient,
    try_decorate,
    try_decorate_scoped,
    try_decorate_singleton,
    try_decorate_transient,
)
from wirescan.exceptions import (
    WirescanDependencyNotRegisteredError,
    WirescanDuplicateRegistrationError,
    WirescanError,
    WirescanInvalidArgumentError,
    WirescanInvalidRegistrationError,
    WirescanMissingRegistrationError,
    WirescanTypeMismatchError,
)
from wirescan.filters import ImplementationTypeFilter
from wirescan.provider import ResolverProtocol, ServiceProvider
from wirescan.registrations import Lifetime, ServiceCollection, ServiceDescriptor
from wirescan.scanning import scan
from wirescan.selectors import ImplementationTypeSelector, LifetimeSelector, ServiceTypeSelector
from wirescan.sources import TypeSourceSelector
from wirescan.strategies import RegistrationStrategy

__all__ = [
    "CandidateType",
    "GenericArity",
    "ImplementationTypeFilter",
    "ImplementationTypeSelector",
    "Lifetime",
    "LifetimeSelector",
    "RegistrationStrategy",
    "ResolverProtocol",
    "ServiceCollection",
    "ServiceDeclaration",
    "ServiceDescriptor",
    "ServiceProvider",
    "ServiceTypeSelector",
    "TypeSourceSelector",
    "WirescanDependencyNotRegisteredError",
    "WirescanDuplicateRegistrationError",
    "WirescanError",
    "WirescanInvalidArgumentError",
    "WirescanInvalidRegistrationError",
    "WirescanMissingRegistrationError",
    "WirescanTypeMismatchError",
    "declared_services",
    "decorate",
    "decorate_scoped",
    "decorate_singleton",
    "decorate_transient",
    "scan",
    "service_descriptor",
    "try_decorate",
    "try_decorate_scoped",
    "try_decorate_singleton",
    "try_decorate_transient",
]
