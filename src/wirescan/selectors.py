"""Fluent selector chain turning candidate classes into registrations.

The chain mirrors the discovery pipeline: an ``ImplementationTypeSelector``
filters candidates, a ``ServiceTypeSelector`` maps each class to service types,
and a ``LifetimeSelector`` assigns the lifetime. Every selector also exposes
the methods of the stages before it, so a configuration callback can keep
chaining new batches.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from types import ModuleType
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol, get_origin

from wirescan._internal.type_checks import is_interface
from wirescan.attributes import declared_services
from wirescan.candidates import CandidateType, GenericArity, base_types, is_assignable
from wirescan.defaults import DEFAULT_LIFETIME
from wirescan.exceptions import (
    WirescanInvalidArgumentError,
    WirescanInvalidRegistrationError,
    WirescanTypeMismatchError,
)
from wirescan.filters import ImplementationTypeFilter
from wirescan.registrations import Lifetime, ServiceDescriptor
from wirescan.strategies import RegistrationStrategy

if TYPE_CHECKING:
    from wirescan.provider import ResolverProtocol
    from wirescan.sources import TypeSourceSelector

logger = logging.getLogger(__name__)

ClassFilterAction = Callable[[ImplementationTypeFilter], object]
MatchingInterfaceAction = Callable[[CandidateType, ImplementationTypeFilter], object]


class PlannedRegistration(NamedTuple):
    """A descriptor waiting to be committed with its registration strategy."""

    descriptor: ServiceDescriptor
    strategy: RegistrationStrategy


class SelectorProtocol(Protocol):
    """A stage of the chain able to plan its registrations."""

    def plan(self, strategy: RegistrationStrategy) -> Iterator[PlannedRegistration]:
        """Yield registrations, using ``strategy`` unless the stage overrides it."""
        ...


@dataclass(frozen=True, slots=True)
class TypeMap:
    """One implementation class and the distinct service types it is exposed as."""

    implementation_type: type[Any]
    service_types: tuple[Any, ...]
    forwarded_service_types: tuple[Any, ...] = ()
    """Service types resolved through the implementation's own registration."""

    @classmethod
    def create(
        cls,
        implementation_type: type[Any],
        service_types: Iterable[Any],
        forwarded_service_types: Iterable[Any] = (),
    ) -> TypeMap:
        return cls(
            implementation_type=implementation_type,
            service_types=_distinct(service_types),
            forwarded_service_types=_distinct(forwarded_service_types),
        )


class ImplementationTypeSelector:
    """Select which candidate classes are registered."""

    def __init__(
        self,
        source: TypeSourceSelector,
        candidates: Iterable[CandidateType],
        *,
        interface_prefix: str,
    ) -> None:
        self._source = source
        self._candidates = list(candidates)
        self._interface_prefix = interface_prefix
        self._selectors: list[SelectorProtocol] = []

    @property
    def candidates(self) -> list[CandidateType]:
        return list(self._candidates)

    def add_classes(
        self,
        action: ClassFilterAction | None = None,
        *,
        public_only: bool | None = None,
    ) -> ServiceTypeSelector:
        """Select concrete classes, optionally narrowed by ``action``.

        Interfaces, abstract classes and open generic classes are always
        excluded.

        Args:
            action: Callback receiving an ``ImplementationTypeFilter`` to narrow
                the selection.
            public_only: Exclude classes with an underscore-prefixed name
                segment. Defaults to ``True`` without ``action`` and ``False``
                with one.

        """
        if public_only is None:
            public_only = action is None

        classes = self._concrete_classes(public_only=public_only)
        if action is not None:
            type_filter = ImplementationTypeFilter(classes)
            action(type_filter)
            classes = type_filter.candidates

        selector = ServiceTypeSelector(self, classes)
        self._selectors.append(selector)
        return selector

    # region Chain Methods
    def from_modules(self, *modules: ModuleType | str) -> ImplementationTypeSelector:
        return self._source.from_modules(*modules)

    def from_module_of(self, *types: Any) -> ImplementationTypeSelector:
        return self._source.from_module_of(*types)

    def from_module_dependencies(self, module: ModuleType | str) -> ImplementationTypeSelector:
        return self._source.from_module_dependencies(module)

    def from_package(self, package: ModuleType | str) -> ImplementationTypeSelector:
        return self._source.from_package(package)

    def from_application_dependencies(
        self,
        predicate: Callable[[ModuleType], bool] | None = None,
    ) -> ImplementationTypeSelector:
        return self._source.from_application_dependencies(predicate)

    def from_entry_module(self) -> ImplementationTypeSelector:
        return self._source.from_entry_module()

    def add_types(self, *types: type[Any]) -> ServiceTypeSelector:
        return self._source.add_types(*types)

    # endregion Chain Methods

    def plan(self, strategy: RegistrationStrategy) -> Iterator[PlannedRegistration]:
        if not self._selectors:
            self.add_classes()
        for selector in self._selectors:
            yield from selector.plan(strategy)

    def matching_interface(
        self,
        candidate: CandidateType,
        action: MatchingInterfaceAction | None,
    ) -> tuple[Any, ...]:
        """Return the single interface named ``prefix + class name``, or nothing.

        Zero or several matches yield an empty tuple: the convention is best
        effort and never an error.
        """
        expected_name = f"{self._interface_prefix}{candidate.simple_name}"
        matches = [
            interface
            for interface in candidate.interfaces
            if (get_origin(interface) or interface).__name__ == expected_name
        ]
        if action is not None and matches:
            described = [CandidateType.from_type(get_origin(match) or match) for match in matches]
            type_filter = ImplementationTypeFilter(described)
            action(candidate, type_filter)
            kept = {id(kept_candidate) for kept_candidate in type_filter.candidates}
            matches = [
                match
                for match, description in zip(matches, described)
                if id(description) in kept
            ]
        if len(matches) != 1:
            logger.debug(
                "No unique matching interface %r for %s (%d found)",
                expected_name,
                candidate.name,
                len(matches),
            )
            return ()
        return (matches[0],)

    def _concrete_classes(self, *, public_only: bool) -> list[CandidateType]:
        return [
            candidate
            for candidate in self._candidates
            if candidate.is_concrete
            and candidate.generic_arity is not GenericArity.OPEN
            and (candidate.is_public or not public_only)
        ]


class ServiceTypeSelector:
    """Choose the service types selected classes are registered as.

    Each ``as_*`` call starts a new, independent mapping batch over the same
    classes; all batches are committed.
    """

    def __init__(self, owner: ImplementationTypeSelector, candidates: Iterable[CandidateType]) -> None:
        self._owner = owner
        self._candidates = list(candidates)
        self._selectors: list[SelectorProtocol] = []
        self._strategy: RegistrationStrategy | None = None

    @property
    def candidates(self) -> list[CandidateType]:
        return list(self._candidates)

    def as_self(self) -> LifetimeSelector:
        """Register each class under itself."""
        return self.as_custom(lambda implementation_type: (implementation_type,))

    def as_(self, *service_types: Any) -> LifetimeSelector:
        """Register each class under a fixed set of service types.

        Classes not assignable to a listed type fail with
        ``WirescanTypeMismatchError`` when the scan is committed.
        """
        if not service_types or any(service_type is None for service_type in service_types):
            msg = "as_() requires at least one service type and none may be None."
            raise WirescanInvalidArgumentError(msg)
        return self._add_type_maps(
            TypeMap.create(candidate.implementation_type, service_types)
            for candidate in self._candidates
        )

    def as_implemented_interfaces(self) -> LifetimeSelector:
        """Register each class under every interface it implements, transitively."""
        return self._add_type_maps(
            TypeMap.create(candidate.implementation_type, candidate.interfaces)
            for candidate in self._candidates
        )

    def as_self_with_interfaces(self) -> LifetimeSelector:
        """Register each class under itself, and its interfaces as aliases of that registration.

        Interface registrations resolve the class registration, so a singleton
        is shared between the class and all of its interfaces.
        """
        return self._add_type_maps(
            TypeMap.create(
                candidate.implementation_type,
                (candidate.implementation_type,),
                forwarded_service_types=candidate.interfaces,
            )
            for candidate in self._candidates
        )

    def as_matching_interface(self, action: MatchingInterfaceAction | None = None) -> LifetimeSelector:
        """Register each class under the interface named after it, e.g. ``IGreeter``."""
        return self._add_type_maps(
            TypeMap.create(
                candidate.implementation_type,
                self._owner.matching_interface(candidate, action),
            )
            for candidate in self._candidates
        )

    def as_custom(self, selector: Callable[[type[Any]], Iterable[Any]]) -> LifetimeSelector:
        """Register each class under the service types returned by ``selector``."""
        if selector is None:
            msg = "as_custom() parameter 'selector' must not be None."
            raise WirescanInvalidArgumentError(msg)
        return self._add_type_maps(
            TypeMap.create(candidate.implementation_type, selector(candidate.implementation_type))
            for candidate in self._candidates
        )

    def using_attributes(self) -> ServiceTypeSelector:
        """Register classes as declared with ``@service_descriptor``."""
        self._selectors.append(AttributeSelector(self._candidates))
        return self

    def using_registration_strategy(self, strategy: RegistrationStrategy) -> ServiceTypeSelector:
        """Override the registration strategy for this selection."""
        if not isinstance(strategy, RegistrationStrategy):
            msg = f"using_registration_strategy() expects a RegistrationStrategy, got {strategy!r}."
            raise WirescanInvalidArgumentError(msg)
        self._strategy = strategy
        return self

    # region Chain Methods
    def add_classes(
        self,
        action: ClassFilterAction | None = None,
        *,
        public_only: bool | None = None,
    ) -> ServiceTypeSelector:
        return self._owner.add_classes(action, public_only=public_only)

    def from_modules(self, *modules: ModuleType | str) -> ImplementationTypeSelector:
        return self._owner.from_modules(*modules)

    def from_module_of(self, *types: Any) -> ImplementationTypeSelector:
        return self._owner.from_module_of(*types)

    def from_module_dependencies(self, module: ModuleType | str) -> ImplementationTypeSelector:
        return self._owner.from_module_dependencies(module)

    def from_package(self, package: ModuleType | str) -> ImplementationTypeSelector:
        return self._owner.from_package(package)

    def add_types(self, *types: type[Any]) -> ServiceTypeSelector:
        return self._owner.add_types(*types)

    def from_application_dependencies(
        self,
        predicate: Callable[[ModuleType], bool] | None = None,
    ) -> ImplementationTypeSelector:
        return self._owner.from_application_dependencies(predicate)

    def from_entry_module(self) -> ImplementationTypeSelector:
        return self._owner.from_entry_module()

    # endregion Chain Methods

    def plan(self, strategy: RegistrationStrategy) -> Iterator[PlannedRegistration]:
        if not self._selectors:
            self.as_self()
        active_strategy = self._strategy or strategy
        for selector in self._selectors:
            yield from selector.plan(active_strategy)

    def _add_type_maps(self, type_maps: Iterable[TypeMap]) -> LifetimeSelector:
        selector = LifetimeSelector(self, list(type_maps))
        self._selectors.append(selector)
        return selector


class LifetimeSelector:
    """Assign the lifetime of one mapping batch."""

    def __init__(self, owner: ServiceTypeSelector, type_maps: list[TypeMap]) -> None:
        self._owner = owner
        self._type_maps = type_maps
        self._lifetime: Lifetime | None = None

    @property
    def type_maps(self) -> list[TypeMap]:
        return list(self._type_maps)

    def with_lifetime(self, lifetime: Lifetime) -> ImplementationTypeSelector:
        if not isinstance(lifetime, Lifetime):
            msg = f"with_lifetime() expects a Lifetime, got {lifetime!r}."
            raise WirescanInvalidArgumentError(msg)
        self._lifetime = lifetime
        return self._owner._owner  # noqa: SLF001

    def with_transient_lifetime(self) -> ImplementationTypeSelector:
        return self.with_lifetime(Lifetime.TRANSIENT)

    def with_scoped_lifetime(self) -> ImplementationTypeSelector:
        return self.with_lifetime(Lifetime.SCOPED)

    def with_singleton_lifetime(self) -> ImplementationTypeSelector:
        return self.with_lifetime(Lifetime.SINGLETON)

    # region Chain Methods
    def as_self(self) -> LifetimeSelector:
        return self._owner.as_self()

    def as_(self, *service_types: Any) -> LifetimeSelector:
        return self._owner.as_(*service_types)

    def as_implemented_interfaces(self) -> LifetimeSelector:
        return self._owner.as_implemented_interfaces()

    def as_self_with_interfaces(self) -> LifetimeSelector:
        return self._owner.as_self_with_interfaces()

    def as_matching_interface(self, action: MatchingInterfaceAction | None = None) -> LifetimeSelector:
        return self._owner.as_matching_interface(action)

    def as_custom(self, selector: Callable[[type[Any]], Iterable[Any]]) -> LifetimeSelector:
        return self._owner.as_custom(selector)

    def using_attributes(self) -> ServiceTypeSelector:
        return self._owner.using_attributes()

    def using_registration_strategy(self, strategy: RegistrationStrategy) -> ServiceTypeSelector:
        return self._owner.using_registration_strategy(strategy)

    def add_classes(
        self,
        action: ClassFilterAction | None = None,
        *,
        public_only: bool | None = None,
    ) -> ServiceTypeSelector:
        return self._owner.add_classes(action, public_only=public_only)

    def from_modules(self, *modules: ModuleType | str) -> ImplementationTypeSelector:
        return self._owner.from_modules(*modules)

    def from_module_of(self, *types: Any) -> ImplementationTypeSelector:
        return self._owner.from_module_of(*types)

    def from_module_dependencies(self, module: ModuleType | str) -> ImplementationTypeSelector:
        return self._owner.from_module_dependencies(module)

    def from_application_dependencies(
        self,
        predicate: Callable[[ModuleType], bool] | None = None,
    ) -> ImplementationTypeSelector:
        return self._owner.from_application_dependencies(predicate)

    def from_entry_module(self) -> ImplementationTypeSelector:
        return self._owner.from_entry_module()

    def from_package(self, package: ModuleType | str) -> ImplementationTypeSelector:
        return self._owner.from_package(package)

    def add_types(self, *types: type[Any]) -> ServiceTypeSelector:
        return self._owner.add_types(*types)

    # endregion Chain Methods

    def plan(self, strategy: RegistrationStrategy) -> Iterator[PlannedRegistration]:
        lifetime = self._lifetime or DEFAULT_LIFETIME
        for type_map in self._type_maps:
            implementation_type = type_map.implementation_type
            for service_type in type_map.service_types:
                _ensure_assignable(implementation_type, service_type)
                yield PlannedRegistration(
                    ServiceDescriptor.describe(service_type, implementation_type, lifetime),
                    strategy,
                )
            for service_type in type_map.forwarded_service_types:
                _ensure_assignable(implementation_type, service_type)
                yield PlannedRegistration(
                    ServiceDescriptor.from_factory(
                        service_type,
                        _forward_to(implementation_type),
                        lifetime,
                    ),
                    strategy,
                )


class AttributeSelector:
    """Plan registrations from ``@service_descriptor`` declarations."""

    def __init__(self, candidates: Iterable[CandidateType]) -> None:
        self._candidates = list(candidates)

    def plan(self, strategy: RegistrationStrategy) -> Iterator[PlannedRegistration]:
        for candidate in self._candidates:
            implementation_type = candidate.implementation_type
            declarations = declared_services(implementation_type)
            declared_types = [
                declaration.service_type
                for declaration in declarations
                if declaration.service_type is not None
            ]
            if len(declared_types) != len(_distinct(declared_types)):
                msg = (
                    f"Type '{candidate.name}' declares multiple service descriptors "
                    "with the same service type."
                )
                raise WirescanInvalidRegistrationError(msg)

            for declaration in declarations:
                if declaration.service_type is None:
                    service_types = _default_declared_service_types(candidate)
                else:
                    service_types = (declaration.service_type,)
                for service_type in service_types:
                    _ensure_assignable(implementation_type, service_type)
                    yield PlannedRegistration(
                        ServiceDescriptor.describe(
                            service_type,
                            implementation_type,
                            declaration.lifetime,
                        ),
                        declaration.strategy or strategy,
                    )


def _default_declared_service_types(candidate: CandidateType) -> tuple[Any, ...]:
    implementation_type = candidate.implementation_type
    service_types: list[Any] = [implementation_type, *candidate.interfaces]
    base_class = next(
        (
            base
            for base in base_types(implementation_type)
            if not is_interface(get_origin(base) or base)
        ),
        None,
    )
    if base_class is not None:
        service_types.append(base_class)
    return _distinct(service_types)


def _forward_to(implementation_type: type[Any]) -> Callable[[ResolverProtocol], Any]:
    def factory(resolver: ResolverProtocol) -> Any:
        return resolver.get_required_service(implementation_type)

    return factory


def _ensure_assignable(implementation_type: type[Any], service_type: Any) -> None:
    if not is_assignable(implementation_type, service_type):
        raise WirescanTypeMismatchError(implementation_type, service_type)


def _distinct(values: Iterable[Any]) -> tuple[Any, ...]:
    distinct: list[Any] = []
    for value in values:
        if value not in distinct:
            distinct.append(value)
    return tuple(distinct)
