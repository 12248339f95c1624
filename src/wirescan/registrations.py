from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, MutableSequence
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Literal, TypeAlias, TypeVar, overload

from wirescan._internal.type_checks import describe_type, is_runtime_class
from wirescan.exceptions import WirescanInvalidArgumentError, WirescanInvalidRegistrationError

if TYPE_CHECKING:
    from wirescan.provider import ResolverProtocol, ServiceProvider
    from wirescan.sources import TypeSourceSelector

T = TypeVar("T")

ServiceType: TypeAlias = Any
"""A service key: a class, a protocol, or a parametrized generic alias."""

ServiceFactory: TypeAlias = "Callable[[ResolverProtocol], Any]"
"""A callable producing a service instance from the active resolver."""


class Lifetime(Enum):
    """Defines the lifetime of a service in the container."""

    TRANSIENT = auto()
    """A new instance is created every time the service is requested."""

    SCOPED = auto()
    """Instance is shared within a scope, different instances across scopes."""

    SINGLETON = auto()
    """A single instance is created and shared for the lifetime of the container."""


@dataclass(frozen=True, slots=True, kw_only=True, eq=False)
class ServiceDescriptor:
    """A single registration persisted in a ``ServiceCollection``.

    Exactly one of ``implementation_type``, ``instance`` or ``factory`` is set.
    Descriptors compare by identity so that two equal-looking registrations
    appended twice stay distinguishable inside the registry.
    """

    service_type: ServiceType
    """The key under which the registration is looked up."""
    lifetime: Lifetime
    """How long a produced instance is reused. Owned by the container."""

    implementation_type: Any | None = None
    """A class constructed by the container to satisfy ``service_type``."""
    instance: Any | None = None
    """A pre-built instance returned as is."""
    factory: ServiceFactory | None = None
    """A callable receiving the resolver and returning the instance."""

    def __post_init__(self) -> None:
        if self.service_type is None:
            msg = "ServiceDescriptor.service_type must not be None."
            raise WirescanInvalidArgumentError(msg)
        if not isinstance(self.lifetime, Lifetime):
            msg = f"ServiceDescriptor.lifetime must be a Lifetime, got {self.lifetime!r}."
            raise WirescanInvalidRegistrationError(msg)

        sources = [
            source
            for source in (self.implementation_type, self.instance, self.factory)
            if source is not None
        ]
        if len(sources) != 1:
            msg = (
                f"Registration for {describe_type(self.service_type)} must define exactly one of "
                "'implementation_type', 'instance' or 'factory'."
            )
            raise WirescanInvalidRegistrationError(msg)
        if self.instance is not None and self.lifetime is not Lifetime.SINGLETON:
            msg = f"Instance registration for {describe_type(self.service_type)} must be a singleton."
            raise WirescanInvalidRegistrationError(msg)
        if self.factory is not None and not callable(self.factory):
            msg = f"Factory registered for {describe_type(self.service_type)} is not callable."
            raise WirescanInvalidRegistrationError(msg)

    @classmethod
    def describe(
        cls,
        service_type: ServiceType,
        implementation_type: Any,
        lifetime: Lifetime,
    ) -> ServiceDescriptor:
        """Build a type-backed descriptor."""
        return cls(
            service_type=service_type,
            implementation_type=implementation_type,
            lifetime=lifetime,
        )

    @classmethod
    def from_instance(cls, service_type: ServiceType, instance: Any) -> ServiceDescriptor:
        """Build a singleton descriptor around a pre-built instance."""
        return cls(service_type=service_type, instance=instance, lifetime=Lifetime.SINGLETON)

    @classmethod
    def from_factory(
        cls,
        service_type: ServiceType,
        factory: ServiceFactory,
        lifetime: Lifetime,
    ) -> ServiceDescriptor:
        """Build a factory-backed descriptor."""
        return cls(service_type=service_type, factory=factory, lifetime=lifetime)

    @property
    def implementation_source(self) -> Any:
        """Return whichever of type, instance or factory backs this descriptor."""
        if self.implementation_type is not None:
            return self.implementation_type
        if self.instance is not None:
            return self.instance
        return self.factory

    def __repr__(self) -> str:
        if self.implementation_type is not None:
            source = f"implementation_type={describe_type(self.implementation_type)}"
        elif self.instance is not None:
            source = f"instance={self.instance!r}"
        else:
            source = f"factory={self.factory!r}"
        return (
            f"ServiceDescriptor(service_type={describe_type(self.service_type)}, "
            f"lifetime={self.lifetime.name}, {source})"
        )


class ServiceCollection(MutableSequence[ServiceDescriptor]):
    """An ordered, mutable list of service registrations.

    Order is meaningful: it is the iteration order of multiply-registered
    services, and the last registration of a service type wins for single
    resolution.

    Examples:
        .. code-block:: python

            services = ServiceCollection()
            services.add_concrete(EnglishGreeter, provides=Greeter, lifetime=Lifetime.SINGLETON)
            provider = services.build_provider()

    """

    def __init__(self, descriptors: Iterable[ServiceDescriptor] = ()) -> None:
        self._descriptors: list[ServiceDescriptor] = []
        for descriptor in descriptors:
            self.append(descriptor)

    @overload
    def __getitem__(self, index: int) -> ServiceDescriptor: ...

    @overload
    def __getitem__(self, index: slice) -> list[ServiceDescriptor]: ...

    def __getitem__(self, index: int | slice) -> ServiceDescriptor | list[ServiceDescriptor]:
        return self._descriptors[index]

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            values = list(value)
            for item in values:
                self._validate(item)
            self._descriptors[index] = values
            return
        self._validate(value)
        self._descriptors[index] = value

    def __delitem__(self, index: int | slice) -> None:
        del self._descriptors[index]

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[ServiceDescriptor]:
        return iter(self._descriptors)

    def insert(self, index: int, value: ServiceDescriptor) -> None:
        """Insert a descriptor before ``index``."""
        self._validate(value)
        self._descriptors.insert(index, value)

    def index_of(self, descriptor: ServiceDescriptor) -> int:
        """Return the position of exactly this descriptor object."""
        for index, candidate in enumerate(self._descriptors):
            if candidate is descriptor:
                return index
        msg = f"{descriptor!r} is not part of this collection."
        raise ValueError(msg)

    def find(self, service_type: ServiceType) -> list[ServiceDescriptor]:
        """Return every descriptor registered for ``service_type`` in registry order."""
        return [
            descriptor
            for descriptor in self._descriptors
            if descriptor.service_type == service_type
        ]

    def has(self, service_type: ServiceType) -> bool:
        """Return whether at least one descriptor is registered for ``service_type``."""
        return any(descriptor.service_type == service_type for descriptor in self._descriptors)

    def service_types(self) -> list[ServiceType]:
        """Return the distinct registered service types in first-registration order."""
        seen: list[ServiceType] = []
        for descriptor in self._descriptors:
            if descriptor.service_type not in seen:
                seen.append(descriptor.service_type)
        return seen

    # region Registration Methods
    def add_concrete(
        self,
        implementation_type: type[T],
        *,
        provides: Any | Literal["infer"] = "infer",
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> ServiceCollection:
        """Append a type-backed registration.

        Args:
            implementation_type: Class the container constructs.
            provides: Service key to bind. Use ``"infer"`` to bind the class itself.
            lifetime: Lifetime of produced instances.

        """
        if not is_runtime_class(implementation_type):
            msg = f"add_concrete() expects a class, got {implementation_type!r}."
            raise WirescanInvalidArgumentError(msg)
        service_type = implementation_type if provides == "infer" else provides
        self.append(ServiceDescriptor.describe(service_type, implementation_type, lifetime))
        return self

    def add_instance(
        self,
        instance: Any,
        *,
        provides: Any | Literal["infer"] = "infer",
    ) -> ServiceCollection:
        """Append a singleton registration around a pre-built instance.

        Args:
            instance: Value returned on resolution.
            provides: Service key to bind. Use ``"infer"`` to bind ``type(instance)``.

        """
        service_type = type(instance) if provides == "infer" else provides
        self.append(ServiceDescriptor.from_instance(service_type, instance))
        return self

    def add_factory(
        self,
        factory: ServiceFactory,
        *,
        provides: Any,
        lifetime: Lifetime = Lifetime.TRANSIENT,
    ) -> ServiceCollection:
        """Append a factory-backed registration.

        Args:
            factory: Callable receiving the resolver and returning the instance.
            provides: Service key to bind.
            lifetime: Lifetime of produced instances.

        """
        self.append(ServiceDescriptor.from_factory(provides, factory, lifetime))
        return self

    # endregion Registration Methods

    # region Convention Methods
    def scan(self, action: Callable[[TypeSourceSelector], object]) -> ServiceCollection:
        """Register classes discovered by ``action``. See ``wirescan.scan``."""
        from wirescan.scanning import scan  # noqa: PLC0415

        return scan(self, action)

    def decorate(
        self,
        service_type: ServiceType,
        decorator: Any,
        *,
        lifetime: Lifetime | None = None,
    ) -> ServiceCollection:
        """Wrap every registration of ``service_type``. See ``wirescan.decorate``."""
        from wirescan.decoration import decorate  # noqa: PLC0415

        return decorate(self, service_type, decorator, lifetime=lifetime)

    def try_decorate(
        self,
        service_type: ServiceType,
        decorator: Any,
        *,
        lifetime: Lifetime | None = None,
    ) -> bool:
        """Wrap like ``decorate`` but return ``False`` when nothing is registered."""
        from wirescan.decoration import try_decorate  # noqa: PLC0415

        return try_decorate(self, service_type, decorator, lifetime=lifetime)

    # endregion Convention Methods

    def build_provider(self) -> ServiceProvider:
        """Freeze the current registrations into a reference ``ServiceProvider``."""
        from wirescan.provider import ServiceProvider  # noqa: PLC0415

        return ServiceProvider(self)

    def __repr__(self) -> str:
        return f"ServiceCollection({self._descriptors!r})"

    @staticmethod
    def _validate(value: object) -> None:
        if not isinstance(value, ServiceDescriptor):
            msg = f"ServiceCollection only holds ServiceDescriptor entries, got {value!r}."
            raise WirescanInvalidArgumentError(msg)
