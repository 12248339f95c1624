"""Reference resolver satisfying the container boundary.

The discovery pipeline and the decoration engine only rely on
``ResolverProtocol``. ``ServiceProvider`` is a deliberately small
implementation of it: type-hint based constructor injection, lifetime caching
and nested scopes. It does not detect cycles, pick between constructors or
dispose instances.
"""

from __future__ import annotations

import inspect
import logging
import types
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from inspect import Parameter
from typing import Any, Protocol, Union, get_args, get_origin, get_type_hints

from wirescan._internal.open_generics import generic_parameters, substitute_typevars
from wirescan._internal.type_checks import describe_type, is_protocol_class, is_runtime_class
from wirescan.candidates import is_assignable
from wirescan.exceptions import (
    WirescanDependencyNotRegisteredError,
    WirescanInvalidArgumentError,
    WirescanInvalidRegistrationError,
)
from wirescan.registrations import Lifetime, ServiceDescriptor

logger = logging.getLogger(__name__)

_MISSING: Any = object()
_VARIADIC_KINDS = (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)
_COLLECTION_ORIGINS: tuple[Any, ...] = (list, Sequence, Iterable, Collection)


class ResolverProtocol(Protocol):
    """What the core needs from a DI container."""

    def get_service(self, service_type: Any) -> Any | None:
        """Return the last registration of ``service_type`` or ``None``."""
        ...

    def get_required_service(self, service_type: Any) -> Any:
        """Return the last registration of ``service_type`` or raise."""
        ...

    def get_services(self, service_type: Any) -> list[Any]:
        """Return every registration of ``service_type`` in registry order."""
        ...

    def get_instance(self, descriptor: ServiceDescriptor) -> Any:
        """Produce an instance from a descriptor's type, instance or factory."""
        ...

    def create_instance(self, concrete_type: Any, *arguments: Any) -> Any:
        """Construct ``concrete_type`` with ``arguments`` available as dependencies."""
        ...


@dataclass(frozen=True, slots=True)
class ConstructorParameter:
    """A constructor parameter with its resolved annotation."""

    parameter: Parameter
    annotation: Any
    """Resolved type hint, or a sentinel when the parameter is unannotated."""

    @property
    def is_annotated(self) -> bool:
        return self.annotation is not _MISSING


class ConstructorInspector:
    """Extract and cache type-hinted constructor parameters of classes."""

    def __init__(self) -> None:
        self._parameters_cache: dict[type[Any], tuple[ConstructorParameter, ...]] = {}

    def parameters(self, concrete_type: type[Any]) -> tuple[ConstructorParameter, ...]:
        cached = self._parameters_cache.get(concrete_type)
        if cached is not None:
            return cached

        try:
            signature = inspect.signature(concrete_type)
        except (TypeError, ValueError):
            signature = None
        hints = self._type_hints(concrete_type)

        result = tuple(
            ConstructorParameter(
                parameter=parameter,
                annotation=hints.get(parameter.name, _raw_annotation(parameter)),
            )
            for parameter in (signature.parameters.values() if signature is not None else ())
            if parameter.kind not in _VARIADIC_KINDS
        )
        self._parameters_cache[concrete_type] = result
        return result

    def _type_hints(self, concrete_type: type[Any]) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for member in (concrete_type.__init__, concrete_type):
            try:
                hints = get_type_hints(member)
            except (AttributeError, NameError, TypeError):
                continue
            for name, hint in hints.items():
                merged.setdefault(name, hint)
        merged.pop("return", None)
        return merged


class ServiceProvider:
    """Resolve services from a frozen snapshot of registrations.

    Transient registrations produce a new instance per request, scoped ones
    one instance per provider scope (the root provider is a scope too), and
    singletons one instance per root provider. When a service type is
    registered several times, single resolution returns the last registration
    and ``get_services`` returns all of them in registry order.

    Examples:
        .. code-block:: python

            provider = services.build_provider()
            greeter = provider.get_required_service(Greeter)

            with_scope = provider.create_scope()
            unit_of_work = with_scope.get_required_service(UnitOfWork)

    """

    def __init__(
        self,
        services: Iterable[ServiceDescriptor],
        *,
        root: ServiceProvider | None = None,
        inspector: ConstructorInspector | None = None,
    ) -> None:
        self._descriptors: tuple[ServiceDescriptor, ...] = tuple(services)
        self._root = root if root is not None else self
        self._inspector = inspector if inspector is not None else ConstructorInspector()
        self._instances: dict[ServiceDescriptor, Any] = {}

    @property
    def is_root(self) -> bool:
        return self._root is self

    def create_scope(self) -> ServiceProvider:
        """Open a child scope sharing registrations and singletons with this provider."""
        return ServiceProvider(self._descriptors, root=self._root, inspector=self._inspector)

    def get_service(self, service_type: Any) -> Any | None:
        descriptors = self._find(service_type)
        if not descriptors:
            return None
        return self._resolve(descriptors[-1])

    def get_required_service(self, service_type: Any) -> Any:
        descriptors = self._find(service_type)
        if not descriptors:
            msg = f"No service registered for type {describe_type(service_type)}."
            raise WirescanDependencyNotRegisteredError(msg)
        return self._resolve(descriptors[-1])

    def get_services(self, service_type: Any) -> list[Any]:
        return [self._resolve(descriptor) for descriptor in self._find(service_type)]

    def get_instance(self, descriptor: ServiceDescriptor) -> Any:
        """Produce an instance from ``descriptor`` without caching it under ``descriptor``.

        A type-backed descriptor reuses an existing registration of its
        implementation type, so a decorated ``Greeter`` wraps the singleton
        ``EnglishGreeter`` when one is registered. Otherwise the type is
        constructed.
        """
        if descriptor.instance is not None:
            return descriptor.instance
        implementation_type = descriptor.implementation_type
        if implementation_type is not None:
            if descriptor.service_type != implementation_type and self._find(implementation_type):
                return self.get_service(implementation_type)
            return self.create_instance(implementation_type)
        if descriptor.factory is None:
            msg = f"{descriptor!r} has no implementation source."
            raise WirescanInvalidRegistrationError(msg)
        return descriptor.factory(self)

    def create_instance(self, concrete_type: Any, *arguments: Any) -> Any:
        """Construct ``concrete_type``, preferring ``arguments`` over registrations.

        Each explicit argument is bound to the first parameter whose annotation
        it satisfies (or to the first unannotated parameter). Remaining
        parameters are resolved from registrations, falling back to their
        defaults. A closed generic alias such as ``CachingRepository[User]``
        closes the constructor annotations over its arguments.
        """
        origin = get_origin(concrete_type) or concrete_type
        if not is_runtime_class(origin):
            msg = f"create_instance() expects a class, got {concrete_type!r}."
            raise WirescanInvalidArgumentError(msg)
        typevar_map = dict(zip(generic_parameters(origin), get_args(concrete_type)))

        pending = list(arguments)
        positional: list[Any] = []
        keyword: dict[str, Any] = {}
        for constructor_parameter in self._inspector.parameters(origin):
            parameter = constructor_parameter.parameter
            annotation = (
                substitute_typevars(constructor_parameter.annotation, mapping=typevar_map)
                if constructor_parameter.is_annotated
                else _MISSING
            )
            value = _take_argument(pending, annotation)
            if value is _MISSING:
                value = self._resolve_parameter(concrete_type, parameter, annotation)
            if value is _MISSING:
                continue
            if parameter.kind is Parameter.POSITIONAL_ONLY:
                positional.append(value)
            else:
                keyword[parameter.name] = value

        if pending:
            msg = (
                f"Could not bind {pending!r} to any constructor parameter of "
                f"{describe_type(concrete_type)}."
            )
            raise WirescanInvalidRegistrationError(msg)
        return concrete_type(*positional, **keyword)

    def _resolve(self, descriptor: ServiceDescriptor) -> Any:
        if descriptor.lifetime is Lifetime.TRANSIENT:
            return self.get_instance(descriptor)

        owner = self._root if descriptor.lifetime is Lifetime.SINGLETON else self
        if descriptor in owner._instances:
            return owner._instances[descriptor]
        instance = owner.get_instance(descriptor)
        owner._instances[descriptor] = instance
        logger.debug("Cached %s instance for %r", descriptor.lifetime.name, descriptor)
        return instance

    def _resolve_parameter(self, owner: Any, parameter: Parameter, annotation: Any) -> Any:
        has_default = parameter.default is not Parameter.empty
        if annotation is _MISSING:
            if has_default:
                return _MISSING
            msg = (
                f"Cannot infer parameter '{parameter.name}' of {describe_type(owner)}: "
                "add a type annotation or a default value."
            )
            raise WirescanDependencyNotRegisteredError(msg)

        service_type = _strip_optional(annotation)
        if get_origin(service_type) in _COLLECTION_ORIGINS:
            arguments = get_args(service_type)
            if arguments:
                return self.get_services(arguments[0])
        if self._find(service_type):
            return self.get_service(service_type)
        if has_default:
            return _MISSING
        if service_type is not annotation:
            return None

        msg = (
            f"Cannot resolve parameter '{parameter.name}' of {describe_type(owner)}: "
            f"{describe_type(service_type)} is not registered."
        )
        raise WirescanDependencyNotRegisteredError(msg)

    def _find(self, service_type: Any) -> list[ServiceDescriptor]:
        return [
            descriptor
            for descriptor in self._descriptors
            if descriptor.service_type == service_type
        ]


def _raw_annotation(parameter: Parameter) -> Any:
    annotation = parameter.annotation
    if annotation is Parameter.empty or isinstance(annotation, str):
        return _MISSING
    return annotation


def _take_argument(pending: list[Any], annotation: Any) -> Any:
    for index, argument in enumerate(pending):
        if annotation is _MISSING or _accepts(annotation, argument):
            return pending.pop(index)
    return _MISSING


def _accepts(annotation: Any, argument: Any) -> bool:
    target = _strip_optional(annotation)
    origin = get_origin(target)
    if origin is not None:
        target = origin
    if not is_runtime_class(target):
        return False
    if is_protocol_class(target):
        return is_assignable(type(argument), target)
    return isinstance(argument, target)


def _strip_optional(annotation: Any) -> Any:
    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation
    arguments = [argument for argument in get_args(annotation) if argument is not type(None)]
    if len(arguments) == 1:
        return arguments[0]
    return annotation
