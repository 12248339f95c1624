"""Introspection of candidate classes found in scanned modules."""

from __future__ import annotations

import inspect
from abc import ABC
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto
from types import ModuleType
from typing import Any, Generic, Protocol, get_args, get_origin

from typing_extensions import get_protocol_members

from wirescan._internal.open_generics import (
    close_generic,
    contains_typevar,
    generic_parameters,
    substitute_typevars,
)
from wirescan._internal.type_checks import (
    is_interface,
    is_protocol_class,
    is_public_qualname,
    is_runtime_class,
)

_TYPING_ROOTS: tuple[Any, ...] = (object, ABC, Generic, Protocol)


class GenericArity(Enum):
    """Describes how a candidate class relates to generics."""

    NONE = auto()
    """The class is not generic and binds no generic base."""

    OPEN = auto()
    """The class still declares unbound TypeVars, e.g. ``class Repo(Generic[T])``."""

    CLOSED = auto()
    """The class binds every argument of a generic base, e.g. ``class UserRepo(Repo[User])``."""


@dataclass(frozen=True, slots=True)
class CandidateType:
    """An immutable description of a class considered for registration."""

    implementation_type: type[Any]
    name: str
    """Fully-qualified name: ``module.qualname``."""
    module: str
    is_concrete: bool
    is_public: bool
    interfaces: tuple[Any, ...]
    """Transitive interfaces in MRO discovery order, closed generics as aliases."""
    generic_arity: GenericArity

    @classmethod
    def from_type(cls, implementation_type: type[Any]) -> CandidateType:
        """Introspect ``implementation_type`` into a candidate description."""
        module = getattr(implementation_type, "__module__", "") or ""
        qualname = implementation_type.__qualname__
        return cls(
            implementation_type=implementation_type,
            name=f"{module}.{qualname}" if module else qualname,
            module=module,
            is_concrete=is_concrete_class(implementation_type),
            is_public=is_public_qualname(qualname),
            interfaces=implemented_interfaces(implementation_type),
            generic_arity=generic_arity(implementation_type),
        )

    @property
    def simple_name(self) -> str:
        return self.implementation_type.__name__


def is_concrete_class(candidate: object) -> bool:
    """Return true when ``candidate`` is a class a container can instantiate.

    Interfaces, abstract classes, metaclasses, enums and builtins are excluded.
    """
    if not is_runtime_class(candidate):
        return False
    if candidate.__module__ == "builtins":
        return False
    if is_interface(candidate) or inspect.isabstract(candidate):
        return False
    if issubclass(candidate, type):
        return False
    return not issubclass(candidate, Enum)


def generic_arity(candidate: type[Any]) -> GenericArity:
    if generic_parameters(candidate):
        return GenericArity.OPEN
    if any(get_args(base) for base in _declared_bases(candidate)):
        return GenericArity.CLOSED
    return GenericArity.NONE


def base_types(implementation_type: type[Any]) -> tuple[Any, ...]:
    """Return every transitive base of a class, excluding the class itself.

    Generic bases are reported as aliases closed over the arguments bound by
    subclasses, so ``class UserRepo(SqlRepo[User])`` with
    ``class SqlRepo(Repository[T])`` yields ``SqlRepo[User]`` and
    ``Repository[User]``.
    """
    found: list[Any] = []
    _collect_bases(implementation_type, mapping={}, found=found)
    return tuple(base for base in found if base is not implementation_type)


def implemented_interfaces(implementation_type: type[Any]) -> tuple[Any, ...]:
    """Return the transitive interface set of a class, excluding the class itself."""
    return tuple(
        base
        for base in base_types(implementation_type)
        if is_interface(get_origin(base) or base)
    )


def is_assignable(implementation_type: Any, service_type: Any) -> bool:
    """Return whether instances of ``implementation_type`` satisfy ``service_type``.

    Protocols match nominally or structurally, open generic patterns
    (``Repository`` or ``Repository[T]``) match any parametrization, and closed
    aliases (``Repository[User]``) must appear among the bound bases.
    """
    if implementation_type == service_type:
        return True
    if not is_runtime_class(implementation_type):
        return False

    origin = get_origin(service_type)
    if origin is not None:
        if contains_typevar(service_type):
            return is_assignable(implementation_type, origin)
        return service_type in base_types(implementation_type)

    if not is_runtime_class(service_type):
        return False
    if service_type in implementation_type.__mro__:
        return True
    if is_protocol_class(service_type):
        return all(
            hasattr(implementation_type, member) for member in get_protocol_members(service_type)
        )
    return False


def iter_module_classes(module: ModuleType) -> Iterator[type[Any]]:
    """Yield classes defined in ``module``, nested classes included, in declaration order."""
    module_name = module.__name__
    seen: set[int] = set()
    for value in list(vars(module).values()):
        if not is_runtime_class(value):
            continue
        if getattr(value, "__module__", None) != module_name:
            continue
        if value.__qualname__ != value.__name__:
            continue
        yield from _walk_nested(value, seen=seen)


def _walk_nested(candidate: type[Any], *, seen: set[int]) -> Iterator[type[Any]]:
    if id(candidate) in seen:
        return
    seen.add(id(candidate))
    yield candidate
    prefix = f"{candidate.__qualname__}."
    for value in list(vars(candidate).values()):
        if (
            is_runtime_class(value)
            and value.__module__ == candidate.__module__
            and value.__qualname__ == f"{prefix}{value.__name__}"
        ):
            yield from _walk_nested(value, seen=seen)


def _declared_bases(candidate: type[Any]) -> tuple[Any, ...]:
    return tuple(vars(candidate).get("__orig_bases__", candidate.__bases__))


def _collect_bases(candidate: type[Any], *, mapping: dict[Any, Any], found: list[Any]) -> None:
    for base in _declared_bases(candidate):
        origin = get_origin(base) or base
        if not is_runtime_class(origin) or origin in _TYPING_ROOTS:
            continue
        arguments = get_args(base)
        if arguments:
            bound = tuple(substitute_typevars(argument, mapping=mapping) for argument in arguments)
            key = close_generic(origin, bound)
            child_mapping = dict(zip(generic_parameters(origin), bound))
        else:
            key = origin
            child_mapping = {}
        if key not in found:
            found.append(key)
        _collect_bases(origin, mapping=child_mapping, found=found)
