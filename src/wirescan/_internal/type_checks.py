from __future__ import annotations

import inspect
import types
from typing import Any, Generic, Protocol, TypeGuard

_NEVER_INTERFACES: tuple[Any, ...] = (object, Generic, Protocol)


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_protocol_class(candidate: object) -> bool:
    """Return true when candidate is a ``typing.Protocol`` class."""
    return is_runtime_class(candidate) and bool(getattr(candidate, "_is_protocol", False))


def is_interface(candidate: object) -> bool:
    """Return true when candidate plays the role of an interface.

    Protocol classes and abstract classes (with unimplemented abstract methods)
    are interfaces. ``object``, ``Generic`` and ``Protocol`` never are.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    if not is_runtime_class(candidate):
        return False
    if any(candidate is excluded for excluded in _NEVER_INTERFACES):
        return False
    return is_protocol_class(candidate) or inspect.isabstract(candidate)


def is_public_qualname(qualname: str) -> bool:
    return not any(part.startswith("_") for part in qualname.split("."))


def describe_type(value: Any) -> str:
    if is_runtime_class(value):
        return value.__qualname__
    return repr(value)


__all__ = [
    "describe_type",
    "is_interface",
    "is_protocol_class",
    "is_public_qualname",
    "is_runtime_class",
]
