from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar, get_args, get_origin


def canonicalize_open_key(dependency: Any) -> Any | None:
    """Normalize a dependency key into an open-generic pattern.

    Both a bare generic class (``Repository``) and its TypeVar-parametrized
    alias (``Repository[T]``) normalize to the same alias, so either spelling
    can be used as a decoration pattern.

    Args:
        dependency: Candidate service key.

    Returns:
        A normalized open-generic key when ``dependency`` contains TypeVars, or
        ``None`` when the key is not open-generic.

    """
    origin = get_origin(dependency)
    if origin is None:
        parameters = generic_parameters(dependency)
        if not parameters:
            return None
        return _rebuild_alias(origin=dependency, args=parameters, fallback=dependency)

    args = get_args(dependency)
    if not args:
        return None
    normalized = _rebuild_alias(origin=origin, args=args, fallback=dependency)
    if contains_typevar(normalized):
        return normalized
    return None


def generic_parameters(value: Any) -> tuple[TypeVar, ...]:
    """Return the unbound TypeVars a class or alias still declares."""
    parameters = getattr(value, "__parameters__", ())
    if not isinstance(parameters, tuple):
        return ()
    return tuple(
        parameter
        for parameter in parameters
        if isinstance(parameter, TypeVar)
    )


def contains_typevar(value: Any) -> bool:
    """Return whether a type expression still contains a ``TypeVar``.

    Args:
        value: Type expression or object to inspect.

    Returns:
        ``True`` when any nested node contains a TypeVar, else ``False``.

    """
    if isinstance(value, TypeVar):
        return True

    origin = get_origin(value)
    if origin is not None:
        return any(contains_typevar(argument) for argument in get_args(value))

    return bool(generic_parameters(value))


def is_closed_generic(value: Any) -> bool:
    """Return whether ``value`` is a generic alias with every argument bound."""
    origin = get_origin(value)
    if origin is None:
        return False
    arguments = get_args(value)
    if not arguments:
        return False
    return not any(contains_typevar(argument) for argument in arguments)


def substitute_typevars(value: Any, *, mapping: Mapping[TypeVar, Any]) -> Any:
    """Substitute TypeVars in a type expression using a resolved mapping.

    Used to close generic base classes over the arguments a subclass binds,
    and to close decorator constructor annotations over the arguments of the
    decorated service.

    Args:
        value: Type expression template that may contain TypeVars.
        mapping: Mapping from template TypeVars to concrete type arguments.

    Returns:
        The substituted type expression with available TypeVars replaced.

    """
    if isinstance(value, TypeVar):
        return mapping.get(value, value)

    origin = get_origin(value)
    if origin is None:
        return value

    arguments = get_args(value)
    if not arguments:
        return value

    substituted_arguments = tuple(
        substitute_typevars(argument, mapping=mapping) for argument in arguments
    )
    return _rebuild_alias(origin=origin, args=substituted_arguments, fallback=value)


def close_generic(origin: Any, args: tuple[Any, ...]) -> Any:
    """Parametrize ``origin`` with ``args``, e.g. ``CachingRepository`` with ``(User,)``."""
    return _rebuild_alias(origin=origin, args=args, fallback=origin)


def _rebuild_alias(*, origin: Any, args: tuple[Any, ...], fallback: Any) -> Any:
    try:
        if len(args) == 1:
            return origin[args[0]]
        return origin[args]
    except TypeError:
        return fallback
