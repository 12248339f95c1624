from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from typing_extensions import Self

from wirescan.candidates import CandidateType, is_assignable
from wirescan.exceptions import WirescanInvalidArgumentError


class ImplementationTypeFilter:
    """Narrow a set of candidate classes with chained predicates.

    Every call keeps only the candidates matching the new predicate, so chained
    calls compose by logical AND.

    Examples:
        .. code-block:: python

            services.scan(
                lambda scan: scan.from_module_of(Greeter).add_classes(
                    lambda classes: classes.assignable_to(Greeter).not_in_namespaces("app.legacy"),
                ),
            )

    """

    def __init__(self, candidates: Iterable[CandidateType]) -> None:
        self._candidates = list(candidates)

    @property
    def candidates(self) -> list[CandidateType]:
        return list(self._candidates)

    def where(self, predicate: Callable[[CandidateType], bool]) -> Self:
        """Keep candidates for which ``predicate`` returns true."""
        if predicate is None:
            msg = "where() parameter 'predicate' must not be None."
            raise WirescanInvalidArgumentError(msg)
        self._candidates = [candidate for candidate in self._candidates if predicate(candidate)]
        return self

    def assignable_to(self, base_type: Any) -> Self:
        """Keep candidates assignable to ``base_type``, generic patterns included."""
        return self.assignable_to_any(base_type)

    def assignable_to_any(self, *base_types: Any) -> Self:
        _require_types(base_types, "assignable_to_any")
        return self.where(
            lambda candidate: any(
                is_assignable(candidate.implementation_type, base_type) for base_type in base_types
            ),
        )

    def not_assignable_to(self, base_type: Any) -> Self:
        _require_types((base_type,), "not_assignable_to")
        return self.where(
            lambda candidate: not is_assignable(candidate.implementation_type, base_type),
        )

    def in_namespace_of(self, *marker_types: Any) -> Self:
        """Keep candidates defined in the module of a marker type or below it."""
        return self.in_namespaces(*_namespaces_of(marker_types, "in_namespace_of"))

    def in_namespaces(self, *namespaces: str) -> Self:
        _require_types(namespaces, "in_namespaces")
        return self.where(lambda candidate: _in_any_namespace(candidate, namespaces, exact=False))

    def in_exact_namespace_of(self, *marker_types: Any) -> Self:
        """Keep candidates defined exactly in the module of a marker type."""
        return self.in_exact_namespaces(*_namespaces_of(marker_types, "in_exact_namespace_of"))

    def in_exact_namespaces(self, *namespaces: str) -> Self:
        _require_types(namespaces, "in_exact_namespaces")
        return self.where(lambda candidate: _in_any_namespace(candidate, namespaces, exact=True))

    def not_in_namespace_of(self, *marker_types: Any) -> Self:
        return self.not_in_namespaces(*_namespaces_of(marker_types, "not_in_namespace_of"))

    def not_in_namespaces(self, *namespaces: str) -> Self:
        _require_types(namespaces, "not_in_namespaces")
        return self.where(
            lambda candidate: not _in_any_namespace(candidate, namespaces, exact=False),
        )

    def not_in_exact_namespace_of(self, *marker_types: Any) -> Self:
        return self.not_in_exact_namespaces(
            *_namespaces_of(marker_types, "not_in_exact_namespace_of"),
        )

    def not_in_exact_namespaces(self, *namespaces: str) -> Self:
        _require_types(namespaces, "not_in_exact_namespaces")
        return self.where(
            lambda candidate: not _in_any_namespace(candidate, namespaces, exact=True),
        )

    def with_attribute(self, name: str) -> Self:
        """Keep candidates carrying the class attribute ``name``."""
        return self.where(lambda candidate: hasattr(candidate.implementation_type, name))

    def without_attribute(self, name: str) -> Self:
        return self.where(lambda candidate: not hasattr(candidate.implementation_type, name))


def _in_any_namespace(candidate: CandidateType, namespaces: Iterable[str], *, exact: bool) -> bool:
    for namespace in namespaces:
        if candidate.module == namespace:
            return True
        if not exact and candidate.module.startswith(f"{namespace}."):
            return True
    return False


def _namespaces_of(marker_types: tuple[Any, ...], method_name: str) -> tuple[str, ...]:
    _require_types(marker_types, method_name)
    return tuple(marker_type.__module__ for marker_type in marker_types)


def _require_types(values: tuple[Any, ...], method_name: str) -> None:
    if not values or any(value is None for value in values):
        msg = f"{method_name}() requires at least one argument and none may be None."
        raise WirescanInvalidArgumentError(msg)
