from __future__ import annotations

from typing import Generic, TypeVar

from scan_fixtures.repositories import Order, Repository, User, UserRepository

from wirescan._internal.open_generics import (
    canonicalize_open_key,
    close_generic,
    contains_typevar,
    is_closed_generic,
    substitute_typevars,
)
from wirescan._internal.type_checks import is_interface, is_public_qualname

K = TypeVar("K")
V = TypeVar("V")


class _Pair(Generic[K, V]):
    pass


def test_canonicalize_open_key_accepts_bare_class_and_typevar_alias() -> None:
    bare = canonicalize_open_key(Repository)
    aliased = canonicalize_open_key(Repository[K])

    assert bare is not None
    assert aliased is not None
    assert bare.__origin__ is Repository
    assert aliased.__origin__ is Repository


def test_canonicalize_open_key_rejects_closed_and_plain_types() -> None:
    assert canonicalize_open_key(Repository[User]) is None
    assert canonicalize_open_key(User) is None
    assert canonicalize_open_key(UserRepository) is None


def test_contains_typevar_and_is_closed_generic() -> None:
    assert contains_typevar(Repository[K])
    assert contains_typevar(_Pair[User, list[V]])
    assert not contains_typevar(Repository[User])
    assert is_closed_generic(_Pair[User, Order])
    assert not is_closed_generic(_Pair[User, V])
    assert not is_closed_generic(User)


def test_substitute_typevars_closes_nested_arguments() -> None:
    assert substitute_typevars(_Pair[K, list[V]], mapping={K: User, V: Order}) == _Pair[
        User,
        list[Order],
    ]


def test_close_generic_supports_multiple_arguments() -> None:
    assert close_generic(_Pair, (User, Order)) == _Pair[User, Order]
    assert close_generic(Repository, (User,)) == Repository[User]


def test_close_generic_falls_back_on_non_generic_origin() -> None:
    assert close_generic(User, (Order,)) is User


def test_type_checks() -> None:
    assert is_interface(Repository)
    assert not is_interface(UserRepository)
    assert not is_interface(object)
    assert is_public_qualname("Outer.Inner")
    assert not is_public_qualname("Outer._Inner")
