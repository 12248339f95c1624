"""Module resolution: where candidate classes come from."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import sys
from collections.abc import Callable, Iterable, Iterator
from types import ModuleType
from typing import Any, get_origin

from wirescan.candidates import CandidateType, iter_module_classes
from wirescan.defaults import DEFAULT_IGNORED_TOP_LEVEL_MODULES, DEFAULT_INTERFACE_PREFIX
from wirescan.exceptions import WirescanInvalidArgumentError
from wirescan.selectors import (
    ImplementationTypeSelector,
    PlannedRegistration,
    SelectorProtocol,
    ServiceTypeSelector,
)
from wirescan.strategies import RegistrationStrategy

logger = logging.getLogger(__name__)


class TypeSourceSelector:
    """Entry point of the scan chain: choose the modules to collect classes from.

    Modules that fail to import are logged and skipped; the rest of the scan
    continues with whatever could be loaded.
    """

    def __init__(self, *, interface_prefix: str = DEFAULT_INTERFACE_PREFIX) -> None:
        self._interface_prefix = interface_prefix
        self._selectors: list[SelectorProtocol] = []

    def from_modules(self, *modules: ModuleType | str) -> ImplementationTypeSelector:
        """Collect classes from modules given as module objects or dotted names."""
        if not modules or any(module is None for module in modules):
            msg = "from_modules() requires at least one module and none may be None."
            raise WirescanInvalidArgumentError(msg)
        return self._add_selector(self._load_all(modules))

    def from_module_of(self, *types: Any) -> ImplementationTypeSelector:
        """Collect classes from the modules defining ``types``."""
        if not types or any(type_ is None for type_ in types):
            msg = "from_module_of() requires at least one type and none may be None."
            raise WirescanInvalidArgumentError(msg)
        module_names = [(get_origin(type_) or type_).__module__ for type_ in types]
        return self._add_selector(self._load_all(module_names))

    def from_module_dependencies(self, module: ModuleType | str) -> ImplementationTypeSelector:
        """Collect classes from ``module`` and from every module it references.

        References are module-valued globals and the defining modules of
        imported classes and functions.
        """
        if module is None:
            msg = "from_module_dependencies() parameter 'module' must not be None."
            raise WirescanInvalidArgumentError(msg)
        root = self._load(module)
        if root is None:
            return self._add_selector([])
        return self._add_selector([root, *self._load_all(_referenced_module_names(root))])

    def from_package(self, package: ModuleType | str) -> ImplementationTypeSelector:
        """Collect classes from a package and all of its submodules, recursively."""
        if package is None:
            msg = "from_package() parameter 'package' must not be None."
            raise WirescanInvalidArgumentError(msg)
        root = self._load(package)
        if root is None:
            return self._add_selector([])
        return self._add_selector([root, *self._load_all(_submodule_names(root))])

    def from_application_dependencies(
        self,
        predicate: Callable[[ModuleType], bool] | None = None,
    ) -> ImplementationTypeSelector:
        """Collect classes from every module loaded in the process.

        The standard library, ``typing_extensions`` and ``wirescan`` itself are
        never scanned.

        Args:
            predicate: Optional filter receiving each loaded module.

        """
        modules = [
            module
            for name, module in list(sys.modules.items())
            if isinstance(module, ModuleType)
            and name.partition(".")[0] not in DEFAULT_IGNORED_TOP_LEVEL_MODULES
        ]
        if predicate is not None:
            modules = [module for module in modules if predicate(module)]
        return self._add_selector(modules)

    def from_entry_module(self) -> ImplementationTypeSelector:
        """Collect classes from the ``__main__`` module."""
        main_module = sys.modules.get("__main__")
        return self._add_selector([main_module] if main_module is not None else [])

    def add_types(self, *types: type[Any]) -> ServiceTypeSelector:
        """Select explicit classes, filtered to public concrete classes."""
        if not types or any(type_ is None for type_ in types):
            msg = "add_types() requires at least one type and none may be None."
            raise WirescanInvalidArgumentError(msg)
        selector = ImplementationTypeSelector(
            self,
            _candidates_from_types(types),
            interface_prefix=self._interface_prefix,
        )
        self._selectors.append(selector)
        return selector.add_classes()

    def plan(self, strategy: RegistrationStrategy) -> Iterator[PlannedRegistration]:
        for selector in self._selectors:
            yield from selector.plan(strategy)

    def _add_selector(self, modules: Iterable[ModuleType]) -> ImplementationTypeSelector:
        selector = ImplementationTypeSelector(
            self,
            _candidates_from_modules(modules),
            interface_prefix=self._interface_prefix,
        )
        self._selectors.append(selector)
        return selector

    def _load_all(self, modules: Iterable[ModuleType | str]) -> list[ModuleType]:
        loaded: list[ModuleType] = []
        for module in modules:
            resolved = self._load(module)
            if resolved is not None and all(resolved is not seen for seen in loaded):
                loaded.append(resolved)
        return loaded

    def _load(self, module: ModuleType | str) -> ModuleType | None:
        if isinstance(module, ModuleType):
            return module
        if not isinstance(module, str):
            msg = f"Expected a module or a dotted module name, got {module!r}."
            raise WirescanInvalidArgumentError(msg)
        try:
            return importlib.import_module(module)
        except Exception as error:  # noqa: BLE001
            logger.warning("Skipping module %r: %s: %s", module, type(error).__name__, error)
            return None


def _candidates_from_modules(modules: Iterable[ModuleType]) -> list[CandidateType]:
    seen: set[int] = set()
    candidates: list[CandidateType] = []
    for module in modules:
        for implementation_type in iter_module_classes(module):
            if id(implementation_type) in seen:
                continue
            seen.add(id(implementation_type))
            candidates.append(CandidateType.from_type(implementation_type))
    return candidates


def _candidates_from_types(types: Iterable[Any]) -> list[CandidateType]:
    candidates: list[CandidateType] = []
    for type_ in types:
        if not isinstance(type_, type):
            msg = f"add_types() expects classes, got {type_!r}."
            raise WirescanInvalidArgumentError(msg)
        if all(candidate.implementation_type is not type_ for candidate in candidates):
            candidates.append(CandidateType.from_type(type_))
    return candidates


def _referenced_module_names(module: ModuleType) -> list[str]:
    names: list[str] = []
    for value in list(vars(module).values()):
        if isinstance(value, ModuleType):
            name = value.__name__
        elif isinstance(value, type) or callable(value):
            name = getattr(value, "__module__", None)
        else:
            continue
        if isinstance(name, str) and name != module.__name__ and name not in names:
            names.append(name)
    return names


def _submodule_names(package: ModuleType) -> list[str]:
    path = getattr(package, "__path__", None)
    if path is None:
        return []
    return [
        module_info.name
        for module_info in pkgutil.walk_packages(
            path,
            prefix=f"{package.__name__}.",
            onerror=_log_walk_error,
        )
    ]


def _log_walk_error(name: str) -> None:
    logger.debug("Could not import package %r while walking submodules", name)
