import sys

from wirescan.registrations import Lifetime
from wirescan.strategies import RegistrationStrategy

DEFAULT_LIFETIME = Lifetime.TRANSIENT

DEFAULT_REGISTRATION_STRATEGY = RegistrationStrategy.APPEND

DEFAULT_INTERFACE_PREFIX = "I"
"""Prefix that turns an implementation name into its matching interface name."""

DEFAULT_IGNORED_TOP_LEVEL_MODULES: frozenset[str] = frozenset(
    {
        *sys.stdlib_module_names,
        "builtins",
        "typing_extensions",
        "wirescan",
    },
)
"""Top-level packages skipped by ``from_application_dependencies``."""
