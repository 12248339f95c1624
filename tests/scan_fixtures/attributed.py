from __future__ import annotations

from typing import Protocol

from wirescan import Lifetime, RegistrationStrategy, service_descriptor


class Notifier(Protocol):
    def notify(self, message: str) -> str: ...


class Auditable(Protocol):
    def audit(self) -> list[str]: ...


class BaseNotifier:
    pass


@service_descriptor(Notifier, lifetime=Lifetime.SINGLETON)
class EmailNotifier(BaseNotifier, Notifier):
    def notify(self, message: str) -> str:
        return f"email: {message}"


@service_descriptor()
class SmsNotifier(BaseNotifier, Notifier, Auditable):
    def notify(self, message: str) -> str:
        return f"sms: {message}"

    def audit(self) -> list[str]:
        return []


@service_descriptor(Notifier, strategy=RegistrationStrategy.SKIP)
class PushNotifier(Notifier):
    def notify(self, message: str) -> str:
        return f"push: {message}"


class Undeclared:
    pass
