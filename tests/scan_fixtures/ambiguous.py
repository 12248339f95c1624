from __future__ import annotations

from typing import Protocol

from scan_fixtures import naming


class IStore(Protocol):
    def load(self) -> str: ...


class Store(IStore, naming.IStore):
    def load(self) -> str:
        return "stored"
