from __future__ import annotations

from scan_fixtures import greetings
from scan_fixtures.naming import Clock


class Consumer:
    def __init__(self, greeter: greetings.Greeter, clock: Clock) -> None:
        self.greeter = greeter
        self.clock = clock
