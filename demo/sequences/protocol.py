"""Result interface for number generators."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class NumberGeneratorProtocol(Protocol):
    """Anything that accumulates deltas and reports the running total."""

    def add_and_get(self, delta: int) -> int: ...
