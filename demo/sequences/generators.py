# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Sequence generators with and without per-thread isolation.

Both map a NumberSequenceSettings to the list of generated numbers and can
be passed straight to ``map()`` or ``ThreadPoolExecutor.map()``. Only the
thread-safe one survives being mapped in parallel.
"""

from types import TracebackType

from demo.badlib.number_generator import NumberGenerator
from demo.sequences.protocol import NumberGeneratorProtocol
from demo.sequences.settings import NumberSequenceSettings
from thread_isolation.application.registry import IsolatedTypeRegistry
from thread_isolation.domain.value_objects import for_target_type


def _generate(generator: NumberGeneratorProtocol, settings: NumberSequenceSettings) -> list[int]:
    values = [generator.add_and_get(settings.start_value)]
    for _ in range(settings.sequence_size - 1):
        values.append(generator.add_and_get(settings.step_size))
    return values


class NonThreadSafeNumberSequenceGenerator:
    """Uses the shared NumberGenerator class directly.

    Correct when mapped sequentially. In parallel, all callers share one
    class-level total and one class-level lock.
    """

    def __call__(self, settings: NumberSequenceSettings) -> list[int]:
        return _generate(NumberGenerator(), settings)


class ThreadSafeNumberSequenceGenerator:
    """Builds each thread's generator from that thread's private NumberGenerator copy.

    Example:
        >>> with ThreadSafeNumberSequenceGenerator() as generate:
        ...     with ThreadPoolExecutor() as pool:
        ...         results = list(pool.map(generate, settings_list))
    """

    def __init__(self, registry: IsolatedTypeRegistry | None = None) -> None:
        self._registry = registry or IsolatedTypeRegistry.create(NumberGenerator)
        self._spec = for_target_type(NumberGeneratorProtocol).implementing_type(NumberGenerator)

    def __call__(self, settings: NumberSequenceSettings) -> list[int]:
        generator = self._registry.get().new_object(self._spec)
        return _generate(generator, settings)

    def close(self) -> None:
        self._registry.remove()

    def __enter__(self) -> "ThreadSafeNumberSequenceGenerator":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
