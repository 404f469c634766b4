# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""A badly written, non-reentrant number generator.

Stands in for a third-party library we cannot change: the running total
lives on the class, shared by every instance, and each call holds a
class-wide lock while it sleeps. Concurrent callers therefore corrupt
each other's sequences and are serialized behind one another.
"""

import functools
import threading
import time

SLEEP_MILLIS = 20


@functools.singledispatch
def _create(start: int = 0) -> "NumberGenerator":
    return NumberGenerator(start)


@_create.register(bool)
def _(keep_total: bool) -> "NumberGenerator":
    # Legacy flag form: True keeps the current shared total
    generator = NumberGenerator.__new__(NumberGenerator)
    if not keep_total:
        NumberGenerator._total = 0
    return generator


class NumberGenerator:
    """Accumulator whose state is (unfortunately) class-wide."""

    SLEEP_MILLIS = SLEEP_MILLIS

    _total = 0
    _lock = threading.Lock()

    def __init__(self, start: int = 0) -> None:
        # Resets the state of every other instance too
        NumberGenerator._total = start

    create = staticmethod(_create)

    def add_and_get(self, delta: int) -> int:
        with NumberGenerator._lock:
            time.sleep(SLEEP_MILLIS / 1000)
            NumberGenerator._total += delta
            return NumberGenerator._total

    @classmethod
    def current_total(cls) -> int:
        return cls._total
