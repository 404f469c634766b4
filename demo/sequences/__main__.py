# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Map a fixed set of sequences in parallel, with and without isolation.

Run with ``python -m demo.sequences``. Logging follows THREAD_ISOLATION_LOG_*.
"""

from concurrent.futures import ThreadPoolExecutor

from demo.sequences.generators import (
    NonThreadSafeNumberSequenceGenerator,
    ThreadSafeNumberSequenceGenerator,
)
from demo.sequences.settings import NumberSequenceSettings
from thread_isolation.adapters.config.logging import configure_logging, get_logger
from thread_isolation.adapters.config.settings import get_settings

DEFAULT_SETTINGS = (
    NumberSequenceSettings(start_value=1, step_size=1, sequence_size=10),
    NumberSequenceSettings(start_value=0, step_size=3, sequence_size=11),
    NumberSequenceSettings(start_value=22, step_size=1, sequence_size=4),
    NumberSequenceSettings(start_value=1, step_size=2, sequence_size=3),
    NumberSequenceSettings(start_value=4, step_size=5, sequence_size=6),
)


def main() -> dict[str, bool]:
    """Run both generators in parallel and report which produced correct sequences."""
    settings = get_settings()
    configure_logging(log_level=settings.logging.level, json_output=settings.logging.json_output)
    logger = get_logger(__name__)

    expected = [s.expected() for s in DEFAULT_SETTINGS]
    outcome: dict[str, bool] = {}
    with ThreadSafeNumberSequenceGenerator() as thread_safe:
        for name, generator in (
            ("non_thread_safe", NonThreadSafeNumberSequenceGenerator()),
            ("thread_safe", thread_safe),
        ):
            with ThreadPoolExecutor(max_workers=len(DEFAULT_SETTINGS)) as pool:
                results = list(pool.map(generator, DEFAULT_SETTINGS))
            outcome[name] = results == expected
            logger.info("sequences_mapped", generator=name, correct=outcome[name])
    return outcome


if __name__ == "__main__":
    main()
