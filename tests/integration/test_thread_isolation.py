"""Concurrent tests for per-thread isolation.

These tests load real private module copies from several threads at once
and verify that no class state leaks between them. They use real threading
to catch races between get(), release() and remove().
"""

import sys
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from demo.badlib.number_generator import NumberGenerator
from demo.sequences.protocol import NumberGeneratorProtocol
from thread_isolation.application.registry import IsolatedTypeRegistry
from thread_isolation.domain.errors import LifecycleError
from thread_isolation.domain.value_objects import for_target_type

N_THREADS = 8


@pytest.fixture
def registry(make_registry) -> IsolatedTypeRegistry:
    return make_registry(NumberGenerator)


@pytest.mark.integration
class TestPrivateClassesPerThread:
    """Each thread sees its own NumberGenerator class and state."""

    def test_threads_resolve_distinct_classes(self, registry: IsolatedTypeRegistry) -> None:
        classes: list[type] = []
        barrier = threading.Barrier(N_THREADS)

        def worker() -> None:
            barrier.wait()
            classes.append(registry.get().resolve(NumberGenerator))

        threads = [threading.Thread(target=worker) for _ in range(N_THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(classes) == N_THREADS
        assert len({id(c) for c in classes}) == N_THREADS
        assert NumberGenerator not in classes
        assert registry.context_count() == N_THREADS

    def test_concurrent_generators_do_not_interfere(
        self, registry: IsolatedTypeRegistry
    ) -> None:
        """Every thread resets and accumulates its own private total."""
        shared_total = NumberGenerator.current_total()
        results: dict[int, list[int]] = {}
        errors: list[Exception] = []
        barrier = threading.Barrier(N_THREADS)
        spec = for_target_type(NumberGeneratorProtocol).implementing_type(NumberGenerator)

        def worker(thread_id: int) -> None:
            try:
                context = registry.get()
                generator = context.new_object(
                    spec.factory_method("create").arguments(thread_id * 100)
                )
                barrier.wait()
                results[thread_id] = [generator.add_and_get(1) for _ in range(3)]
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(N_THREADS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        for thread_id, values in results.items():
            base = thread_id * 100
            assert values == [base + 1, base + 2, base + 3]
        assert NumberGenerator.current_total() == shared_total

    def test_pool_threads_reuse_their_context(self, registry: IsolatedTypeRegistry) -> None:
        def label_of_current_thread(_: int) -> tuple[str, str]:
            return threading.current_thread().name, registry.get().label

        with ThreadPoolExecutor(max_workers=4) as pool:
            pairs = list(pool.map(label_of_current_thread, range(40)))

        labels_by_thread: dict[str, set[str]] = {}
        for thread_name, label in pairs:
            labels_by_thread.setdefault(thread_name, set()).add(label)

        assert all(len(labels) == 1 for labels in labels_by_thread.values())
        assert registry.context_count() == len(labels_by_thread)

    def test_private_copies_registered_under_aliases(
        self, registry: IsolatedTypeRegistry
    ) -> None:
        context = registry.get()
        private_class = context.resolve(NumberGenerator)
        alias = f"demo.badlib.number_generator__isolated__{context.label}"

        assert private_class.__module__ == alias
        assert sys.modules[alias].NumberGenerator is private_class


@pytest.mark.integration
class TestLifecycleUnderConcurrency:
    def test_remove_unregisters_private_modules(self, registry: IsolatedTypeRegistry) -> None:
        aliases: list[str] = []

        def worker() -> None:
            aliases.append(registry.get().resolve(NumberGenerator).__module__)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(alias in sys.modules for alias in aliases)
        registry.remove()
        assert not any(alias in sys.modules for alias in aliases)

    def test_remove_racing_get(self, registry: IsolatedTypeRegistry) -> None:
        """Workers either get a working context or LifecycleError, nothing else."""
        started = threading.Barrier(N_THREADS + 1)
        unexpected: list[Exception] = []
        stopped: list[str] = []

        def worker() -> None:
            started.wait()
            while True:
                try:
                    registry.get()
                except LifecycleError:
                    stopped.append(threading.current_thread().name)
                    return
                except Exception as e:
                    unexpected.append(e)
                    return

        threads = [threading.Thread(target=worker) for _ in range(N_THREADS)]
        for t in threads:
            t.start()
        started.wait()
        registry.remove()
        for t in threads:
            t.join(timeout=10)

        assert unexpected == []
        assert len(stopped) == N_THREADS
        assert registry.context_count() == 0

    def test_context_closed_by_remove_refuses_work(
        self, registry: IsolatedTypeRegistry
    ) -> None:
        contexts = []
        worker = threading.Thread(target=lambda: contexts.append(registry.get()))
        worker.start()
        worker.join()

        registry.remove()

        with pytest.raises(LifecycleError):
            contexts[0].new_object(for_target_type(NumberGenerator))
