# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Registry handing out one loading context per (target types, thread).

Isolation by duplication instead of serialization: rather than putting a
non-reentrant type behind a mutex, every thread gets its own private copy
of the type's module, and with it a private copy of all state hanging off
the type.
"""

import inspect
import itertools
import threading
from types import TracebackType

import structlog

from thread_isolation.adapters.config.settings import IsolationSettings, get_settings
from thread_isolation.adapters.outbound.importlib_module_loader import ImportlibModuleLoader
from thread_isolation.application.construction_engine import ConstructionEngine
from thread_isolation.application.loading_context import LoadingContext
from thread_isolation.application.ports import ModuleLoaderPort
from thread_isolation.domain.eligibility import EligibilityPolicy
from thread_isolation.domain.errors import ConfigurationError, LifecycleError
from thread_isolation.domain.value_objects import fully_qualified_name

logger = structlog.get_logger(__name__)

# Process-wide so private module aliases never collide across registries
_context_labels = itertools.count(1)


class IsolatedTypeRegistry:
    """Per-thread loading contexts for a set of registered target types.

    Responsibilities:
    - Validate target types against the eligibility gate at registration
    - Lazily create one LoadingContext per calling thread
    - Tear down all contexts on ``remove()``

    Thread Safety:
    - THREAD-SAFE: the thread -> context map and the removed flag are
      protected by an internal lock. Module copies are executed outside it,
      by the owning thread, so first-time ``get()`` calls from different
      threads never wait on each other's module loading.
    - A ``get()`` racing ``remove()`` either raises LifecycleError or returns
      a context that ``remove()`` then closes; never a half-closed one.

    Contexts are keyed by ``threading.Thread`` object, not by thread ident,
    and are not released when their thread ends; call ``release()`` from the
    thread or ``remove()`` when done.

    Example:
        >>> registry = IsolatedTypeRegistry.create(NumberGenerator)
        >>> generator = registry.get().new_object(for_target_type(NumberGenerator))
        >>> generator.add_and_get(11)
        11
        >>> registry.remove()
    """

    def __init__(
        self,
        target_types: tuple[type, ...],
        module_loader: ModuleLoaderPort,
        engine: ConstructionEngine | None = None,
        alias_prefix: str = "__isolated__",
    ) -> None:
        """Initialize registry. Prefer ``create()``, which validates target types.

        Args:
            target_types: Registered (already validated) target types.
            module_loader: Implementation of ModuleLoaderPort.
            engine: Construction engine shared by all contexts.
            alias_prefix: Infix used in private module aliases.
        """
        self._target_types = target_types
        self._policy = EligibilityPolicy.for_types(*target_types)
        self._loader = module_loader
        self._engine = engine or ConstructionEngine()
        self._alias_prefix = alias_prefix
        self._lock = threading.Lock()
        self._contexts: dict[threading.Thread, LoadingContext] = {}
        self._removed = False

    @classmethod
    def create(
        cls,
        *target_types: type,
        module_loader: ModuleLoaderPort | None = None,
        engine: ConstructionEngine | None = None,
        settings: IsolationSettings | None = None,
    ) -> "IsolatedTypeRegistry":
        """Register ``target_types`` for per-thread isolation.

        Args:
            *target_types: Classes whose modules get a private copy per thread.
            module_loader: Module loader (default: ImportlibModuleLoader).
            engine: Construction engine (default: a new ConstructionEngine).
            settings: Isolation settings (default: from environment).

        Returns:
            Registry handle; call ``get()`` from each worker thread.

        Raises:
            ConfigurationError: If no type is given or a type cannot be isolated.
        """
        settings = settings or get_settings().isolation
        if not target_types:
            raise ConfigurationError("At least one target type is required")

        loader = module_loader or ImportlibModuleLoader(deny_stdlib=settings.deny_stdlib)
        allow_list = (
            EligibilityPolicy.of(settings.protected_namespaces)
            if settings.protected_namespaces
            else None
        )
        for target_type in target_types:
            cls._validate(target_type, allow_list, loader)

        registry = cls(
            target_types=tuple(target_types),
            module_loader=loader,
            engine=engine,
            alias_prefix=settings.module_alias_prefix,
        )
        logger.info(
            "registry_created",
            target_types=[fully_qualified_name(t) for t in target_types],
            namespaces=sorted(registry.policy.namespaces),
        )
        return registry

    @staticmethod
    def _validate(
        target_type: type,
        allow_list: EligibilityPolicy | None,
        loader: ModuleLoaderPort,
    ) -> None:
        name = fully_qualified_name(target_type)
        if not inspect.isclass(target_type):
            raise ConfigurationError(f"Type {name} is not protected: not a class")
        if "<locals>" in target_type.__qualname__:
            raise ConfigurationError(
                f"Type {name} is not protected: classes defined inside functions "
                "cannot be reloaded"
            )
        if allow_list is not None:
            allow_list.check(target_type, ConfigurationError)
        if not loader.is_isolatable(target_type.__module__):
            raise ConfigurationError(
                f"Type {name} is not protected: module {target_type.__module__} "
                "cannot be loaded from Python source"
            )

    @property
    def target_types(self) -> tuple[type, ...]:
        return self._target_types

    @property
    def policy(self) -> EligibilityPolicy:
        return self._policy

    @property
    def is_removed(self) -> bool:
        return self._removed

    def context_count(self) -> int:
        """Number of live per-thread contexts."""
        with self._lock:
            return len(self._contexts)

    def get(self) -> LoadingContext:
        """Return the calling thread's loading context, creating it on first use.

        Raises:
            LifecycleError: If the registry was removed.
        """
        thread = threading.current_thread()
        created = False
        with self._lock:
            if self._removed:
                raise LifecycleError(
                    "Registry was removed; call IsolatedTypeRegistry.create() again"
                )
            context = self._contexts.get(thread)
            if context is None:
                context = LoadingContext(
                    label=f"ctx{next(_context_labels)}",
                    policy=self._policy,
                    module_loader=self._loader,
                    engine=self._engine,
                    alias_prefix=self._alias_prefix,
                    owner=thread,
                )
                self._contexts[thread] = context
                created = True

        if created:
            logger.debug("context_created", context=context.label, owner=thread.name)
        return context

    def release(self) -> None:
        """Close only the calling thread's context.

        A later ``get()`` from the same thread builds a fresh context with
        fresh module state. No-op if the thread has no context.
        """
        with self._lock:
            context = self._contexts.pop(threading.current_thread(), None)
        if context is not None:
            context.close()

    def remove(self) -> None:
        """Close every per-thread context and retire the registry. Idempotent."""
        with self._lock:
            if self._removed:
                return
            self._removed = True
            contexts = list(self._contexts.values())
            self._contexts.clear()

        for context in contexts:
            context.close()

        logger.info(
            "registry_removed",
            target_types=[fully_qualified_name(t) for t in self._target_types],
            contexts=len(contexts),
        )

    def __enter__(self) -> "IsolatedTypeRegistry":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.remove()

    def __repr__(self) -> str:
        names = ", ".join(fully_qualified_name(t) for t in self._target_types)
        state = "removed" if self._removed else f"{len(self._contexts)} context(s)"
        return f"IsolatedTypeRegistry([{names}], {state})"
