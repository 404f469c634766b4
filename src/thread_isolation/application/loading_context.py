# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Per-thread loading context holding private module copies.

A LoadingContext is the unit of isolation. It resolves protected classes
to the definitions found in its own private copies of their modules, so
class attributes and module globals of those copies are never shared with
another context. Unprotected classes resolve to themselves, the same way a
class loader delegates everything it does not own to its parent.
"""

import inspect
import threading
from collections.abc import Callable, Hashable
from types import ModuleType
from typing import Any

import structlog

from thread_isolation.application.construction_engine import ConstructionEngine
from thread_isolation.application.ports import ModuleLoaderPort
from thread_isolation.domain.eligibility import EligibilityPolicy
from thread_isolation.domain.errors import LifecycleError, ModuleIsolationError
from thread_isolation.domain.value_objects import ConstructionSpec, fully_qualified_name

logger = structlog.get_logger(__name__)


class LoadingContext:
    """Isolated namespace producing thread-private class definitions.

    Thread Safety:
    - Intended to be used only by the thread that obtained it from the
      registry. The internal lock only orders its own use against a
      concurrent ``close()`` issued by ``IsolatedTypeRegistry.remove()``.

    Attributes:
        label: Unique label (``ctx<n>``) used in private module aliases.
        policy: Eligibility policy of the owning registry.
        owner_name: Name of the thread the context was created for.
    """

    def __init__(
        self,
        label: str,
        policy: EligibilityPolicy,
        module_loader: ModuleLoaderPort,
        engine: ConstructionEngine | None = None,
        alias_prefix: str = "__isolated__",
        owner: threading.Thread | None = None,
    ) -> None:
        self._label = label
        self._policy = policy
        self._loader = module_loader
        self._engine = engine or ConstructionEngine()
        self._alias_prefix = alias_prefix
        self._owner_name = (owner or threading.current_thread()).name
        self._lock = threading.Lock()
        self._modules: dict[str, ModuleType] = {}
        # (resolved class, member name, parameter types) -> callable
        self._members: dict[Hashable, Callable[..., Any]] = {}
        self._closed = False

    @property
    def label(self) -> str:
        return self._label

    @property
    def policy(self) -> EligibilityPolicy:
        return self._policy

    @property
    def owner_name(self) -> str:
        return self._owner_name

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise LifecycleError(
                f"Loading context {self._label} was removed; call create()/get() again"
            )

    def private_module(self, module_name: str) -> ModuleType:
        """Return this context's copy of ``module_name``, loading it on first use.

        Raises:
            LifecycleError: If the context was closed.
            ModuleIsolationError: If the module cannot be copied.
        """
        with self._lock:
            self._ensure_open()
            module = self._modules.get(module_name)
            if module is None:
                alias = f"{module_name}{self._alias_prefix}{self._label}"
                module = self._loader.load_private_copy(module_name, alias)
                self._modules[module_name] = module
                logger.info(
                    "module_isolated",
                    module=module_name,
                    alias=alias,
                    context=self._label,
                )
        return module

    def resolve(self, cls: type) -> type:
        """Resolve ``cls`` to this context's definition.

        Protected classes come from the private module copy; anything else
        is returned unchanged.

        Raises:
            LifecycleError: If the context was closed.
            ModuleIsolationError: If the class cannot be found in the copy.
        """
        self._ensure_open()
        if not self._policy.is_eligible(cls):
            return cls
        if "<locals>" in cls.__qualname__:
            raise ModuleIsolationError(
                f"Type {fully_qualified_name(cls)} is defined inside a function"
            )

        resolved: Any = self.private_module(cls.__module__)
        for part in cls.__qualname__.split("."):
            try:
                resolved = getattr(resolved, part)
            except AttributeError as e:
                raise ModuleIsolationError(
                    f"Type {fully_qualified_name(cls)} not found in private module copy"
                ) from e

        if not inspect.isclass(resolved):
            raise ModuleIsolationError(
                f"{fully_qualified_name(cls)} is not a class in the private module copy"
            )
        return resolved

    def lookup_member(self, key: Hashable) -> Callable[..., Any] | None:
        return self._members.get(key)

    def remember_member(self, key: Hashable, member: Callable[..., Any]) -> None:
        with self._lock:
            self._ensure_open()
            self._members[key] = member

    def new_object(self, spec: ConstructionSpec) -> Any:
        """Construct an object as described by ``spec`` inside this context."""
        return self._engine.new_object(self, spec)

    def close(self) -> None:
        """Discard all private modules. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            modules = list(self._modules.values())
            self._modules.clear()
            self._members.clear()

        for module in modules:
            self._loader.discard(module)

        logger.debug(
            "context_closed",
            context=self._label,
            owner=self._owner_name,
            modules=len(modules),
        )

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"LoadingContext(label={self._label!r}, owner={self._owner_name!r}, "
            f"modules={sorted(self._modules)}, {state})"
        )
