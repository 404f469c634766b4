# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""importlib adapter producing private copies of source modules.

A private copy is built from the original module's source file with a
fresh spec under a unique alias, so ``exec_module`` creates new classes
and new globals every time. The alias keeps the original parent package,
which keeps relative imports inside the copy working.
"""

import importlib.machinery
import importlib.util
import logging
import sys
from importlib.machinery import ModuleSpec
from types import ModuleType

from thread_isolation.domain.errors import ModuleIsolationError

logger = logging.getLogger(__name__)


class ImportlibModuleLoader:
    """ModuleLoaderPort implementation backed by the importlib machinery.

    Only modules loaded by ``SourceFileLoader`` can be copied: builtins,
    frozen and extension modules keep their state in C and would be shared
    by every copy anyway.

    Copies are registered in ``sys.modules`` under their alias for as long
    as they live. Class machinery such as dataclasses and
    ``typing.get_type_hints`` looks the defining module up there.

    Example:
        >>> loader = ImportlibModuleLoader()
        >>> copy = loader.load_private_copy("demo.badlib.number_generator", "ng_copy")
        >>> copy.NumberGenerator is not NumberGenerator
        True
        >>> loader.discard(copy)
    """

    def __init__(self, deny_stdlib: bool = True) -> None:
        """Initialize loader.

        Args:
            deny_stdlib: Refuse to copy standard library modules.
        """
        self._deny_stdlib = deny_stdlib

    def _find_source_spec(self, module_name: str) -> ModuleSpec:
        top_level = module_name.partition(".")[0]
        if self._deny_stdlib and top_level in sys.stdlib_module_names:
            raise ModuleIsolationError(f"Module {module_name} belongs to the standard library")

        try:
            spec = importlib.util.find_spec(module_name)
        except (ImportError, ValueError) as e:
            raise ModuleIsolationError(f"Module {module_name} cannot be located: {e}") from e

        if spec is None:
            raise ModuleIsolationError(f"Module {module_name} cannot be located")
        if spec.origin is None or not isinstance(
            spec.loader, importlib.machinery.SourceFileLoader
        ):
            raise ModuleIsolationError(f"Module {module_name} is not loaded from Python source")
        return spec

    def is_isolatable(self, module_name: str) -> bool:
        try:
            self._find_source_spec(module_name)
        except ModuleIsolationError as e:
            logger.debug(f"Not isolatable: {e}")
            return False
        return True

    def load_private_copy(self, module_name: str, alias: str) -> ModuleType:
        source_spec = self._find_source_spec(module_name)
        if alias in sys.modules:
            raise ModuleIsolationError(f"Module alias {alias} is already in use")

        spec = importlib.util.spec_from_file_location(
            alias,
            source_spec.origin,
            submodule_search_locations=source_spec.submodule_search_locations,
        )
        if spec is None or spec.loader is None:
            raise ModuleIsolationError(f"Failed to build spec for {module_name}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[alias] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(alias, None)
            raise ModuleIsolationError(
                f"Executing private copy of {module_name} failed: {e}"
            ) from e

        logger.debug(f"Loaded private copy of {module_name} as {alias}")
        return module

    def discard(self, module: ModuleType) -> None:
        alias = module.__name__
        if sys.modules.get(alias) is module:
            sys.modules.pop(alias, None)

        # Submodules a copied package imported through its own __path__
        prefix = alias + "."
        for name in [n for n in list(sys.modules) if n.startswith(prefix)]:
            sys.modules.pop(name, None)

        logger.debug(f"Discarded private module {alias}")
