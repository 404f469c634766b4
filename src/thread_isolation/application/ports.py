# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Application layer ports (interfaces for adapters).

Defines protocols that external adapters must implement to interact
with the application layer. This maintains clean architecture by preventing
direct import-system dependencies in the application layer.
"""

from types import ModuleType
from typing import Protocol


class ModuleLoaderPort(Protocol):
    """Port for producing private copies of Python modules.

    A private copy is executed from the module's source independently of
    the process-wide module in ``sys.modules``, so its classes and globals
    share nothing with the original or with any other copy.

    Implementations:
        - ImportlibModuleLoader: source files via importlib machinery
    """

    def is_isolatable(self, module_name: str) -> bool:
        """Whether a private copy of ``module_name`` can be produced.

        Args:
            module_name: Dotted name of the original module.

        Returns:
            True if the module is backed by Python source the loader can execute.
        """
        ...

    def load_private_copy(self, module_name: str, alias: str) -> ModuleType:
        """Execute a fresh copy of ``module_name`` under ``alias``.

        Args:
            module_name: Dotted name of the original module.
            alias: Unique module name for the copy (becomes ``__name__``
                and the ``__module__`` of classes defined in it).

        Returns:
            The executed private module.

        Raises:
            ModuleIsolationError: If the copy cannot be produced.
        """
        ...

    def discard(self, module: ModuleType) -> None:
        """Forget a private copy previously returned by ``load_private_copy``."""
        ...
