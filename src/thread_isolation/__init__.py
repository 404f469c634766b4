# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""thread-isolation: Per-thread private copies of non-reentrant Python types.

Lets a legacy type with hidden shared state (class attributes, module
globals) be used from many threads without editing or locking it.

Each calling thread gets its own independently loaded copy of the type's
defining module, so any state attached to the type lives in a private home
per thread. A declarative construction spec describes how to instantiate
the per-thread type.

Architecture: Hexagonal (Ports & Adapters)
- Domain core: errors, construction spec, eligibility gate (stdlib only)
- Application: registry, loading context, construction engine
- Adapters: importlib module loader, pydantic settings, structlog logging
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
