# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Domain value objects (immutable data structures).

Value objects are immutable data structures that represent concepts
from the domain model. They have no identity - two instances with
the same values are considered equal.
"""

import inspect
from dataclasses import dataclass, replace
from typing import Any

from thread_isolation.domain.errors import InvalidSpecError


def fully_qualified_name(obj: Any) -> str:
    """Dotted ``module.qualname`` of a class, or ``repr`` for anything else.

    Example:
        >>> fully_qualified_name(str)
        'builtins.str'
    """
    if inspect.isclass(obj):
        return f"{obj.__module__}.{obj.__qualname__}"
    return repr(obj)


def _require_class(value: Any, role: str) -> type:
    if not inspect.isclass(value):
        raise InvalidSpecError(f"{role} must be a class, got {value!r}")
    return value


@dataclass(frozen=True)
class ConstructionSpec:
    """Declarative description of how to build an object in a loading context.

    Seeded with ``for_target_type()`` and refined with chainable methods.
    Every builder method returns a new spec; the receiver is never mutated,
    so a partially built spec can be shared and extended safely.

    Attributes:
        target_type: Type requested by the caller. When ``implementation``
            is set this is the result interface the object is checked against.
        implementation: Concrete class to instantiate (None = target_type).
        factory_name: Name of a receiver-less factory on the concrete
            class (None = call the class initializer).
        args: Positional argument values (empty = no-argument call).
        arg_types: Explicit parameter types used verbatim for member
            resolution (None = inferred from ``type(value)`` of each arg).

    Example:
        >>> spec = (
        ...     ConstructionSpec.for_target_type(NumberGeneratorProtocol)
        ...     .implementing_type(NumberGenerator)
        ...     .factory_method("create")
        ...     .arguments(3)
        ...     .argument_types(int)
        ... )
        >>> spec.concrete_type is NumberGenerator
        True
    """

    target_type: type
    implementation: type | None = None
    factory_name: str | None = None
    args: tuple[Any, ...] = ()
    arg_types: tuple[type, ...] | None = None

    @classmethod
    def for_target_type(cls, target_type: type) -> "ConstructionSpec":
        """Start a spec for ``target_type``.

        Raises:
            InvalidSpecError: If target_type is not a class.
        """
        return cls(target_type=_require_class(target_type, "Target type"))

    def implementing_type(self, implementing_type: type) -> "ConstructionSpec":
        """Instantiate ``implementing_type`` and expose it as the target type."""
        return replace(
            self,
            implementation=_require_class(implementing_type, "Implementing type"),
        )

    def factory_method(self, name: str) -> "ConstructionSpec":
        """Build through the named static/class factory instead of the initializer."""
        if not isinstance(name, str) or not name.isidentifier():
            raise InvalidSpecError(f"Factory method name must be an identifier, got {name!r}")
        return replace(self, factory_name=name)

    def arguments(self, *values: Any) -> "ConstructionSpec":
        return replace(self, args=tuple(values))

    def argument_types(self, *types: type) -> "ConstructionSpec":
        for t in types:
            _require_class(t, "Argument type")
        return replace(self, arg_types=tuple(types))

    @property
    def concrete_type(self) -> type:
        """Class actually instantiated inside the loading context."""
        return self.implementation or self.target_type

    @property
    def result_interface(self) -> type | None:
        """Interface the constructed object must satisfy, if any."""
        if self.implementation is None:
            return None
        return self.target_type

    def effective_arg_types(self) -> tuple[type, ...]:
        """Parameter types used for member resolution.

        Explicit ``arg_types`` win; otherwise the runtime types of ``args``.
        An empty argument list always resolves to the empty signature.
        """
        if not self.args:
            return ()
        if self.arg_types is not None:
            return self.arg_types
        return tuple(type(value) for value in self.args)

    def describe(self) -> str:
        """Human readable member description for error messages."""
        member = self.factory_name or "__init__"
        params = ", ".join(t.__name__ for t in self.effective_arg_types())
        return f"{fully_qualified_name(self.concrete_type)}.{member}({params})"


def for_target_type(target_type: type) -> ConstructionSpec:
    """Module-level shortcut for ``ConstructionSpec.for_target_type``."""
    return ConstructionSpec.for_target_type(target_type)
