# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Reflective construction of objects inside a loading context.

Resolves the concrete class of a ConstructionSpec inside a LoadingContext,
picks the initializer or named factory, checks the argument list against
the member's signature and annotations, invokes it and verifies the result
interface.

Overloads are expressed the Python way, with ``functools.singledispatch``.
For such factories the implementation is chosen from the first parameter
type, which is the explicit argument type when the ConstructionSpec has one.
This is how a caller separates e.g. a ``bool`` overload from an ``int``
overload when the value alone would dispatch differently.
"""

import inspect
import types
import typing
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

import structlog

from thread_isolation.domain.errors import (
    ConstructionError,
    IllegalArgumentError,
    ModuleIsolationError,
    TypeMismatchError,
)
from thread_isolation.domain.value_objects import ConstructionSpec, fully_qualified_name

if TYPE_CHECKING:
    from thread_isolation.application.loading_context import LoadingContext

logger = structlog.get_logger(__name__)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def _accepts(expected: Any, arg_type: type) -> bool:
    """Whether a parameter annotated ``expected`` accepts ``arg_type``.

    Unresolvable or non-class annotations accept anything.
    """
    if expected is None or expected is Any or expected is inspect.Parameter.empty:
        return True

    origin = typing.get_origin(expected)
    if origin is typing.Union or origin is types.UnionType:
        return any(_accepts(arg, arg_type) for arg in typing.get_args(expected))
    if origin is not None:
        expected = origin
    if not inspect.isclass(expected):
        return True

    # PEP 484 numeric tower
    if expected is float and issubclass(arg_type, int):
        return True
    if expected is complex and issubclass(arg_type, (int, float)):
        return True

    try:
        return issubclass(arg_type, expected)
    except TypeError:
        # Non runtime-checkable protocols
        return True


def _annotation_source(member: Callable[..., Any]) -> Any:
    if inspect.isclass(member):
        if member.__init__ is not object.__init__:
            return member.__init__
        return member.__new__
    return member


def _type_hints(member: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(_annotation_source(member))
    except Exception as e:
        # Forward references that cannot be evaluated disable type checks only
        logger.debug("type_hints_unavailable", member=repr(member), error=str(e))
        return {}


def _protocol_members(interface: type) -> set[str]:
    names: set[str] = set()
    for base in interface.__mro__:
        if base in (object, Protocol, typing.Generic):
            continue
        names.update(n for n in vars(base) if not n.startswith("_"))
        names.update(n for n in vars(base).get("__annotations__", {}) if not n.startswith("_"))
    return names


class ConstructionEngine:
    """Builds objects from ConstructionSpecs inside loading contexts.

    The engine is stateless; member lookups are cached per loading context
    because resolved classes are private to one context.

    Example:
        >>> engine = ConstructionEngine()
        >>> generator = engine.new_object(
        ...     registry.get(),
        ...     for_target_type(NumberGenerator).factory_method("create").arguments(3),
        ... )
        >>> generator.add_and_get(11)
        14
    """

    def new_object(self, context: "LoadingContext", spec: ConstructionSpec) -> Any:
        """Construct the object described by ``spec`` inside ``context``.

        Args:
            context: Loading context of the calling thread.
            spec: Construction spec.

        Returns:
            The constructed instance (its class is the context's private copy).

        Raises:
            IllegalArgumentError: If the concrete type is not protected.
            LifecycleError: If the context was removed.
            ConstructionError: If member lookup or invocation fails.
            TypeMismatchError: If the result does not implement the requested interface.
        """
        # Gate first so illegal requests never reach the isolation machinery
        context.policy.check(spec.concrete_type, IllegalArgumentError)

        try:
            resolved = context.resolve(spec.concrete_type)
        except ModuleIsolationError as e:
            raise ConstructionError(
                f"Cannot resolve {fully_qualified_name(spec.concrete_type)} "
                f"in context {context.label}: {e}"
            ) from e

        member = self._resolve_member(context, resolved, spec)
        self._check_argument_values(spec)

        try:
            instance = member(*spec.args)
        except Exception as e:
            logger.warning(
                "construction_failed",
                member=spec.describe(),
                context=context.label,
                error=f"{type(e).__name__}: {e}",
            )
            raise ConstructionError(
                f"{spec.describe()} raised {type(e).__name__}: {e}"
            ) from e

        interface = spec.result_interface
        if interface is not None:
            self._check_interface(context, instance, interface, spec)

        logger.debug("object_constructed", member=spec.describe(), context=context.label)
        return instance

    def _resolve_member(
        self, context: "LoadingContext", resolved: type, spec: ConstructionSpec
    ) -> Callable[..., Any]:
        if spec.args and spec.arg_types is not None and len(spec.arg_types) != len(spec.args):
            raise ConstructionError(
                f"{len(spec.args)} argument(s) given but "
                f"{len(spec.arg_types)} argument type(s) for {spec.describe()}"
            )

        arg_types = spec.effective_arg_types()
        key = (resolved, spec.factory_name, arg_types)
        member = context.lookup_member(key)
        if member is not None:
            return member

        member = self._find_member(resolved, spec)
        member = self._select_overload(member, arg_types)
        self._check_signature(member, spec, arg_types)

        context.remember_member(key, member)
        return member

    @staticmethod
    def _check_argument_values(spec: ConstructionSpec) -> None:
        # Member lookup only saw the declared types; the values must fit them too
        if spec.arg_types is None:
            return
        for position, (declared, value) in enumerate(zip(spec.arg_types, spec.args)):
            if not _accepts(declared, type(value)):
                raise ConstructionError(
                    f"No member matching {spec.describe()}: argument {position} "
                    f"is {type(value).__name__}, declared as {declared.__name__}"
                )

    def _find_member(self, resolved: type, spec: ConstructionSpec) -> Callable[..., Any]:
        name = spec.factory_name
        if name is None:
            return resolved

        owner = fully_qualified_name(spec.concrete_type)
        try:
            raw = inspect.getattr_static(resolved, name)
            member = getattr(resolved, name)
        except AttributeError as e:
            raise ConstructionError(f"{owner} has no factory method '{name}'") from e

        if inspect.isfunction(raw):
            raise ConstructionError(
                f"{owner}.{name} is an instance method; factories must be "
                "static or class methods"
            )
        if not callable(member):
            raise ConstructionError(f"{owner}.{name} is not callable")
        return member

    @staticmethod
    def _select_overload(member: Callable[..., Any], arg_types: tuple[type, ...]) -> Callable[..., Any]:
        dispatch = getattr(member, "dispatch", None)
        if callable(dispatch) and hasattr(member, "registry"):
            return dispatch(arg_types[0] if arg_types else object)
        return member

    def _check_signature(
        self,
        member: Callable[..., Any],
        spec: ConstructionSpec,
        arg_types: tuple[type, ...],
    ) -> None:
        try:
            signature = inspect.signature(member)
        except (TypeError, ValueError):
            # Builtins without introspectable signatures; invocation decides
            return

        try:
            signature.bind(*spec.args)
        except TypeError as e:
            raise ConstructionError(f"No member matching {spec.describe()}: {e}") from e

        hints = _type_hints(member)
        position = 0
        for param in signature.parameters.values():
            if position >= len(arg_types):
                break
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                candidates = arg_types[position:]
            elif param.kind in _POSITIONAL:
                candidates = arg_types[position : position + 1]
            else:
                break

            expected = hints.get(param.name)
            for arg_type in candidates:
                if not _accepts(expected, arg_type):
                    raise ConstructionError(
                        f"No member matching {spec.describe()}: parameter "
                        f"'{param.name}' expects {expected!r}, got {arg_type.__name__}"
                    )
            position += len(candidates)

    def _check_interface(
        self,
        context: "LoadingContext",
        instance: Any,
        interface: type,
        spec: ConstructionSpec,
    ) -> None:
        try:
            view = context.resolve(interface)
        except ModuleIsolationError as e:
            raise ConstructionError(
                f"Cannot resolve interface {fully_qualified_name(interface)}: {e}"
            ) from e

        try:
            satisfied = isinstance(instance, view)
        except TypeError:
            # Protocol without @runtime_checkable: structural check
            satisfied = all(hasattr(instance, name) for name in _protocol_members(view))

        if not satisfied:
            raise TypeMismatchError(
                f"Object built by {spec.describe()} does not implement "
                f"{fully_qualified_name(interface)}"
            )
