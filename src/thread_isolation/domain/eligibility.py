"""Eligibility gate deciding which types may be isolated per thread.

A type is eligible when it is a class whose fully qualified name lies in
one of the protected namespaces. Namespaces match on dotted boundaries:
``demo.badlib`` protects ``demo.badlib.number_generator.NumberGenerator``
but not ``demo.badlibrary.Thing``.
"""

import inspect
from collections.abc import Iterable
from dataclasses import dataclass

from thread_isolation.domain.errors import IsolationError
from thread_isolation.domain.value_objects import fully_qualified_name


def _in_namespace(name: str, namespace: str) -> bool:
    return name == namespace or name.startswith(namespace + ".")


@dataclass(frozen=True)
class EligibilityPolicy:
    """Allow-list of protected namespaces.

    Attributes:
        namespaces: Dotted module (or module.qualname) prefixes.

    Example:
        >>> policy = EligibilityPolicy.for_types(NumberGenerator)
        >>> policy.is_eligible(NumberGenerator)
        True
        >>> policy.is_eligible(str)
        False
    """

    namespaces: frozenset[str]

    @classmethod
    def of(cls, namespaces: Iterable[str]) -> "EligibilityPolicy":
        return cls(namespaces=frozenset(ns.strip(".") for ns in namespaces if ns.strip(".")))

    @classmethod
    def for_types(cls, *types: type) -> "EligibilityPolicy":
        """Protect the defining modules of ``types``.

        The module is the unit of isolation, so every class that shares a
        module with a registered type is isolated along with it.
        """
        return cls.of(t.__module__ for t in types)

    def is_eligible(self, candidate: object) -> bool:
        if not inspect.isclass(candidate):
            return False
        name = fully_qualified_name(candidate)
        return any(_in_namespace(name, ns) for ns in self.namespaces)

    def check(self, candidate: object, error: type[IsolationError]) -> None:
        """Raise ``error`` naming ``candidate`` unless it is eligible."""
        if not self.is_eligible(candidate):
            raise error(f"Type {fully_qualified_name(candidate)} is not protected")
