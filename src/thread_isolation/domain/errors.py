"""Domain exception hierarchy.

All domain-level errors inherit from IsolationError.
This allows clean exception handling at adapter boundaries.
"""


class IsolationError(Exception):
    """Base exception for all domain errors."""


class ConfigurationError(IsolationError):
    """Registering a type that cannot be isolated (not protected, no source)."""


class IllegalArgumentError(IsolationError):
    """Construction requested for a type outside the registry's protected set."""


class ConstructionError(IsolationError):
    """Constructor or factory resolution or invocation failed.

    The original failure (arity mismatch, missing member, exception raised
    by the invoked code) is always chained as ``__cause__``.
    """


class InvalidSpecError(ConstructionError):
    """ConstructionSpec builder received an invalid value (non-class, bad name)."""


class TypeMismatchError(IsolationError):
    """Constructed object does not satisfy the requested result interface."""


class LifecycleError(IsolationError):
    """Registry or loading context used after it was removed."""


class ModuleIsolationError(IsolationError):
    """A private copy of a module could not be produced (not found, no source, exec failed)."""
