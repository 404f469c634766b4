"""Domain layer for per-thread type isolation.

This package contains pure business logic with zero external dependencies.
All domain code uses only Python stdlib (typing, dataclasses, inspect) and
internal thread_isolation.domain imports.

Modules:
    errors: Domain exception hierarchy
    value_objects: Immutable construction spec (ConstructionSpec)
    eligibility: Eligibility gate (EligibilityPolicy)
"""
