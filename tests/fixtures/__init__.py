"""Importable target types for isolation tests (must live in real source files)."""
