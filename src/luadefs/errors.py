"""Errors raised while building definitions.

Every error here is raised synchronously from a constructor or a registration
call, before any builder state is touched. Rendering never raises.
"""

from __future__ import annotations


class DefinitionError(Exception):
    """Base class for definition building failures."""

    def __init__(self, message: str, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class DuplicateName(DefinitionError):
    """A name collides with one already registered in the same scope."""

    def __init__(self, name: str, scope: str) -> None:
        super().__init__(f"Duplicate name '{name}' in {scope}.", name)
        self.scope = scope


class InvalidIdentifier(DefinitionError):
    """A name cannot be represented in the definition grammar, even escaped."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid identifier '{name}': {reason}.", name)
        self.reason = reason


class EmptyUnion(DefinitionError):
    """A union was constructed without any members."""

    def __init__(self) -> None:
        super().__init__("A union needs at least one member.")
