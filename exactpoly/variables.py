"""Polynomial indeterminates."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

_ids = itertools.count(1)


@dataclass(frozen=True, order=True)
class Variable:
    """
    An indeterminate, totally ordered by creation.

    Identity is the process-unique ``id``; ``name`` is for display only, so two
    ``Variable("x")`` are different variables.
    """

    name: str = field(compare=False)
    id: int = field(default_factory=lambda: next(_ids))

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError(f"variable name must be a non-empty str, got {self.name!r}")

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"Variable({self.name!r}, id={self.id})"
