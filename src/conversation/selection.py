"""
List Selection

Resolves what the user typed against the list they were shown: first
as a 1-based number, then as an exact (case-insensitive) name.

Always resolve against the snapshot stored in the session, never the
live cache; the numbers the user sees must mean the same thing when
they answer.
"""

from collections.abc import Sequence
from typing import Callable, TypeVar


T = TypeVar("T")


class SelectionError(LookupError):
    """The reply matches neither a list number nor a listed name."""

    def __init__(self, choice: str):
        self.choice = choice
        super().__init__(f"No list entry matches {choice!r}")


def resolve_selection(
    choice: str,
    options: Sequence[T],
    name_of: Callable[[T], str],
) -> T:
    """
    Pick an option by number or by name.

    Raises:
        SelectionError: If nothing matches
    """
    choice = choice.strip()

    try:
        index = int(choice)
    except ValueError:
        index = None

    if index is not None and 1 <= index <= len(options):
        return options[index - 1]

    lowered = choice.lower()
    for option in options:
        if name_of(option).lower() == lowered:
            return option

    raise SelectionError(choice)
