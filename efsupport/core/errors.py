"""Standardized error types and factories.

Contract violations (a bad game, a handle from another game, an index out
of range) fail fast with these exceptions. Ordinary "not found" or "not
reachable" outcomes are reported through return values instead.
"""
from __future__ import annotations

from typing import Any


class SupportError(Exception):
    """Base class for errors raised by this package."""


class InvalidGameError(SupportError, ValueError):
    """The game description or handle cannot be used."""


class ForeignHandleError(SupportError, ValueError):
    """A handle does not belong to the game a support is bound to."""


def invalid_game(reason: str) -> InvalidGameError:
    """Create an InvalidGameError with consistent formatting.

    Args:
        reason: What is wrong with the game

    Returns:
        InvalidGameError ready to raise
    """
    return InvalidGameError(f"Invalid game: {reason}")


def foreign_handle(kind: str, handle: Any) -> ForeignHandleError:
    """Create a ForeignHandleError for a handle from another game.

    Args:
        kind: Type of handle (e.g., "action", "infoset", "node")
        handle: The offending handle

    Returns:
        ForeignHandleError ready to raise
    """
    return ForeignHandleError(f"{kind.capitalize()} does not belong to this game: {handle!r}")


def index_out_of_range(kind: str, index: int, size: int) -> IndexError:
    """Create an IndexError for a 1-based number outside ``1..size``.

    Args:
        kind: What was being indexed (e.g., "player", "infoset")
        index: The number that was requested
        size: How many items exist

    Returns:
        IndexError ready to raise
    """
    return IndexError(f"{kind.capitalize()} number {index} out of range 1..{size}")
