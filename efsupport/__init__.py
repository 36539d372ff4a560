"""Restricted action supports for extensive-form games."""

from efsupport.core.errors import ForeignHandleError, InvalidGameError, SupportError
from efsupport.core.tree import GameTree
from efsupport.models import ExtensiveFormGame
from efsupport.supports import CachedSupport, Support

__all__ = [
    "CachedSupport",
    "ExtensiveFormGame",
    "ForeignHandleError",
    "GameTree",
    "InvalidGameError",
    "Support",
    "SupportError",
]
