"""Game description models."""

from efsupport.models.extensive_form import Action, DecisionNode, ExtensiveFormGame, Outcome

__all__ = [
    "Action",
    "DecisionNode",
    "ExtensiveFormGame",
    "Outcome",
]
