from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from efsupport.config import TreeConfig


class Outcome(BaseModel):
    """Terminal node outcome with payoffs per player."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    payoffs: dict[str, float]


class Action(BaseModel):
    """Action available from a decision or chance node."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    probability: float | None = Field(default=None, description="Chance probability of this branch")
    target: str | None = Field(default=None, description="ID of the node or outcome this action leads to")


class DecisionNode(BaseModel):
    """Node controlled by a single player, or by chance.

    Nodes owned by ``TreeConfig.CHANCE_PLAYER`` are chance nodes: their
    actions carry probabilities and are never restricted by a support.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    player: str
    actions: list[Action]
    information_set: str | None = None

    @property
    def is_chance(self) -> bool:
        return self.player == TreeConfig.CHANCE_PLAYER


class ExtensiveFormGame(BaseModel):
    """Declarative description of an extensive-form game tree.

    Nodes and outcomes are addressed by ID; actions point at their target
    through ``Action.target``. Nodes sharing an ``information_set`` label
    belong to the same information set, nodes without one are singletons.
    The description is compiled into a ``GameTree`` before use.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    title: str
    description: str | None = None
    players: list[str]
    root: str
    nodes: dict[str, DecisionNode]
    outcomes: dict[str, Outcome] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
