"""Immutable game arena that supports bind to.

A ``GameTree`` is compiled once from an ``ExtensiveFormGame`` description
and never changes afterwards. Players, information sets, actions and nodes
are handle objects owned by the arena; handles compare by identity, so two
handles are equal only if they come from the same ``GameTree``.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal, Union

from efsupport.config import TreeConfig
from efsupport.core import errors
from efsupport.models.extensive_form import ExtensiveFormGame, Outcome

logger = logging.getLogger(__name__)

NodeKind = Literal["decision", "chance", "terminal"]


@dataclass(eq=False, repr=False)
class Player:
    """A player and the information sets it owns, in order."""

    game: GameTree
    label: str
    number: int  # 1-based
    infosets: tuple[Infoset, ...] = ()

    def __repr__(self) -> str:
        return f"Player({self.number}, {self.label!r})"


@dataclass(eq=False, repr=False)
class Infoset:
    """An information set: member nodes sharing one ordered action list."""

    game: GameTree
    label: str
    number: int  # 1-based within the owning player
    player: Player
    actions: tuple[Action, ...] = ()
    members: tuple[Node, ...] = ()

    def __repr__(self) -> str:
        return f"Infoset({self.player.number}:{self.number}, {self.label!r})"


@dataclass(eq=False, repr=False)
class Action:
    """An action of an information set, in its full (unrestricted) order."""

    game: GameTree
    label: str
    number: int  # 1-based within the infoset
    infoset: Infoset

    def __repr__(self) -> str:
        return f"Action({self.infoset.label!r}:{self.number}, {self.label!r})"


@dataclass(eq=False, repr=False)
class Node:
    """A node of the game tree.

    Children of a decision node are ordered like its infoset's actions;
    children of a chance node are ordered like its branches.
    """

    game: GameTree
    id: str
    number: int  # preorder index
    kind: NodeKind
    parent: Node | None = None
    branch: int | None = None  # index of this node among parent.children
    infoset: Infoset | None = None
    children: tuple[Node, ...] = ()
    branch_labels: tuple[str, ...] = ()
    chance_probabilities: tuple[float, ...] = ()
    outcome: Outcome | None = None

    @property
    def is_terminal(self) -> bool:
        return self.kind == "terminal"

    @property
    def is_chance(self) -> bool:
        return self.kind == "chance"

    @property
    def is_decision(self) -> bool:
        return self.kind == "decision"

    @property
    def player(self) -> Player | None:
        return self.infoset.player if self.infoset is not None else None

    @property
    def prior_action(self) -> Action | None:
        """The action taken at the parent to reach this node, if any."""
        if self.parent is None or self.parent.infoset is None:
            return None
        return self.parent.infoset.actions[self.branch]

    def child(self, action: Action) -> Node:
        """Return the child reached by taking ``action`` at this node."""
        if self.infoset is None or action.infoset is not self.infoset:
            raise errors.foreign_handle("action", action)
        return self.children[action.number - 1]

    def __repr__(self) -> str:
        return f"Node({self.number}, {self.id!r}, {self.kind})"


Handle = Union[Player, Infoset, Action, Node]


class GameTree:
    """Compiled, read-only extensive-form game."""

    def __init__(self, game_id: str, title: str) -> None:
        self.id = game_id
        self.title = title
        self.players: tuple[Player, ...] = ()
        self.nodes: tuple[Node, ...] = ()
        self._root: Node | None = None

    @classmethod
    def from_game(cls, game: ExtensiveFormGame) -> GameTree:
        """Compile a game description into an arena.

        Raises:
            InvalidGameError: if the description is not a well-formed tree.
        """
        if not isinstance(game, ExtensiveFormGame):
            raise errors.invalid_game(f"expected ExtensiveFormGame, got {type(game).__name__}")
        tree = cls(game.id, game.title)
        _TreeBuilder(tree, game).build()
        logger.debug(
            "Compiled game %s: %d nodes, %d players, %d infosets",
            game.id,
            len(tree.nodes),
            len(tree.players),
            sum(len(p.infosets) for p in tree.players),
        )
        return tree

    @property
    def root(self) -> Node:
        if self._root is None:
            raise errors.invalid_game(f"game '{self.id}' has not been compiled")
        return self._root

    def player(self, number: int) -> Player:
        """Return the player with the given 1-based number."""
        if not 1 <= number <= len(self.players):
            raise errors.index_out_of_range("player", number, len(self.players))
        return self.players[number - 1]

    def infoset(self, player: int, number: int) -> Infoset:
        """Return information set ``number`` (1-based) of ``player``."""
        infosets = self.player(player).infosets
        if not 1 <= number <= len(infosets):
            raise errors.index_out_of_range("infoset", number, len(infosets))
        return infosets[number - 1]

    def infosets(self) -> Iterator[Infoset]:
        """Iterate over every player information set, player by player."""
        for player in self.players:
            yield from player.infosets

    def terminal_nodes(self) -> list[Node]:
        return [node for node in self.nodes if node.is_terminal]

    def owns(self, handle: Handle) -> bool:
        """Check whether a handle was created by this arena."""
        return getattr(handle, "game", None) is self

    def __repr__(self) -> str:
        return f"GameTree({self.id!r}, nodes={len(self.nodes)})"


class _TreeBuilder:
    """Walks a game description in preorder and creates the arena handles."""

    def __init__(self, tree: GameTree, game: ExtensiveFormGame) -> None:
        self.tree = tree
        self.game = game
        self.players: dict[str, Player] = {}
        self.infosets: dict[str, Infoset] = {}
        self.members: dict[str, list[Node]] = {}
        self.player_infosets: dict[str, list[Infoset]] = {}

    def build(self) -> None:
        game = self.game
        if TreeConfig.CHANCE_PLAYER in game.players:
            raise errors.invalid_game(f"'{TreeConfig.CHANCE_PLAYER}' is reserved for chance nodes")
        if len(set(game.players)) != len(game.players):
            raise errors.invalid_game("player names must be unique")
        shared_ids = sorted(set(game.nodes) & set(game.outcomes))
        if shared_ids:
            raise errors.invalid_game(f"'{shared_ids[0]}' is both a node and an outcome")
        if game.root not in game.nodes and game.root not in game.outcomes:
            raise errors.invalid_game(f"root node '{game.root}' does not exist")

        for number, label in enumerate(game.players, start=1):
            self.players[label] = Player(game=self.tree, label=label, number=number)
            self.player_infosets[label] = []

        nodes: list[Node] = []
        children: dict[int, list[Node | None]] = {}
        visited: set[str] = set()
        # DFS uses stack (LIFO); children are pushed in reverse for preorder
        stack: list[tuple[str, Node | None, int | None]] = [(game.root, None, None)]

        while stack:
            target, parent, branch = stack.pop()
            node = self._make_node(target, len(nodes), parent, branch, visited)
            nodes.append(node)
            if parent is not None:
                children[parent.number][branch] = node

            spec = self.game.nodes.get(target) if not node.is_terminal else None
            if spec is None:
                continue
            children[node.number] = [None] * len(spec.actions)
            for index in reversed(range(len(spec.actions))):
                stack.append((spec.actions[index].target, node, index))

        unreachable = sorted(set(game.nodes) - visited)
        if unreachable:
            raise errors.invalid_game(f"node '{unreachable[0]}' is unreachable from root")

        for node in nodes:
            if node.number in children:
                node.children = tuple(children[node.number])
        for key, infoset in self.infosets.items():
            infoset.members = tuple(self.members[key])
        for label, player in self.players.items():
            player.infosets = tuple(self.player_infosets[label])

        self.tree.nodes = tuple(nodes)
        self.tree.players = tuple(self.players.values())
        self.tree._root = nodes[0]

    def _make_node(
        self,
        target: str | None,
        number: int,
        parent: Node | None,
        branch: int | None,
        visited: set[str],
    ) -> Node:
        if target is None:
            raise errors.invalid_game(f"action {branch} of node '{parent.id}' has no target")

        if target in self.game.outcomes:
            # Each edge into an outcome gets its own terminal node
            return Node(
                game=self.tree,
                id=target if parent is None else f"{parent.id}/{branch}",
                number=number,
                kind="terminal",
                parent=parent,
                branch=branch,
                outcome=self.game.outcomes[target],
            )

        spec = self.game.nodes.get(target)
        if spec is None:
            raise errors.invalid_game(
                f"action {branch} of node '{parent.id}' points to non-existent target '{target}'"
            )
        if target in visited:
            raise errors.invalid_game(f"node '{target}' is reached more than once")
        visited.add(target)
        if not spec.actions:
            raise errors.invalid_game(f"node '{target}' has no actions")

        labels = tuple(action.label for action in spec.actions)
        if spec.is_chance:
            return Node(
                game=self.tree,
                id=target,
                number=number,
                kind="chance",
                parent=parent,
                branch=branch,
                branch_labels=labels,
                chance_probabilities=self._chance_probabilities(target, spec.actions),
            )

        node = Node(
            game=self.tree,
            id=target,
            number=number,
            kind="decision",
            parent=parent,
            branch=branch,
            branch_labels=labels,
        )
        node.infoset = self._infoset_for(node, spec.player, spec.information_set, labels)
        return node

    def _infoset_for(
        self, node: Node, player_label: str, infoset_label: str | None, labels: tuple[str, ...]
    ) -> Infoset:
        player = self.players.get(player_label)
        if player is None:
            raise errors.invalid_game(f"node '{node.id}' belongs to unknown player '{player_label}'")

        # Nodes without an information set label are singletons
        key = infoset_label if infoset_label else f"_singleton_{node.id}"
        infoset = self.infosets.get(key)
        if infoset is None:
            owned = self.player_infosets[player_label]
            infoset = Infoset(
                game=self.tree,
                label=infoset_label or node.id,
                number=len(owned) + 1,
                player=player,
            )
            infoset.actions = tuple(
                Action(game=self.tree, label=label, number=number, infoset=infoset)
                for number, label in enumerate(labels, start=1)
            )
            owned.append(infoset)
            self.infosets[key] = infoset
            self.members[key] = []
        elif infoset.player is not player:
            raise errors.invalid_game(
                f"information set '{infoset.label}' is shared by players "
                f"'{infoset.player.label}' and '{player_label}'"
            )
        elif tuple(action.label for action in infoset.actions) != labels:
            raise errors.invalid_game(
                f"node '{node.id}' disagrees with information set '{infoset.label}' on its actions"
            )

        self.members[key].append(node)
        return infoset

    def _chance_probabilities(self, node_id: str, actions) -> tuple[float, ...]:
        probabilities = []
        for action in actions:
            if action.probability is None:
                raise errors.invalid_game(
                    f"chance action '{action.label}' in node '{node_id}' has no probability"
                )
            if action.probability < 0:
                raise errors.invalid_game(
                    f"chance action '{action.label}' in node '{node_id}' has negative probability"
                )
            probabilities.append(action.probability)
        if not math.isclose(sum(probabilities), 1.0, abs_tol=TreeConfig.PROBABILITY_TOLERANCE):
            raise errors.invalid_game(f"chance probabilities in node '{node_id}' do not sum to 1")
        return tuple(probabilities)
