"""Action supports for extensive-form games.

A support restricts a game to a subset of the actions available at each
information set. Equilibrium searches shrink their search space by working
on restricted supports; this module keeps the active-action bookkeeping
consistent and answers reachability and sequence-counting questions
against it.
"""
from __future__ import annotations

import io
import logging
from bisect import bisect_left
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, TextIO

from efsupport.config import DumpConfig, SupportConfig
from efsupport.core import errors
from efsupport.core.tree import Action, GameTree, Infoset, Node, Player

if TYPE_CHECKING:
    from efsupport.supports.cached import ReachableNodeCache

logger = logging.getLogger(__name__)


class Support:
    """Set of active actions per information set of a game.

    Each information set keeps its active actions in the order of its full
    action list, without duplicates. A new support starts full. The game is
    borrowed: copies share it, and it must outlive every support bound to it.
    """

    def __init__(
        self,
        game: GameTree,
        name: str = SupportConfig.DEFAULT_NAME,
        active: Mapping[Infoset, Iterable[Action]] | None = None,
    ) -> None:
        """Bind a support to ``game``.

        ``active`` restricts the listed information sets to the given
        actions; information sets it leaves out start with every action.
        """
        if not isinstance(game, GameTree):
            raise errors.invalid_game(f"expected GameTree, got {type(game).__name__}")
        self.name = name
        self._game = game
        self._active: dict[Infoset, list[Action]] = {
            infoset: list(infoset.actions) for infoset in game.infosets()
        }
        for infoset, actions in (active or {}).items():
            self._check_infoset(infoset)
            chosen = {self._check_action(action) for action in actions}
            for action in chosen:
                if action.infoset is not infoset:
                    raise errors.foreign_handle("action", action)
            self._active[infoset] = [action for action in infoset.actions if action in chosen]
        # Set by CachedSupport; notified after every change to an active list
        self._cache: ReachableNodeCache | None = None

    @classmethod
    def from_support(cls, other: Support) -> Support:
        """Create a support of this class with the active actions of ``other``."""
        if not isinstance(other, Support):
            raise TypeError(f"cannot copy {type(other).__name__} into a support")
        return cls(other.game, other.name, active=other._active)

    def assign(self, other: Support) -> None:
        """Replace this support's game binding and active actions with ``other``'s."""
        if not isinstance(other, Support):
            raise TypeError(f"cannot assign {type(other).__name__} to a support")
        self.name = other.name
        self._game = other._game
        self._active = {infoset: list(actions) for infoset, actions in other._active.items()}
        if self._cache is not None:
            self._cache.rebuild()

    def copy(self) -> Support:
        return type(self).from_support(self)

    def __copy__(self) -> Support:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> Support:
        # The game is borrowed, never duplicated
        return self.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Support):
            return NotImplemented
        if self._game is not other._game:
            return False
        return all(
            set(actions) == set(other._active[infoset])
            for infoset, actions in self._active.items()
        )

    __hash__ = None  # mutable

    # -- structure ---------------------------------------------------------

    @property
    def game(self) -> GameTree:
        return self._game

    @property
    def root(self) -> Node:
        return self._game.root

    def num_actions(self, infoset: Infoset) -> int:
        """Number of active actions at an information set."""
        return len(self._active_list(infoset))

    def num_actions_at(self, player: int, iset: int) -> int:
        """Number of active actions at infoset ``iset`` of ``player`` (both 1-based)."""
        return len(self._active[self._game.infoset(player, iset)])

    def num_actions_vector(self) -> tuple[tuple[int, ...], ...]:
        """Active action counts, one tuple per player with one entry per infoset."""
        return tuple(
            tuple(len(self._active[infoset]) for infoset in player.infosets)
            for player in self._game.players
        )

    def actions(self, infoset: Infoset) -> tuple[Action, ...]:
        """Active actions at an information set, in their original order."""
        return tuple(self._active_list(infoset))

    def actions_at(self, player: int, iset: int) -> tuple[Action, ...]:
        return tuple(self._active[self._game.infoset(player, iset)])

    def find(self, action: Action) -> int:
        """Return the 1-based position of ``action`` among the active actions, or 0."""
        active = self._active[self._check_action(action).infoset]
        try:
            return active.index(action) + 1
        except ValueError:
            return 0

    def is_active(self, action: Action) -> bool:
        return self.find(action) != 0

    def is_valid(self) -> bool:
        """Check that every information set has at least one active action."""
        return all(self._active.values())

    # -- editing -----------------------------------------------------------

    def activate(self, action: Action) -> None:
        """Make ``action`` active, keeping the original action order.

        Activating an action that is already active does nothing.
        """
        infoset = self._check_action(action).infoset
        active = self._active[infoset]
        if action in active:
            return
        active.insert(bisect_left(active, action.number, key=lambda a: a.number), action)
        logger.debug("Activated %r in support %r", action, self.name)
        self._changed(infoset)

    def deactivate(self, action: Action) -> bool:
        """Make ``action`` inactive. Returns True if it was active."""
        infoset = self._check_action(action).infoset
        active = self._active[infoset]
        if action not in active:
            return False
        active.remove(action)
        logger.debug("Deactivated %r in support %r", action, self.name)
        self._changed(infoset)
        return True

    def _changed(self, infoset: Infoset) -> None:
        if self._cache is not None:
            self._cache.repair(infoset)

    # -- sequences ---------------------------------------------------------

    def num_sequences(self, player: Player | int) -> int:
        """Number of sequences of ``player`` under this support.

        Counts the empty sequence once, plus one sequence per active action
        at each of the player's information sets that may be reached.
        """
        player = self._resolve_player(player)
        return 1 + sum(
            len(self._active[infoset])
            for infoset in player.infosets
            if self.may_reach(infoset)
        )

    def total_num_sequences(self) -> int:
        return sum(self.num_sequences(player) for player in self._game.players)

    # -- reachability ------------------------------------------------------

    def active_children(self, node: Node) -> Iterator[Node]:
        """Children of ``node`` that can be entered under this support.

        Every branch of a chance node can be entered; a decision node can
        only be left through its active actions.
        """
        if node.is_chance:
            yield from node.children
        elif node.is_decision:
            for action in self._active[node.infoset]:
                yield node.children[action.number - 1]

    def reachable_nonterminal_nodes(self, node: Node, action: Action | None = None) -> list[Node]:
        """Nonterminal nodes below ``node`` reachable under this support, in preorder.

        With ``action``, the traversal first descends through that action of
        ``node`` whether or not it is active, and the child it leads to is
        included when nonterminal.
        """
        self._check_node(node)
        if action is None:
            return self._nonterminal_descendants(node)
        start = node.child(self._check_action(action))
        if start.is_terminal:
            return []
        return [start, *self._nonterminal_descendants(start)]

    def reachable_infosets(self, node: Node, action: Action | None = None) -> list[Infoset]:
        """Information sets of the nodes returned by ``reachable_nonterminal_nodes``."""
        nodes = self.reachable_nonterminal_nodes(node, action)
        return list(dict.fromkeys(n.infoset for n in nodes if n.infoset is not None))

    def reachable_members(self, infoset: Infoset) -> list[Node]:
        """Members of ``infoset`` that may be reached from the root."""
        return [node for node in self._check_infoset(infoset).members if self.may_reach(node)]

    def may_reach(self, target: Node | Infoset) -> bool:
        """Check whether some path from the root under this support reaches ``target``."""
        if isinstance(target, Infoset):
            return any(self.may_reach(node) for node in self._check_infoset(target).members)
        node = self._check_node(target)
        while node.parent is not None:
            parent = node.parent
            if parent.is_decision:
                edge = parent.infoset.actions[node.branch]
                if edge not in self._active[parent.infoset]:
                    return False
            node = parent
        return True

    def always_reaches(self, infoset: Infoset) -> bool:
        """Check whether every play from the root under this support passes ``infoset``."""
        return self.always_reaches_from(infoset, self.root)

    def always_reaches_from(self, infoset: Infoset, node: Node) -> bool:
        """Check whether every play from ``node`` under this support passes ``infoset``."""
        return self._always_reaches(self._check_infoset(infoset), self._check_node(node))

    def _always_reaches(self, infoset: Infoset, node: Node) -> bool:
        # Fails at the first play that ends without passing through infoset
        stack = [node]
        while stack:
            current = stack.pop()
            if current.infoset is infoset:
                continue
            if current.is_terminal:
                return False
            if current.is_chance:
                stack.extend(current.children)
                continue
            active = self._active[current.infoset]
            # A decision node with no active action has no play through it
            if not active:
                return False
            stack.extend(current.children[action.number - 1] for action in active)
        return True

    def _nonterminal_descendants(self, node: Node) -> list[Node]:
        found: list[Node] = []
        stack = list(reversed(list(self.active_children(node))))
        while stack:
            current = stack.pop()
            if current.is_terminal:
                continue
            found.append(current)
            stack.extend(reversed(list(self.active_children(current))))
        return found

    # -- diagnostics -------------------------------------------------------

    def dump(self, sink: TextIO) -> None:
        """Write a human-readable listing of the active actions to ``sink``."""
        indent = DumpConfig.INDENT
        sink.write(f"Support {self.name!r} on game {self._game.title!r}\n")
        for player in self._game.players:
            sink.write(f"{indent}Player {player.number} {player.label!r}\n")
            for infoset in player.infosets:
                labels = " ".join(action.label for action in self._active[infoset])
                sink.write(
                    f"{indent * 2}Infoset {infoset.number} {infoset.label!r}: "
                    f"{{ {labels or DumpConfig.EMPTY_MARKER} }}\n"
                )

    def __str__(self) -> str:
        buffer = io.StringIO()
        self.dump(buffer)
        return buffer.getvalue()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, game={self._game.id!r})"

    # -- handle checks -----------------------------------------------------

    def _check_action(self, action: Action) -> Action:
        if not isinstance(action, Action) or not self._game.owns(action):
            raise errors.foreign_handle("action", action)
        return action

    def _check_infoset(self, infoset: Infoset) -> Infoset:
        if not isinstance(infoset, Infoset) or not self._game.owns(infoset):
            raise errors.foreign_handle("infoset", infoset)
        return infoset

    def _check_node(self, node: Node) -> Node:
        if not isinstance(node, Node) or not self._game.owns(node):
            raise errors.foreign_handle("node", node)
        return node

    def _active_list(self, infoset: Infoset) -> list[Action]:
        return self._active[self._check_infoset(infoset)]

    def _resolve_player(self, player: Player | int) -> Player:
        if isinstance(player, Player):
            if not self._game.owns(player):
                raise errors.foreign_handle("player", player)
            return player
        return self._game.player(player)
