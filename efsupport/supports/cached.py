"""Support with an incrementally maintained reachable-node cache.

``CachedSupport`` keeps, for every information set, the nonterminal member
nodes currently reachable from the root. Activating or deactivating an
action at an information set only changes reachability at and below that
information set's reachable members, so only those subtrees are discarded
and traversed again.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from efsupport.config import SupportConfig
from efsupport.core.tree import Action, GameTree, Infoset, Node
from efsupport.supports.support import Support

logger = logging.getLogger(__name__)


def _preorder(nodes: set[Node]) -> list[Node]:
    return sorted(nodes, key=lambda node: node.number)


class ReachableNodeCache:
    """Reachable nonterminal nodes of a support, grouped by information set.

    Chance nodes are tracked in the reachable set but belong to no
    information set.
    """

    def __init__(self, support: Support) -> None:
        self._support = support
        self._reachable: set[Node] = set()
        self._by_infoset: dict[Infoset, set[Node]] = {}

    def rebuild(self) -> None:
        """Recompute the whole cache with one traversal from the root."""
        game = self._support.game
        self._reachable = set()
        self._by_infoset = {infoset: set() for infoset in game.infosets()}
        self._generate(game.root)
        logger.debug("Built reachable node cache: %d nonterminal nodes", len(self._reachable))

    def repair(self, infoset: Infoset) -> None:
        """Bring the cache up to date after the active actions of ``infoset`` changed.

        Every member of ``infoset`` that was reachable before the change roots
        a subtree whose cached entries may be stale. Those subtrees are
        discarded, then regenerated from each root that is still entered.
        """
        roots = _preorder(self._by_infoset[infoset])
        discarded = 0
        for root in roots:
            discarded += self._discard(root)
        generated = 0
        for root in roots:
            # Roots below an earlier root are regenerated along with it, or not at all
            if root not in self._reachable and self._is_entered(root):
                generated += self._generate(root)
        logger.debug(
            "Repaired cache for %r: %d roots, %d nodes discarded, %d regenerated",
            infoset,
            len(roots),
            discarded,
            generated,
        )

    def contains(self, node: Node) -> bool:
        return node in self._reachable

    def nodes_in_infoset(self, infoset: Infoset) -> list[Node]:
        return _preorder(self._by_infoset[infoset])

    def has_nodes_in_infoset(self, infoset: Infoset) -> bool:
        return bool(self._by_infoset[infoset])

    def as_mapping(self) -> Mapping[Infoset, tuple[Node, ...]]:
        return MappingProxyType(
            {infoset: tuple(_preorder(nodes)) for infoset, nodes in self._by_infoset.items()}
        )

    def copy_for(self, support: Support) -> ReachableNodeCache:
        """Copy this cache for a support with the same game and active actions."""
        clone = ReachableNodeCache(support)
        clone._reachable = set(self._reachable)
        clone._by_infoset = {infoset: set(nodes) for infoset, nodes in self._by_infoset.items()}
        return clone

    def _generate(self, start: Node) -> int:
        added = 0
        stack = [start]
        while stack:
            node = stack.pop()
            if node.is_terminal:
                continue
            self._reachable.add(node)
            if node.infoset is not None:
                self._by_infoset[node.infoset].add(node)
            added += 1
            stack.extend(self._support.active_children(node))
        return added

    def _discard(self, start: Node) -> int:
        removed = 0
        stack = [start]
        while stack:
            node = stack.pop()
            # Reachability is closed under ancestors, so nothing cached lies below
            if node not in self._reachable:
                continue
            self._reachable.discard(node)
            if node.infoset is not None:
                self._by_infoset[node.infoset].discard(node)
            removed += 1
            stack.extend(node.children)
        return removed

    def _is_entered(self, node: Node) -> bool:
        parent = node.parent
        if parent is None:
            return True
        if parent not in self._reachable:
            return False
        if parent.is_chance:
            return True
        return self._support.is_active(parent.infoset.actions[node.branch])


class CachedSupport(Support):
    """Support that caches the reachable nonterminal nodes of each information set.

    Offers the same contract as ``Support``. The cache is built once on
    construction and repaired after each ``activate``/``deactivate``, so
    reachability queries read it instead of walking the tree.
    """

    def __init__(
        self,
        game: GameTree,
        name: str = SupportConfig.DEFAULT_NAME,
        active: Mapping[Infoset, Iterable[Action]] | None = None,
        cache: ReachableNodeCache | None = None,
    ) -> None:
        """Bind a cached support to ``game``.

        ``cache`` is copied instead of rebuilt. It must come from a support
        on the same game with the same active actions.
        """
        super().__init__(game, name, active)
        if cache is not None:
            self._cache = cache.copy_for(self)
        else:
            self._cache = ReachableNodeCache(self)
            self._cache.rebuild()

    def copy(self) -> CachedSupport:
        cache = None if SupportConfig.REBUILD_CACHE_ON_COPY else self._cache
        return type(self)(self._game, self.name, active=self._active, cache=cache)

    def reachable_nodes_in_infoset(self, infoset: Infoset) -> list[Node]:
        """Reachable members of ``infoset``, in preorder, read from the cache."""
        return self._cache.nodes_in_infoset(self._check_infoset(infoset))

    def reachable_nonterminal_nodes(
        self, node: Node | None = None, action: Action | None = None
    ) -> Mapping[Infoset, tuple[Node, ...]] | list[Node]:
        """Without arguments, the whole cache as a read-only mapping.

        With a node (and optionally an action) this behaves like
        ``Support.reachable_nonterminal_nodes``.
        """
        if node is None:
            if action is not None:
                raise TypeError("an action requires the node it is taken at")
            return self._cache.as_mapping()
        return super().reachable_nonterminal_nodes(node, action)

    def reachable_members(self, infoset: Infoset) -> list[Node]:
        return self.reachable_nodes_in_infoset(infoset)

    def may_reach(self, target: Node | Infoset) -> bool:
        if isinstance(target, Infoset):
            return self._cache.has_nodes_in_infoset(self._check_infoset(target))
        node = self._check_node(target)
        if not node.is_terminal:
            return self._cache.contains(node)
        return super().may_reach(node)
