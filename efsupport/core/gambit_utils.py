"""Utilities for compiling in-memory Gambit games into a GameTree.

Gambit is a library for game theory computations. Games built or loaded
with pygambit are translated into our ``ExtensiveFormGame`` description
and compiled, so supports can be bound to them.

NOTE: This module assumes pygambit is available. It should only be imported
from code paths that have already verified PYGAMBIT_AVAILABLE is True.
"""
from __future__ import annotations

import pygambit as gbt

from efsupport.config import TreeConfig
from efsupport.core.tree import GameTree
from efsupport.models.extensive_form import Action, DecisionNode, ExtensiveFormGame, Outcome


def gambit_to_tree(gambit_game: gbt.Game, game_id: str = "gambit") -> GameTree:
    """Compile a pygambit extensive-form game into a GameTree.

    Args:
        gambit_game: A pygambit game in extensive form.
        game_id: Identifier for the compiled game.

    Returns:
        The compiled arena.
    """
    return GameTree.from_game(gambit_to_game(gambit_game, game_id))


def gambit_to_game(gambit_game: gbt.Game, game_id: str = "gambit") -> ExtensiveFormGame:
    """Convert a pygambit game to our ExtensiveFormGame description."""
    players = [p.label or f"Player{i+1}" for i, p in enumerate(gambit_game.players)]
    nodes: dict[str, DecisionNode] = {}
    outcomes: dict[str, Outcome] = {}

    root_id = _convert_subtree(gambit_game, gambit_game.root, players, nodes, outcomes)

    return ExtensiveFormGame(
        id=game_id,
        title=gambit_game.title or game_id,
        players=players,
        root=root_id,
        nodes=nodes,
        outcomes=outcomes,
        tags=["gambit"],
    )


def _convert_subtree(
    gambit_game: gbt.Game,
    root: gbt.Node,
    players: list[str],
    nodes: dict[str, DecisionNode],
    outcomes: dict[str, Outcome],
) -> str:
    """Translate the tree below ``root`` iteratively, returning the root's ID."""
    gambit_players = list(gambit_game.players)
    counter = 0
    root_id = ""
    # Each entry is a gambit node plus the (node_id, action_index) slot it fills
    stack: list[tuple[gbt.Node, tuple[str, int] | None]] = [(root, None)]
    pending: dict[str, list[Action]] = {}

    while stack:
        node, slot = stack.pop()
        counter += 1

        if node.is_terminal:
            node_id = f"o_{counter}"
            payoffs = {}
            if node.outcome is not None:
                payoffs = {
                    players[j]: float(node.outcome[player])
                    for j, player in enumerate(gambit_players)
                }
            outcomes[node_id] = Outcome(
                label=(node.outcome.label if node.outcome is not None else "") or node_id,
                payoffs=payoffs,
            )
        else:
            node_id = f"n_{counter}"
            infoset = node.infoset
            is_chance = node.player.is_chance
            pending[node_id] = [
                Action(
                    label=action.label or f"Action {i+1}",
                    probability=float(action.prob) if is_chance else None,
                )
                for i, action in enumerate(infoset.actions)
            ]
            if is_chance:
                player_name = TreeConfig.CHANCE_PLAYER
                info_set_id = None
            else:
                player_idx = gambit_players.index(node.player)
                player_name = players[player_idx]
                infoset_idx = list(node.player.infosets).index(infoset)
                info_set_id = f"h_{player_idx}_{infoset_idx}"
            nodes[node_id] = DecisionNode(
                id=node_id,
                player=player_name,
                actions=[],
                information_set=info_set_id,
            )
            children = list(node.children)
            for index in reversed(range(len(children))):
                stack.append((children[index], (node_id, index)))

        if slot is None:
            root_id = node_id
        else:
            parent_id, index = slot
            action = pending[parent_id][index]
            pending[parent_id][index] = action.model_copy(update={"target": node_id})

    # Models are frozen; attach the completed action lists in one pass
    for node_id, actions in pending.items():
        nodes[node_id] = nodes[node_id].model_copy(update={"actions": actions})

    return root_id
