"""Shared test fixtures for efsupport."""
from __future__ import annotations

import random
from collections.abc import Callable

import pytest

from efsupport.core.tree import GameTree, Infoset, Node
from efsupport.models.extensive_form import Action, DecisionNode, ExtensiveFormGame, Outcome
from efsupport.supports import Support


def _outcome(label: str, p1: float, p2: float) -> Outcome:
    return Outcome(label=label, payoffs={"P1": p1, "P2": p2})


@pytest.fixture
def trust_game() -> ExtensiveFormGame:
    """Return the Trust Game description."""
    return ExtensiveFormGame(
        id="trust-game",
        title="Trust Game",
        players=["Alice", "Bob"],
        root="n_start",
        nodes={
            "n_start": DecisionNode(
                id="n_start",
                player="Alice",
                actions=[
                    Action(label="Trust", target="n_bob"),
                    Action(label="Don't", target="o_decline"),
                ],
            ),
            "n_bob": DecisionNode(
                id="n_bob",
                player="Bob",
                actions=[
                    Action(label="Honor", target="o_coop"),
                    Action(label="Betray", target="o_betray"),
                ],
            ),
        },
        outcomes={
            "o_coop": Outcome(label="Cooperate", payoffs={"Alice": 1, "Bob": 1}),
            "o_betray": Outcome(label="Betray", payoffs={"Alice": -1, "Bob": 2}),
            "o_decline": Outcome(label="Decline", payoffs={"Alice": 0, "Bob": 0}),
        },
    )


@pytest.fixture
def left_right_game() -> ExtensiveFormGame:
    """P1 picks L or R; P2 then moves at information set A (after L) or B (after R)."""
    return ExtensiveFormGame(
        id="left-right",
        title="Left Right",
        players=["P1", "P2"],
        root="n_root",
        nodes={
            "n_root": DecisionNode(
                id="n_root",
                player="P1",
                information_set="root",
                actions=[Action(label="L", target="n_a"), Action(label="R", target="n_b")],
            ),
            "n_a": DecisionNode(
                id="n_a",
                player="P2",
                information_set="A",
                actions=[Action(label="A1", target="o_1"), Action(label="A2", target="o_2")],
            ),
            "n_b": DecisionNode(
                id="n_b",
                player="P2",
                information_set="B",
                actions=[Action(label="B1", target="o_3"), Action(label="B2", target="o_4")],
            ),
        },
        outcomes={
            "o_1": _outcome("LA1", 1, 0),
            "o_2": _outcome("LA2", 0, 1),
            "o_3": _outcome("RB1", 2, 0),
            "o_4": _outcome("RB2", 0, 2),
        },
    )


@pytest.fixture
def left_right_tree(left_right_game: ExtensiveFormGame) -> GameTree:
    return GameTree.from_game(left_right_game)


@pytest.fixture
def chance_game() -> ExtensiveFormGame:
    """Chance deals high or low; P1 cannot tell which and bets or folds.

    After a bet, P2 calls or quits at one information set spanning both deals.
    """
    return ExtensiveFormGame(
        id="chance-game",
        title="Chance Game",
        players=["P1", "P2"],
        root="n_deal",
        nodes={
            "n_deal": DecisionNode(
                id="n_deal",
                player="Chance",
                actions=[
                    Action(label="High", probability=0.5, target="n_p1_high"),
                    Action(label="Low", probability=0.5, target="n_p1_low"),
                ],
            ),
            "n_p1_high": DecisionNode(
                id="n_p1_high",
                player="P1",
                information_set="p1",
                actions=[Action(label="Bet", target="n_p2_high"), Action(label="Fold", target="o_fold")],
            ),
            "n_p1_low": DecisionNode(
                id="n_p1_low",
                player="P1",
                information_set="p1",
                actions=[Action(label="Bet", target="n_p2_low"), Action(label="Fold", target="o_fold")],
            ),
            "n_p2_high": DecisionNode(
                id="n_p2_high",
                player="P2",
                information_set="p2",
                actions=[Action(label="Call", target="o_win"), Action(label="Quit", target="o_p1")],
            ),
            "n_p2_low": DecisionNode(
                id="n_p2_low",
                player="P2",
                information_set="p2",
                actions=[Action(label="Call", target="o_lose"), Action(label="Quit", target="o_p1")],
            ),
        },
        outcomes={
            "o_fold": _outcome("Fold", -1, 1),
            "o_win": _outcome("Showdown win", 2, -2),
            "o_lose": _outcome("Showdown loss", -2, 2),
            "o_p1": _outcome("P2 quits", 1, -1),
        },
    )


@pytest.fixture
def chance_tree(chance_game: ExtensiveFormGame) -> GameTree:
    return GameTree.from_game(chance_game)


def build_random_game(seed: int, max_depth: int = 5, players: int = 2) -> ExtensiveFormGame:
    """Generate a random game tree with chance nodes and shared information sets.

    Player nodes with the same player and action count are merged into
    shared information sets at random, so some information sets span
    several subtrees (and sometimes nest inside themselves).
    """
    rng = random.Random(seed)
    player_names = [f"P{i + 1}" for i in range(players)]
    nodes: dict[str, DecisionNode] = {}
    outcomes: dict[str, Outcome] = {}
    infoset_pool: dict[tuple[str, int], list[str]] = {}
    counter = 0

    def grow(depth: int) -> str:
        nonlocal counter
        counter += 1
        node_id = f"n{counter}"
        if depth >= max_depth or (depth > 0 and rng.random() < 0.25):
            outcomes[node_id] = Outcome(label=node_id, payoffs={p: 0.0 for p in player_names})
            return node_id

        width = rng.randint(1, 3)
        targets = [grow(depth + 1) for _ in range(width)]
        if rng.random() < 0.2:
            probability = 1.0 / width
            actions = [
                Action(label=f"c{i}", probability=probability, target=target)
                for i, target in enumerate(targets)
            ]
            nodes[node_id] = DecisionNode(id=node_id, player="Chance", actions=actions)
            return node_id

        player = rng.choice(player_names)
        labels = infoset_pool.setdefault((player, width), [])
        if labels and rng.random() < 0.5:
            infoset = rng.choice(labels)
        else:
            infoset = f"{player}-{width}-{len(labels)}"
            labels.append(infoset)
        actions = [Action(label=f"a{i}", target=target) for i, target in enumerate(targets)]
        nodes[node_id] = DecisionNode(
            id=node_id, player=player, information_set=infoset, actions=actions
        )
        return node_id

    root = grow(0)
    return ExtensiveFormGame(
        id=f"random-{seed}",
        title=f"Random game {seed}",
        players=player_names,
        root=root,
        nodes=nodes,
        outcomes=outcomes,
    )


@pytest.fixture
def random_tree() -> Callable[[int], GameTree]:
    """Factory fixture: compile a random game for a seed."""

    def _make(seed: int) -> GameTree:
        return GameTree.from_game(build_random_game(seed))

    return _make


def fresh_reachable_nodes(support: Support) -> dict[Infoset, list[Node]]:
    """Reachable nonterminal nodes per infoset, from a full walk of the tree.

    Deliberately independent of the support's own traversal code: it only
    asks the support which actions are active.
    """
    game = support.game
    found: dict[Infoset, list[Node]] = {infoset: [] for infoset in game.infosets()}
    stack = [game.root]
    while stack:
        node = stack.pop()
        if node.is_terminal:
            continue
        if node.is_chance:
            stack.extend(node.children)
            continue
        found[node.infoset].append(node)
        for action in node.infoset.actions:
            if support.is_active(action):
                stack.append(node.child(action))
    return {infoset: sorted(nodes, key=lambda n: n.number) for infoset, nodes in found.items()}


@pytest.fixture
def reference_reachable() -> Callable[[Support], dict[Infoset, list[Node]]]:
    return fresh_reachable_nodes
