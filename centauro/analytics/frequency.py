"""
Move-frequency trie and main-line selection for theory lessons.

The trie is an arena: nodes live in `MoveFrequencyTree.nodes` and children
refer to them by index, so no node is ever shared between two parents.
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from ..config import TheoryOptions
from ..errors import IllegalMoveError
from ..models import CandidateLine, MoveEdge, MoveTreeNode
from ..rules import ChessRules, RulesEngine

module_logger = logging.getLogger(__name__)

ROOT = 0


class MoveFrequencyTree:
    """Weighted trie of move sequences keyed by move notation."""

    def __init__(self, root_position: str):
        self.nodes: List[MoveTreeNode] = [MoveTreeNode(position_id=root_position)]
        self.games_added = 0

    @property
    def root(self) -> MoveTreeNode:
        return self.nodes[ROOT]

    def node(self, index: int) -> MoveTreeNode:
        return self.nodes[index]

    def _new_node(self, position_id: str) -> int:
        self.nodes.append(MoveTreeNode(position_id=position_id))
        return len(self.nodes) - 1

    def add_game(
        self,
        moves: Sequence[str],
        rules: RulesEngine,
        *,
        game_index: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> int:
        """
        Add one move sequence; return how many of its moves were consumed.

        A move that cannot be applied ends the game's contribution, but the
        moves before it stay counted.
        """
        current = ROOT
        consumed = 0
        for move in moves:
            node = self.nodes[current]
            edge = node.children.get(move)
            if edge is None:
                try:
                    position = rules.apply(node.position_id, move)
                except IllegalMoveError as exc:
                    (logger or module_logger).info(
                        "Game %s stops contributing at ply %d: %s",
                        "?" if game_index is None else game_index,
                        consumed + 1,
                        exc,
                    )
                    break
                edge = MoveEdge(count=0, child=self._new_node(position))
                node.children[move] = edge
            node.total_visits += 1
            edge.count += 1
            current = edge.child
            consumed += 1
        if consumed:
            self.games_added += 1
        return consumed

    @classmethod
    def build(
        cls,
        games: Iterable[Sequence[str]],
        rules: Optional[RulesEngine] = None,
    ) -> "MoveFrequencyTree":
        rules = rules or ChessRules()
        tree = cls(rules.initial_position())
        for index, moves in enumerate(games):
            tree.add_game(moves, rules, game_index=index)
        return tree

    def walk(self) -> Iterator[Tuple[int, MoveTreeNode]]:
        """Yield `(index, node)` for every node, depth-first from the root."""
        stack = [ROOT]
        while stack:
            index = stack.pop()
            node = self.nodes[index]
            yield index, node
            stack.extend(reversed([edge.child for edge in node.children.values()]))


def build_move_tree(games: Iterable[Sequence[str]], rules: Optional[RulesEngine] = None) -> MoveFrequencyTree:
    return MoveFrequencyTree.build(games, rules)


class MainLineSelector:
    """Emit every line whose steps all clear the frequency/sample thresholds."""

    def __init__(self, options: TheoryOptions):
        self.options = options

    def select(self, tree: MoveFrequencyTree) -> List[CandidateLine]:
        lines: List[CandidateLine] = []
        self._dfs(tree, ROOT, [], [tree.root.position_id], [], 0, lines)
        return lines

    def qualifying_children(self, node: MoveTreeNode) -> List[Tuple[str, MoveEdge, float]]:
        """Children passing both thresholds, most frequent first (ties keep insertion order)."""
        total = node.total_visits or node.child_count_sum()
        candidates = []
        for move, edge in node.children.items():
            frequency = edge.count / total if total else 0.0
            if edge.count >= self.options.min_samples_per_node and frequency >= self.options.min_frequency:
                candidates.append((move, edge, frequency))
        # sorted() is stable, so equal frequencies stay in insertion order
        return sorted(candidates, key=lambda item: -item[2])

    def _dfs(
        self,
        tree: MoveFrequencyTree,
        index: int,
        moves: List[str],
        positions: List[str],
        frequencies: List[float],
        depth: int,
        lines: List[CandidateLine],
    ) -> None:
        if depth >= self.options.max_depth:
            self._emit(moves, positions, frequencies, lines)
            return

        candidates = self.qualifying_children(tree.node(index))
        if not candidates:
            self._emit(moves, positions, frequencies, lines)
            return

        for move, edge, frequency in candidates:
            child = tree.node(edge.child)
            self._dfs(
                tree,
                edge.child,
                moves + [move],
                positions + [child.position_id],
                frequencies + [frequency],
                depth + 1,
                lines,
            )

    @staticmethod
    def _emit(
        moves: List[str],
        positions: List[str],
        frequencies: List[float],
        lines: List[CandidateLine],
    ) -> None:
        if not moves:
            return
        lines.append(
            CandidateLine(
                moves=tuple(moves),
                positions=tuple(positions),
                step_frequencies=tuple(frequencies),
            )
        )


def select_main_lines(tree: MoveFrequencyTree, options: TheoryOptions) -> List[CandidateLine]:
    return MainLineSelector(options).select(tree)


__all__ = [
    "MoveFrequencyTree",
    "MainLineSelector",
    "build_move_tree",
    "select_main_lines",
]
