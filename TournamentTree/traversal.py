"""Read-only walks over a finished tournament tree."""

from __future__ import annotations

from typing import List

import numpy as np

from TournamentTree.TournamentTreeArray import NIL, TournamentTree


def pre_order(tree: TournamentTree) -> np.ndarray:
    """Values in pre-order (node, left, right), computed by the compiled iterative walk."""
    return tree.pre_order()


def pre_order_recursive(tree: TournamentTree) -> List[int]:
    """Same sequence as :func:`pre_order`, produced by a plain recursive walk.

    Slow (one call into the arena per field read); meant for cross-checking.
    Raises ``IndexError`` on a dangling link or when a node is reached twice.
    """
    visited: List[int] = []

    def visit(index: int) -> None:
        if index == NIL:
            return
        if len(visited) == len(tree):
            raise IndexError("node reached more than once")
        visited.append(int(tree.get_value(index)))
        visit(tree.get_left(index))
        visit(tree.get_right(index))

    visit(tree.root)
    return visited


def leaf_values(tree: TournamentTree) -> List[int]:
    """Leaf values read left to right across the bottom of the tree."""
    leaves: List[int] = []
    stack = [tree.root] if tree.root != NIL else []
    visited = 0

    while stack:
        index = stack.pop()
        if visited == len(tree):
            raise IndexError("node reached more than once")
        visited += 1

        left = tree.get_left(index)
        right = tree.get_right(index)
        if left == NIL and right == NIL:
            leaves.append(int(tree.get_value(index)))
            continue
        if right != NIL:
            stack.append(right)
        if left != NIL:
            stack.append(left)

    return leaves
