"""Python entry points for building and checking tournament trees."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import List, Optional

import numpy as np

from TournamentTree.TournamentTreeArray import (
    MAX_NODES,
    NIL,
    TournamentTree,
    build_tournament,
)

logger = logging.getLogger(__name__)

INT64_MAX = int(np.iinfo(np.int64).max)


def as_int64_array(elements: Iterable[int]) -> np.ndarray:
    """Coerce a sequence of integers into the contiguous int64 array the kernels expect.

    Iterators and other one-shot iterables are drained into a list first, in
    iteration order.
    """
    if isinstance(elements, Iterable) and not isinstance(elements, (np.ndarray, Sequence)):
        elements = list(elements)

    data = np.asarray(elements)

    if data.ndim != 1:
        raise ValueError(f"expected a 1-D sequence, got {data.ndim} dimension(s)")

    if data.size == 0:
        return np.zeros(0, dtype=np.int64)

    if data.dtype == np.bool_ or not np.issubdtype(data.dtype, np.integer):
        raise TypeError(f"expected integer elements, got dtype {data.dtype}")

    if data.dtype == np.uint64 and int(data.max()) > INT64_MAX:
        raise OverflowError("element does not fit in a signed 64-bit integer")

    return np.ascontiguousarray(data, dtype=np.int64)


def build_tournament_tree(elements: Iterable[int]) -> TournamentTree:
    """Build the winner tree for ``elements``.

    Leaves keep the input order and the root holds the maximum. An empty input
    returns an empty tree (``len(tree) == 0`` and ``tree.root == NIL``).

    Raises:
        ValueError: If the input is not 1-D or needs more than ``MAX_NODES`` nodes.
        TypeError: If the elements are not integers.
        OverflowError: If an unsigned element does not fit in int64.
    """
    data = as_int64_array(elements)

    needed = 2 * data.size - 1
    if needed > MAX_NODES:
        raise ValueError(
            f"{data.size} elements need {needed} nodes, more than the {MAX_NODES} supported"
        )

    tree = build_tournament(data)

    if tree.root == NIL:
        logger.debug("Built empty tournament tree")
    else:
        logger.debug(
            "Built tournament tree: %d leaves, %d nodes, root=%d, max=%d",
            data.size,
            len(tree),
            tree.root,
            tree.max_value,
        )
    return tree


def verify_tournament_tree(tree: TournamentTree, elements: Optional[Iterable[int]] = None) -> None:
    """Walk ``tree`` from the root and raise ``ValueError`` on the first broken invariant.

    Checked: the root has no parent, every internal node has two children whose
    parent link points back to it and holds the larger of their values, every
    arena node is reachable exactly once, the root holds the maximum, and (when
    ``elements`` is given) the leaves read left to right equal ``elements``.
    """
    expected: Optional[List[int]] = None
    if elements is not None:
        expected = as_int64_array(elements).tolist()

    if tree.root == NIL:
        if len(tree) != 0:
            raise ValueError(f"tree holds {len(tree)} nodes but has no root")
        if expected:
            raise ValueError("empty tree for a non-empty input")
        return

    if tree.get_parent(tree.root) != NIL:
        raise ValueError(f"root {tree.root} has parent {tree.get_parent(tree.root)}")

    seen = set()
    leaves: List[int] = []
    stack = [tree.root]

    while stack:
        index = stack.pop()
        if index in seen:
            raise ValueError(f"node {index} is reachable more than once")
        seen.add(index)

        value, _, left, right = tree.node_at(index)

        if left == NIL and right == NIL:
            leaves.append(value)
            continue

        if left == NIL or right == NIL:
            raise ValueError(f"internal node {index} has a single child")

        for child in (left, right):
            if tree.get_parent(child) != index:
                raise ValueError(
                    f"node {child} is a child of {index} but its parent is {tree.get_parent(child)}"
                )

        winner = max(tree.get_value(left), tree.get_value(right))
        if value != winner:
            raise ValueError(f"node {index} holds {value}, expected max of children {winner}")

        # Left popped first so leaves come out left to right
        stack.append(right)
        stack.append(left)

    if len(seen) != len(tree):
        raise ValueError(f"{len(tree) - len(seen)} node(s) unreachable from root {tree.root}")

    if tree.max_value != max(leaves):
        raise ValueError(f"root holds {tree.max_value}, maximum leaf is {max(leaves)}")

    if expected is not None and leaves != expected:
        raise ValueError(f"leaves {leaves} do not match input {expected}")
