"""Tests for the packed node layout and the arena jitclass."""

from __future__ import annotations

import numpy as np
import pytest

from TournamentTree.TournamentTreeArray import (
    MAX_NODES,
    NIL,
    TournamentTree,
    make_leaf,
    make_node,
    pack,
    unpack,
    warmup,
)


def test_pack_unpack_fields_are_independent():
    links = pack(MAX_NODES, 5, 1)
    assert unpack(links) == (MAX_NODES, 5, 1)
    assert unpack(pack(NIL, NIL, NIL)) == (0, 0, 0)


def test_leaf_and_internal_node_constructors():
    value, links = make_leaf(42)
    assert value == 42
    assert unpack(links) == (NIL, NIL, NIL)

    value, links = make_node(9, 3, 4)
    assert value == 9
    assert unpack(links) == (NIL, 3, 4)


def test_add_node_hands_out_sequential_indices():
    tree = TournamentTree(4)
    assert tree.is_empty
    assert tree.add_node(make_leaf(10)) == 1
    assert tree.add_node(make_leaf(-3)) == 2
    assert len(tree) == 2
    assert tree.node_at(2) == (-3, NIL, NIL, NIL)


def test_arena_grows_and_keeps_indices_stable():
    tree = TournamentTree(0)
    indices = [tree.add_node(make_leaf(v)) for v in range(10)]
    assert indices == list(range(1, 11))
    assert tree.capacity >= 10
    assert [tree.get_value(i) for i in indices] == list(range(10))


def test_set_parent_only_touches_parent_link():
    tree = TournamentTree(3)
    a = tree.add_node(make_leaf(1))
    b = tree.add_node(make_leaf(2))
    p = tree.add_node(make_node(2, a, b))
    tree.set_parent(a, p)
    tree.set_parent(b, p)

    assert tree.node_at(a) == (1, p, NIL, NIL)
    assert tree.node_at(p) == (2, NIL, a, b)
    assert tree.is_leaf(a)
    assert not tree.is_leaf(p)


@pytest.mark.parametrize("index", [0, -1, 3, 100])
def test_invalid_index_is_a_contract_violation(index):
    tree = TournamentTree(2)
    tree.add_node(make_leaf(1))
    tree.add_node(make_leaf(2))

    with pytest.raises(IndexError):
        tree.node_at(index)
    with pytest.raises(IndexError):
        tree.get_value(index)
    with pytest.raises(IndexError):
        tree.set_root(index)


def test_capacity_out_of_range_is_rejected():
    with pytest.raises(ValueError):
        TournamentTree(-1)
    with pytest.raises(ValueError):
        TournamentTree(MAX_NODES + 1)


def test_empty_arena_has_no_root():
    tree = TournamentTree(0)
    assert tree.root == NIL
    assert tree.height == 0
    assert tree.pre_order().size == 0
    with pytest.raises(IndexError):
        tree.max_value


def test_manual_tree_traversal_and_counts():
    tree = TournamentTree(3)
    a = tree.add_node(make_leaf(4))
    b = tree.add_node(make_leaf(8))
    p = tree.add_node(make_node(8, a, b))
    tree.set_parent(a, p)
    tree.set_parent(b, p)
    tree.set_root(p)

    assert tree.pre_order().tolist() == [8, 4, 8]
    assert tree.max_value == 8
    assert tree.height == 2
    assert tree.leaf_count == 2
    assert tree.internal_count == 1
    assert str(tree) == "TournamentTree(size=3, root=3, height=2)"


def test_warmup_compiles():
    assert warmup()


def test_pre_order_returns_int64_array():
    tree = TournamentTree(1)
    index = tree.add_node(make_leaf(7))
    tree.set_root(index)
    order = tree.pre_order()
    assert isinstance(order, np.ndarray)
    assert order.dtype == np.int64
    assert order.tolist() == [7]


def test_dangling_child_raises_instead_of_reading_past_the_arena():
    tree = TournamentTree(1)
    index = tree.add_node(make_node(1, 1000, 2000))
    tree.set_root(index)

    with pytest.raises(IndexError):
        tree.pre_order()
    with pytest.raises(IndexError):
        tree.height


def test_self_linked_root_raises():
    tree = TournamentTree(1)
    index = tree.add_node(make_node(1, 1, 1))
    tree.set_root(index)

    with pytest.raises(IndexError):
        tree.pre_order()
    with pytest.raises(IndexError):
        tree.height


def test_shared_child_is_reached_twice():
    tree = TournamentTree(2)
    leaf = tree.add_node(make_leaf(3))
    root = tree.add_node(make_node(3, leaf, leaf))
    tree.set_root(root)

    with pytest.raises(IndexError):
        tree.pre_order()
