import numpy as np
from numba import njit, int64, uint64
from numba.experimental import jitclass
from typing import Tuple



# Node storage is split into two parallel arrays indexed by node id:
#     values[i] : int64 payload
#     links[i]  : packed 64-bit link word
#
# Packed 64-bit link layout:
#     LAYOUT[64]: [unused[1] | parent[21] | left[21] | right[21]]
#     Limitations:
#         0 <= parent <= (1 << 21) - 1
#         0 <= left   <= (1 << 21) - 1
#         0 <= right  <= (1 << 21) - 1
#
# Index 0 is the reserved null slot (NIL): a link equal to 0 is absent.



# LAYOUT[64]: [unused[1] | parent[21] | left[21] | right[21]]
LINK_MASK    = np.uint64(0x1FFFFF) # (1 << 21) - 1
RIGHT_SHIFT  = np.uint64(0x0)      # 0
LEFT_SHIFT   = np.uint64(0x15)     # 21
PARENT_SHIFT = np.uint64(0x2A)     # 42

NIL       = 0
MAX_NODES = (1 << 21) - 1



# ---------- JIT-Compiled Bitwise Accessors / Updaters for Packed Links ----------
@njit(inline="always")
def pack(
    parent: np.uint64,
    left:   np.uint64,
    right:  np.uint64

) -> np.uint64:

    """
    Pack three node indices into a single 64-bit link word according to the
    layout: [unused[1] | parent[21] | left[21] | right[21]].

    Indices wider than 21 bits are truncated by the mask; range checks belong
    to the arena, not to the packer.

    :param parent: Index of the parent node, or NIL
    :type parent: np.uint64
    :param left: Index of the left child, or NIL
    :type left: np.uint64
    :param right: Index of the right child, or NIL
    :type right: np.uint64
    :return: The packed link word
    :rtype: np.uint64
    """

    return np.uint64(
        ((np.uint64(parent) & LINK_MASK) << PARENT_SHIFT)
        | ((np.uint64(left) & LINK_MASK) << LEFT_SHIFT)
        | ((np.uint64(right) & LINK_MASK) << RIGHT_SHIFT)
    )

@njit(inline="always")
def unpack(
    links: np.uint64

) -> Tuple[np.int64, np.int64, np.int64]:

    """
    Unpack a link word into its (parent, left, right) indices.

    NOTE:
    Intended for inspection and tests. Hot loops read a single field with
    the `_get_*` accessors instead.
    """

    word   = np.uint64(links)
    parent = np.int64((word >> PARENT_SHIFT) & LINK_MASK)
    left   = np.int64((word >> LEFT_SHIFT) & LINK_MASK)
    right  = np.int64((word >> RIGHT_SHIFT) & LINK_MASK)

    return parent, left, right

@njit(inline="always")
def _get_parent(
    links: np.uint64

) -> np.int64:

    """
    Extract the 'parent' field (21 bits) from a link word.
    """

    return np.int64((np.uint64(links) >> PARENT_SHIFT) & LINK_MASK)

@njit(inline="always")
def _get_left(
    links: np.uint64

) -> np.int64:

    """
    Extract the 'left' field (21 bits) from a link word.
    """

    return np.int64((np.uint64(links) >> LEFT_SHIFT) & LINK_MASK)

@njit(inline="always")
def _get_right(
    links: np.uint64

) -> np.int64:

    return np.int64((np.uint64(links) >> RIGHT_SHIFT) & LINK_MASK)

@njit(inline="always")
def _update_parent(
    links:      np.uint64,
    new_parent: np.uint64

) -> np.uint64:

    """
    Update the 'parent' field (21 bits) in a link word.

    Only the parent bits are replaced; the child links are returned unchanged.
    """

    word   = np.uint64(links)
    parent = np.uint64(new_parent)

    return (word & ~(LINK_MASK << PARENT_SHIFT)) | ((parent & LINK_MASK) << PARENT_SHIFT)

@njit(inline="always")
def make_leaf(
    value: np.int64

) -> Tuple[np.int64, np.uint64]:

    """
    Build a leaf node: the value with every link absent.
    """

    return np.int64(value), pack(NIL, NIL, NIL)

@njit(inline="always")
def make_node(
    value: np.int64,
    left:  np.int64,
    right: np.int64

) -> Tuple[np.int64, np.uint64]:

    """
    Build an internal node with explicit children.

    The parent link starts absent; the owner fills it in once the node that
    merges this one has been inserted.
    """

    return np.int64(value), pack(NIL, left, right)



# ---------- JIT-Compiled Tournament Tree Core Operations ----------
@njit
def build_tournament(
    data: np.ndarray

) -> 'TournamentTree':

    """
    Build a tournament (winner) tree bottom-up from a 1D int64 array.

    Leaves are inserted first, in input order. Every round then merges the
    current level in consecutive pairs: the merge node holds the larger of
    the two values and becomes the parent of both. An unpaired trailing node
    is carried to the next level as-is, its parent left unset until a later
    round pairs it. The loop stops when a single index remains; that index is
    recorded as the root.

    An n-element input creates exactly n - 1 merge nodes, so the arena is
    allocated once with 2n - 1 slots.

    Args:
        data (np.ndarray): 1D int64 array of leaf values.

    Returns:
        TournamentTree: The linked tree. Empty input gives an empty tree
        whose root is NIL.
    """

    n    = data.size
    tree = TournamentTree(2 * n - 1 if n > 0 else 0)

    if n == 0:
        return tree

    # Level list reused in place: writes never overtake reads.
    level = np.empty(n, dtype=np.int64)
    for i in range(n):
        level[i] = tree.add_node(make_leaf(data[i]))

    width = n
    while width > 1:

        next_width = 0
        for j in range(0, width - 1, 2):
            t1 = level[j]
            t2 = level[j + 1]

            value  = max(tree.get_value(t1), tree.get_value(t2))
            merged = tree.add_node(make_node(value, t1, t2))

            tree.set_parent(t1, merged)
            tree.set_parent(t2, merged)

            level[next_width] = merged
            next_width += 1

        # Odd level: carry the leftover forward unmerged
        if width % 2 == 1:
            level[next_width] = level[width - 1]
            next_width += 1

        width = next_width

    tree.set_root(level[0])

    return tree

@njit
def preorder_traversal( # VLR
    values: np.ndarray,
    links:  np.ndarray,
    root:   np.int64,
    count:  np.int64

) -> np.ndarray:

    """
    Collect node values in pre-order: node, then left subtree, then right
    subtree. Iterative with an explicit stack sized to the arena, so depth is
    never a concern.

    Raises:
        IndexError: If a link points outside the arena, or if more nodes are
            reached than the arena holds (a cycle or a shared child).
    """

    traverse = np.empty(count, dtype=np.int64)
    stack    = np.empty(count + 1, dtype=np.int64)

    stack_idx    = 0
    traverse_idx = 0

    if root != NIL:
        stack[0]  = root
        stack_idx = 1

    while stack_idx > 0:

        stack_idx -= 1
        current = stack[stack_idx]

        if current < 1 or current > count:
            raise IndexError("node index out of range")

        # Visiting more than count nodes means the links revisit one
        if traverse_idx == count:
            raise IndexError("node reached more than once")

        traverse[traverse_idx] = values[current]
        traverse_idx += 1

        # Right pushed first so left is visited first
        right = _get_right(links[current])
        left  = _get_left(links[current])

        if right != NIL:
            stack[stack_idx] = right
            stack_idx += 1

        if left != NIL:
            stack[stack_idx] = left
            stack_idx += 1

    return traverse[:traverse_idx]

@njit
def _subtree_height(
    links: np.ndarray,
    root:  np.int64,
    count: np.int64

) -> np.int64:

    """
    Number of levels on the longest root-to-leaf path (0 for NIL).
    """

    if root == NIL:
        return 0

    stack  = np.empty(count + 1, dtype=np.int64)
    depths = np.empty(count + 1, dtype=np.int64)

    stack[0]  = root
    depths[0] = 1
    stack_idx = 1
    visited   = 0
    height    = 0

    while stack_idx > 0:

        stack_idx -= 1
        current = stack[stack_idx]
        depth   = depths[stack_idx]

        if current < 1 or current > count:
            raise IndexError("node index out of range")

        if visited == count:
            raise IndexError("node reached more than once")
        visited += 1

        if depth > height:
            height = depth

        left  = _get_left(links[current])
        right = _get_right(links[current])

        if left != NIL:
            stack[stack_idx]  = left
            depths[stack_idx] = depth + 1
            stack_idx += 1

        if right != NIL:
            stack[stack_idx]  = right
            depths[stack_idx] = depth + 1
            stack_idx += 1

    return height



# --------- Utils ---------
@njit
def warmup():
    """
    Minimally triggers JIT compilation for construction and traversal.
    """

    warmup_data = np.array([7, 6, 15, 16, 8], dtype=np.int64)

    tree = build_tournament(warmup_data)
    order  = tree.pre_order()
    height = tree.height

    return order.size == tree.count and height > 0



# --------- TournamentTree API ---------
tree_spec = [
    ("capacity", int64),
    ("count"   , int64),
    ("values"  , int64[:]),
    ("links"   , uint64[:]),
    ("root"    , int64),

]

@jitclass(tree_spec)
class TournamentTree:
    """
    Append-only arena holding a binary tree, implemented as a Numba jitclass.

    Nodes live in two parallel NumPy arrays (values and packed link words) and
    are referenced only by their integer index. Slot 0 is the NIL sentinel, so
    the first node gets index 1. Indices are stable: nodes are never removed
    and storage only grows.

    Attributes:
        capacity (int64): Number of node slots currently allocated.
        count (int64): Number of nodes inserted so far.
        values (int64[:]): Node payloads, indexed by node id.
        links (uint64[:]): Packed [parent | left | right] words, indexed by node id.
        root (int64): Index of the root node (NIL until set).
    """

    def __init__(
        self,
        capacity: int

    ) -> None:

        if capacity < 0 or capacity > MAX_NODES:
            raise ValueError("capacity must be between 0 and 2097151")

        self.capacity = int64(capacity)
        self.count    = int64(0)
        self.values   = np.zeros(capacity + 1, dtype=np.int64)
        self.links    = np.zeros(capacity + 1, dtype=np.uint64)
        self.root     = int64(NIL)

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @property
    def height(self) -> int:
        return _subtree_height(self.links, self.root, self.count)

    @property
    def max_value(self) -> int:
        """
        Value held by the root, i.e. the maximum of the whole input.

        Raises:
            IndexError: If no root has been set.
        """

        if self.root == NIL:
            raise IndexError("max_value of a tree without a root")

        return self.values[self.root]

    @property
    def leaf_count(self) -> int:
        leaves = 0
        for i in range(1, self.count + 1):
            if _get_left(self.links[i]) == NIL and _get_right(self.links[i]) == NIL:
                leaves += 1

        return leaves

    @property
    def internal_count(self) -> int:
        return self.count - self.leaf_count

    def _check_index(
        self,
        index: int

    ) -> None:

        if index < 1 or index > self.count:
            raise IndexError("node index out of range")

    def _grow(
        self,
        needed: int

    ) -> None:

        """
        Make room for at least `needed` nodes, doubling the allocation.
        Existing indices keep their slots.
        """

        if needed <= self.capacity:
            return

        if needed > MAX_NODES:
            raise OverflowError("tree exceeds 2097151 nodes")

        new_capacity = max(needed, 2 * self.capacity)
        if new_capacity > MAX_NODES:
            new_capacity = MAX_NODES

        values = np.zeros(new_capacity + 1, dtype=np.int64)
        links  = np.zeros(new_capacity + 1, dtype=np.uint64)

        values[:self.count + 1] = self.values[:self.count + 1]
        links[:self.count + 1]  = self.links[:self.count + 1]

        self.values   = values
        self.links    = links
        self.capacity = new_capacity

    def add_node(
        self,
        node: Tuple[int, int]

    ) -> int:

        """
        Append a node built by `make_leaf` / `make_node`.

        Args:
            node (Tuple[int, int]): (value, packed links).

        Returns:
            int: The index assigned to the node.
        """

        self._grow(self.count + 1)

        index = self.count + 1

        self.values[index] = np.int64(node[0])
        self.links[index]  = np.uint64(node[1])
        self.count         = index

        return index

    def node_at(
        self,
        index: int

    ) -> Tuple[int, int, int, int]:

        """
        Unpack all fields of a node.

        Args:
            index (int): A node index previously returned by `add_node`.

        Returns:
            Tuple[int, int, int, int]: (value, parent, left, right).

        Raises:
            IndexError: If the index was never assigned by this arena.
        """

        self._check_index(index)

        parent, left, right = unpack(self.links[index])
        return self.values[index], parent, left, right

    def get_value(
        self,
        index: int

    ) -> int:

        self._check_index(index)
        return self.values[index]

    def get_parent(
        self,
        index: int

    ) -> int:

        """
        Get the index of the parent node, or NIL for the root and for nodes
        not merged yet.
        """

        self._check_index(index)
        return _get_parent(self.links[index])

    def get_left(
        self,
        index: int

    ) -> int:

        """
        Get the index of the left child, or NIL for a leaf.
        """

        self._check_index(index)
        return _get_left(self.links[index])

    def get_right(
        self,
        index: int

    ) -> int:

        """
        Get the index of the right child, or NIL for a leaf.
        """

        self._check_index(index)
        return _get_right(self.links[index])

    def is_leaf(
        self,
        index: int

    ) -> bool:

        self._check_index(index)
        return _get_left(self.links[index]) == NIL and _get_right(self.links[index]) == NIL

    def set_parent(
        self,
        index:  int,
        parent: int

    ) -> None:

        """
        Link a node to its merge parent. The parent link is the only field
        that may change after insertion.
        """

        self._check_index(index)
        self._check_index(parent)

        self.links[index] = _update_parent(self.links[index], parent)

    def set_root(
        self,
        index: int

    ) -> None:

        """Record the traversal entry point. Only the index range is checked."""

        self._check_index(index)
        self.root = index

    def pre_order(self) -> np.ndarray:
        """
        Node values in pre-order (node, left, right) starting at the root.
        Empty when no root is set.
        """
        return preorder_traversal(self.values, self.links, self.root, self.count)

    def __len__(self) -> int:
        return int(self.count)

    def __str__(self) -> str:
        return "TournamentTree(size=" + str(self.count) + ", root=" + str(self.root) + ", height=" + str(self.height) + ")"
