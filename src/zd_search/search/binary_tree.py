"""Plain (non self-balancing) binary search tree.

The search index only ever inserts while it is being built and only ever reads
afterwards, so a vanilla tree that is rebalanced exactly once is enough. Shape
after ``set`` is purely a function of insertion order; ``balanced_copy`` produces
a minimum-height tree with the same entries.

Traversals use explicit stacks so large trees cannot exhaust the interpreter's
recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar


K = TypeVar("K")
V = TypeVar("V")


@dataclass(slots=True)
class Node(Generic[K, V]):
    """A tree node. Children are owned exclusively by their parent."""

    key: K
    value: V
    left: Node[K, V] | None = None
    right: Node[K, V] | None = None


class BinaryTree(Generic[K, V]):
    """Binary search tree over a single, totally ordered key type."""

    def __init__(self, root: Node[K, V] | None = None) -> None:
        self._root = root
        self._size = _count_nodes(root)

    def set(self, key: K, value: V) -> None:
        """Insert ``key`` or overwrite its value in place."""
        if self._root is None:
            self._root = Node(key, value)
            self._size = 1
            return

        node = self._root
        while True:
            if key == node.key:
                node.value = value
                return
            if key < node.key:
                if node.left is None:
                    node.left = Node(key, value)
                    break
                node = node.left
            else:
                if node.right is None:
                    node.right = Node(key, value)
                    break
                node = node.right
        self._size += 1

    def get(self, key: K, default: V | None = None) -> V | None:
        """Return the value stored for ``key``, or ``default`` when absent."""
        node = self._find(key)
        if node is None:
            return default
        return node.value

    def contains(self, key: K) -> bool:
        return self._find(key) is not None

    def inorder(self) -> Iterator[tuple[K, V]]:
        """Yield ``(key, value)`` pairs in ascending key order."""
        stack: list[Node[K, V]] = []
        node = self._root
        while stack or node is not None:
            while node is not None:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.key, node.value
            node = node.right

    def balanced_copy(self) -> BinaryTree[K, V]:
        """Return a new tree with the same entries arranged for minimum height.

        Every sub-range of the sorted entries is rooted at ``len(range) // 2``.
        """
        entries = list(self.inorder())
        root: Node[K, V] | None = None
        # (start, stop, parent, attach-as-left)
        pending: list[tuple[int, int, Node[K, V] | None, bool]] = [(0, len(entries), None, False)]
        while pending:
            start, stop, parent, as_left = pending.pop()
            if start >= stop:
                continue
            middle = start + (stop - start) // 2
            key, value = entries[middle]
            node = Node(key, value)
            if parent is None:
                root = node
            elif as_left:
                parent.left = node
            else:
                parent.right = node
            pending.append((start, middle, node, True))
            pending.append((middle + 1, stop, node, False))
        return BinaryTree(root=root)

    def height(self) -> int:
        """Number of edges from the root to the deepest missing child slot.

        An empty tree has height 0 and a single node has height 1.
        """
        if self._root is None:
            return 0
        deepest = 0
        stack: list[tuple[Node[K, V] | None, int]] = [(self._root, 0)]
        while stack:
            node, depth = stack.pop()
            if node is None:
                deepest = max(deepest, depth)
                continue
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
        return deepest

    def _find(self, key: K) -> Node[K, V] | None:
        node = self._root
        while node is not None and node.key != key:
            node = node.left if key < node.key else node.right
        return node

    def __setitem__(self, key: K, value: V) -> None:
        self.set(key, value)

    def __getitem__(self, key: K) -> V:
        node = self._find(key)
        if node is None:
            raise KeyError(key)
        return node.value

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[K]:
        for key, _value in self.inorder():
            yield key

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"BinaryTree(size={self._size}, height={self.height()})"


def _count_nodes(root: Node[Any, Any] | None) -> int:
    count = 0
    stack = [root]
    while stack:
        node = stack.pop()
        if node is None:
            continue
        count += 1
        stack.append(node.left)
        stack.append(node.right)
    return count
