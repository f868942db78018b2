from __future__ import annotations

from collections.abc import Iterator

from treesize.models.tree import DirNode


def iter_nodes(root: DirNode) -> Iterator[DirNode]:
    """Iterate all nodes in the tree rooted at *root* (depth-first)."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(node.children)


def ranked_children(node: DirNode) -> list[DirNode]:
    """Return the direct children of *node*, largest first.

    Ties are broken by name so the listing is stable across runs. The node
    itself is left untouched.
    """
    return sorted(node.children, key=lambda child: (-child.size, child.name))


def size_map(root: DirNode) -> dict[str, int]:
    return {node.path: node.size for node in iter_nodes(root)}
