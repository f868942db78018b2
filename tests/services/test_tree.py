from __future__ import annotations

from treesize.models.tree import DirNode
from treesize.services.tree import iter_nodes, ranked_children, size_map


def _tree() -> DirNode:
    small = DirNode(path="/r/small", size=5)
    big = DirNode(path="/r/big", size=50, children=(DirNode(path="/r/big/inner", size=40),))
    tie = DirNode(path="/r/also-small", size=5)
    return DirNode(path="/r", size=70, children=(small, big, tie))


def test_ranked_children_largest_first_then_by_name() -> None:
    root = _tree()

    ranked = ranked_children(root)

    assert [c.name for c in ranked] == ["big", "also-small", "small"]
    # ranking is a view; the tree keeps its original order
    assert [c.name for c in root.children] == ["small", "big", "also-small"]


def test_iter_nodes_visits_every_node() -> None:
    paths = {node.path for node in iter_nodes(_tree())}

    assert paths == {"/r", "/r/small", "/r/big", "/r/big/inner", "/r/also-small"}


def test_size_map() -> None:
    assert size_map(_tree())["/r/big/inner"] == 40


def test_node_name_of_filesystem_root() -> None:
    assert DirNode(path="/").name == "/"
    assert DirNode(path="/a/b/").name == "b"
