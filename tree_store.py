"""Pure forest queries and mutations plus the stateful ``TreeStore``.

Every mutation takes a forest and returns a forest. When the operation does
not apply (unknown id, unsafe move, duplicate id) the input forest itself is
returned, so callers can test ``result is forest`` to see whether anything
happened. Only the nodes between a root and the edited node are rebuilt;
every other subtree is shared with the input.
"""

from dataclasses import replace
from typing import Callable, Iterable, Iterator, List, Optional

from event_log import log_tree_event
from node_models import Forest, TreeNode

SiblingEdit = Callable[[Forest, int], Forest]


def _index_path(nodes: Forest, node_id: str) -> Optional[List[int]]:
    for index, node in enumerate(nodes):
        if node.id == node_id:
            return [index]
        if node.children:
            below = _index_path(node.children, node_id)
            if below is not None:
                return [index, *below]
    return None


def _splice(nodes: Forest, index_path: List[int], edit: SiblingEdit) -> Forest:
    """Apply ``edit`` to the sibling tuple holding the target and rebuild its ancestors."""
    index, *rest = index_path
    if not rest:
        return edit(nodes, index)
    parent = nodes[index]
    children = _splice(parent.children or (), rest, edit)
    return nodes[:index] + (replace(parent, children=children),) + nodes[index + 1 :]


def _edit_node(forest: Forest, node_id: str, change: Callable[[TreeNode], TreeNode]) -> Forest:
    index_path = _index_path(forest, node_id)
    if index_path is None:
        return forest

    def edit(siblings: Forest, index: int) -> Forest:
        return siblings[:index] + (change(siblings[index]),) + siblings[index + 1 :]

    return _splice(forest, index_path, edit)


def iter_nodes(forest: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Depth-first pre-order walk over every node."""
    for node in forest:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def subtree_ids(node: TreeNode) -> set[str]:
    return {item.id for item in iter_nodes((node,))}


def find_path(forest: Forest, node_id: str) -> Optional[List[TreeNode]]:
    """Return the nodes from a root down to ``node_id``, or None."""
    index_path = _index_path(forest, node_id)
    if index_path is None:
        return None
    path: List[TreeNode] = []
    siblings = forest
    for index in index_path:
        node = siblings[index]
        path.append(node)
        siblings = node.children or ()
    return path


def find_node(forest: Forest, node_id: str) -> Optional[TreeNode]:
    path = find_path(forest, node_id)
    return path[-1] if path else None


def is_descendant(ancestor: TreeNode, target_id: str) -> bool:
    if not ancestor.children:
        return False
    for child in ancestor.children:
        if child.id == target_id or is_descendant(child, target_id):
            return True
    return False


def rename_node(forest: Forest, node_id: str, new_name: str) -> Forest:
    return _edit_node(forest, node_id, lambda node: replace(node, name=new_name))


def remove_subtree(forest: Forest, node_id: str) -> Forest:
    index_path = _index_path(forest, node_id)
    if index_path is None:
        return forest
    return _splice(forest, index_path, lambda siblings, index: siblings[:index] + siblings[index + 1 :])


def insert_child(forest: Forest, parent_id: str, new_node: TreeNode) -> Forest:
    """Append ``new_node`` as the last child of ``parent_id``.

    A parent without a children sequence (leaf or lazy node) becomes a branch.
    Nothing happens when the parent is missing or when any id of ``new_node``'s
    subtree is already present in the forest.
    """
    if _index_path(forest, parent_id) is None:
        return forest
    incoming = subtree_ids(new_node)
    if any(node.id in incoming for node in iter_nodes(forest)):
        return forest
    return _edit_node(
        forest,
        parent_id,
        lambda parent: replace(parent, children=(parent.children or ()) + (new_node,)),
    )


def move_subtree(forest: Forest, source_id: str, target_id: str) -> Forest:
    """Reparent ``source_id`` as the last child of ``target_id``.

    Rejected (forest returned unchanged) when either id is unknown, when both
    ids are equal, or when the target lives inside the source's subtree.
    """
    if source_id == target_id:
        return forest
    source_path = find_path(forest, source_id)
    target_path = find_path(forest, target_id)
    if source_path is None or target_path is None:
        return forest
    source = source_path[-1]
    if is_descendant(source, target_id):
        return forest
    detached = remove_subtree(forest, source_id)
    return insert_child(detached, target_id, source)


def expand_with_fetched_child(forest: Forest, parent_id: str, fetched: TreeNode) -> Forest:
    return insert_child(forest, parent_id, fetched)


class TreeStore:
    """Owns the current forest and the set of expanded node ids.

    Event methods validate their input, apply one pure operation, swap in the
    resulting forest and return True when something changed.
    """

    def __init__(self, forest: Iterable[TreeNode] = (), expanded: Iterable[str] = ()) -> None:
        self._forest: Forest = tuple(forest)
        seen: set[str] = set()
        for node in iter_nodes(self._forest):
            if node.id in seen:
                raise ValueError(f"duplicate node id in forest: {node.id!r}")
            seen.add(node.id)
        self._expanded: frozenset[str] = frozenset(
            node_id for node_id in expanded if find_path(self._forest, node_id) is not None
        )

    @property
    def forest(self) -> Forest:
        return self._forest

    @property
    def expanded(self) -> frozenset[str]:
        return self._expanded

    def find(self, node_id: str) -> Optional[TreeNode]:
        return find_node(self._forest, node_id)

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self._expanded

    def needs_fetch(self, node_id: str) -> bool:
        node = self.find(node_id)
        return node is not None and node.is_unpopulated

    def _commit(self, forest: Forest, action: str, detail: str) -> bool:
        if forest is self._forest:
            return False
        self._forest = forest
        log_tree_event(action, detail)
        return True

    def set_expanded(self, node_id: str, expanded: bool) -> bool:
        if self.find(node_id) is None or (node_id in self._expanded) == expanded:
            return False
        if expanded:
            self._expanded = self._expanded | {node_id}
        else:
            self._expanded = self._expanded - {node_id}
        return True

    def toggle_expand(self, node_id: str) -> bool:
        """Flip the expansion of ``node_id``; returns the new state."""
        self.set_expanded(node_id, node_id not in self._expanded)
        return node_id in self._expanded

    def add_root(self, name: str) -> Optional[TreeNode]:
        cleaned = _clean_name(name)
        if cleaned is None:
            return None
        node = TreeNode.create(cleaned)
        self._commit(self._forest + (node,), "add_root", f"{node.id} {cleaned!r}")
        return node

    def add_child(self, parent_id: str, name: str) -> Optional[TreeNode]:
        cleaned = _clean_name(name)
        if cleaned is None:
            return None
        node = TreeNode.create(cleaned)
        if not self._commit(
            insert_child(self._forest, parent_id, node),
            "add_child",
            f"{node.id} {cleaned!r} under {parent_id}",
        ):
            return None
        return node

    def rename(self, node_id: str, name: str) -> bool:
        cleaned = _clean_name(name)
        if cleaned is None:
            return False
        current = self.find(node_id)
        if current is None or current.name == cleaned:
            return False
        return self._commit(
            rename_node(self._forest, node_id, cleaned), "rename", f"{node_id} {cleaned!r}"
        )

    def delete(self, node_id: str) -> bool:
        node = self.find(node_id)
        if node is None:
            return False
        self._commit(remove_subtree(self._forest, node_id), "delete", f"{node_id} {node.name!r}")
        self._expanded = self._expanded - subtree_ids(node)
        return True

    def drag_end(self, source_id: str, target_id: Optional[str]) -> bool:
        if target_id is None or source_id == target_id:
            return False
        moved = move_subtree(self._forest, source_id, target_id)
        if moved is self._forest:
            log_tree_event("move_rejected", f"{source_id} -> {target_id}")
            return False
        return self._commit(moved, "move", f"{source_id} -> {target_id}")

    def lazy_fetch_complete(self, parent_id: str, node: TreeNode) -> bool:
        return self._commit(
            expand_with_fetched_child(self._forest, parent_id, node),
            "lazy_fetch",
            f"{node.id} {node.name!r} under {parent_id}",
        )


def _clean_name(name: str) -> Optional[str]:
    cleaned = name.strip()
    return cleaned or None
