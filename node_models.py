import uuid
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple


@dataclass(frozen=True)
class TreeNode:
    id: str
    name: str
    # None means "never populated"; an empty tuple is a populated branch with no children.
    children: Optional[Tuple["TreeNode", ...]] = None
    is_lazy: bool = False

    def __post_init__(self) -> None:
        if self.children is not None and not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))

    @classmethod
    def create(
        cls,
        name: str,
        *,
        is_lazy: bool = False,
        children: Optional[Sequence["TreeNode"]] = None,
    ) -> "TreeNode":
        """Build a node with a freshly generated id."""
        return cls(new_node_id(), name, children, is_lazy)

    @property
    def is_leaf(self) -> bool:
        return self.children is None and not self.is_lazy

    @property
    def is_unpopulated(self) -> bool:
        return self.is_lazy and self.children is None


Forest = Tuple[TreeNode, ...]


def new_node_id() -> str:
    return uuid.uuid4().hex


def node_from_dict(record: dict[str, Any]) -> TreeNode:
    """Build a node from ``{"id", "name", "children"?, "isLazy"?}``.

    A missing ``id`` gets a fresh one; a missing ``name`` is an error.
    """
    name = record.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"node record needs a non-empty name: {record!r}")
    raw_children = record.get("children")
    children = None
    if raw_children is not None:
        children = tuple(node_from_dict(child) for child in raw_children)
    return TreeNode(
        id=str(record.get("id") or new_node_id()),
        name=name,
        children=children,
        is_lazy=bool(record.get("isLazy", False)),
    )


def forest_from_dicts(records: Sequence[dict[str, Any]]) -> Forest:
    return tuple(node_from_dict(record) for record in records)
