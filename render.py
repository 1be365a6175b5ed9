from typing import AbstractSet, Iterator, Tuple

from rich.text import Text

from node_models import Forest, TreeNode

EXPANDED_ICON = "▼"
COLLAPSED_ICON = "▶"
LOADING_LABEL = "Loading..."
INDENT = "  "


def is_expandable(node: TreeNode) -> bool:
    return not node.is_leaf


def format_node_label(node: TreeNode) -> Text:
    label = Text(node.name)
    if node.is_unpopulated:
        label.append(" …", style="dim")
    return label


def visible_rows(forest: Forest, expanded: AbstractSet[str]) -> Iterator[Tuple[int, TreeNode]]:
    """Yield ``(depth, node)`` in render order, descending only into expanded nodes."""
    stack = [(0, node) for node in reversed(forest)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        if node.id in expanded and node.children:
            stack.extend((depth + 1, child) for child in reversed(node.children))


def render_outline(
    forest: Forest,
    expanded: AbstractSet[str],
    loading: AbstractSet[str] = frozenset(),
) -> Text:
    """Plain outline of the visible rows, one node per line."""
    outline = Text()
    for depth, node in visible_rows(forest, expanded):
        if outline.plain:
            outline.append("\n")
        outline.append(INDENT * depth)
        if is_expandable(node):
            icon = EXPANDED_ICON if node.id in expanded else COLLAPSED_ICON
            outline.append(f"{icon} ", style="bold")
        else:
            outline.append("  ")
        outline.append_text(format_node_label(node))
        if node.id in loading:
            outline.append("\n")
            outline.append(INDENT * (depth + 1) + LOADING_LABEL, style="dim italic")
    return outline
