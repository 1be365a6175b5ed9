from __future__ import annotations

import argparse
from typing import Optional

from rich.console import Console
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Static, Tree
from textual.widgets._tree import TextType, TreeNode as TreeWidgetNode

import event_log
import settings
from node_models import Forest, TreeNode
from render import LOADING_LABEL, format_node_label, is_expandable, render_outline
from sample_data import initial_forest
from tree_store import TreeStore, is_descendant, iter_nodes, subtree_ids


class ForestTree(Tree[str]):
    """Tree widget whose node data is the model node id.

    A mouse press on one row released over another row is reported as a
    ``NodeDropped`` message carrying both ids.
    """

    BINDINGS = [
        Binding("escape", "app.cancel_move", "Cancel move", show=False),
    ]

    class NodeDropped(Message):
        def __init__(self, source_id: str, target_id: str) -> None:
            super().__init__()
            self.source_id = source_id
            self.target_id = target_id

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._press_id: Optional[str] = None

    def process_label(self, label: TextType) -> Text:
        if isinstance(label, str):
            return Text(label)
        return label

    def _node_id_at(self, event: events.MouseEvent) -> Optional[str]:
        node = self.get_node_at_line(event.y + self.scroll_offset.y)
        if node is None or not isinstance(node.data, str):
            return None
        return node.data

    def on_mouse_down(self, event: events.MouseDown) -> None:
        self._press_id = self._node_id_at(event)

    def on_mouse_up(self, event: events.MouseUp) -> None:
        source_id, self._press_id = self._press_id, None
        target_id = self._node_id_at(event)
        if source_id is None or target_id is None or source_id == target_id:
            return
        self.post_message(self.NodeDropped(source_id, target_id))


class NamePromptScreen(ModalScreen[str | None]):
    """Modal prompt for a node name."""

    DEFAULT_CSS = """
    NamePromptScreen {
        align: center middle;
        background: transparent;
    }

    #name-prompt-panel {
        width: 60;
        height: auto;
        background: $panel;
        border: round $secondary;
        padding: 0 1;
    }

    #name-prompt-title {
        text-style: bold;
        padding-bottom: 1;
    }

    #name-prompt-field {
        border: round $secondary;
        background: $surface;
    }
    """

    def __init__(self, title: str, initial_name: str = "") -> None:
        super().__init__()
        self._title = title
        self._initial_name = initial_name

    def compose(self) -> ComposeResult:
        with Vertical(id="name-prompt-panel"):
            yield Static(self._title, id="name-prompt-title")
            yield Input(value=self._initial_name, placeholder="New node", id="name-prompt-field")

    def on_mount(self) -> None:
        self.query_one("#name-prompt-field", Input).focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            event.stop()
            self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value)


class ConfirmDeleteScreen(ModalScreen[bool]):
    """Asks before a node and its subtree are deleted."""

    DEFAULT_CSS = """
    ConfirmDeleteScreen {
        align: center middle;
        background: transparent;
    }

    #confirm-delete-panel {
        width: 50;
        height: auto;
        background: $panel;
        border: round $error;
        padding: 1 2;
    }
    """

    def __init__(self, node_name: str) -> None:
        super().__init__()
        self._node_name = node_name

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-delete-panel"):
            yield Static(Text(self._node_name, style="bold"))
            yield Static("Delete this node and its entire subtree? (y/n)")

    def on_key(self, event: events.Key) -> None:
        if event.key in ("y", "enter"):
            event.stop()
            self.dismiss(True)
        elif event.key in ("n", "escape"):
            event.stop()
            self.dismiss(False)


class ForestApp(App[None]):
    """Textual user interface for editing a forest of named nodes."""

    TITLE = "tr33"

    CSS = """
    #forest-tree {
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("a", "add_child", "Add child"),
        Binding("r", "add_root", "Add root"),
        Binding("e", "rename_node", "Rename"),
        Binding("d", "delete_node", "Delete"),
        Binding("delete", "delete_node", "Delete", show=False),
        Binding("m", "move_node", "Move"),
        Binding("t", "toggle_expand", "Toggle"),
        Binding("left", "collapse_cursor", "Collapse", show=False),
        Binding("right", "expand_cursor", "Expand", show=False),
    ]

    def __init__(self, forest: Forest | None = None, *, lazy_delay: float | None = None) -> None:
        super().__init__()
        self.title = "tr33"
        self.store = TreeStore(initial_forest() if forest is None else forest)
        self._tree_widget: Optional[ForestTree] = None
        self._widget_nodes: dict[str, TreeWidgetNode[str]] = {}
        self._loading: set[str] = set()
        self._move_source_id: Optional[str] = None
        self._lazy_delay = settings.get_lazy_delay() if lazy_delay is None else lazy_delay
        event_log.reset_event_log()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        tree = ForestTree("Forest", id="forest-tree")
        tree.show_root = False
        tree.auto_expand = False
        self._tree_widget = tree
        yield tree
        yield Footer()

    def on_mount(self) -> None:
        self.rebuild_tree()
        self.require_tree().focus()
        self.show_status()

    def require_tree(self) -> ForestTree:
        if self._tree_widget is None:
            raise RuntimeError("Tree widget not initialised")
        return self._tree_widget

    @property
    def loading(self) -> frozenset[str]:
        return frozenset(self._loading)

    @property
    def move_source_id(self) -> Optional[str]:
        return self._move_source_id

    def rebuild_tree(self, focus_id: Optional[str] = None) -> None:
        """Redraw the widget from the store, keeping expansion and cursor."""
        tree = self.require_tree()
        cursor_id = focus_id or self.get_selected_node_id()
        if cursor_id is None or self.store.find(cursor_id) is None:
            cursor_id = self.store.forest[0].id if self.store.forest else None
        tree.clear()
        self._widget_nodes = {}
        for node in self.store.forest:
            self.populate_tree(tree.root, node)
        tree.root.expand()
        if cursor_id is not None:
            tree.call_after_refresh(self.select_node_id, cursor_id)

    def populate_tree(self, parent: TreeWidgetNode[str], node: TreeNode) -> None:
        widget_node = parent.add(
            format_node_label(node),
            data=node.id,
            expand=self.store.is_expanded(node.id),
            allow_expand=is_expandable(node),
        )
        self._widget_nodes[node.id] = widget_node
        for child in node.children or ():
            self.populate_tree(widget_node, child)
        if node.id in self._loading:
            widget_node.add_leaf(Text(LOADING_LABEL, style="dim italic"))

    def select_node_id(self, node_id: str) -> bool:
        widget_node = self._widget_nodes.get(node_id)
        if widget_node is None:
            return False
        self.require_tree().move_cursor(widget_node)
        return True

    def get_selected_node_id(self) -> Optional[str]:
        if self._tree_widget is None:
            return None
        cursor = self._tree_widget.cursor_node
        if cursor is None or not isinstance(cursor.data, str):
            return None
        return cursor.data

    def _selected_model_node(self) -> Optional[TreeNode]:
        node_id = self.get_selected_node_id()
        if node_id is None:
            return None
        return self.store.find(node_id)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded[str]) -> None:
        node_id = event.node.data
        if not isinstance(node_id, str):
            return
        self.store.set_expanded(node_id, True)
        if self.store.needs_fetch(node_id):
            self.schedule_lazy_fetch(node_id)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed[str]) -> None:
        node_id = event.node.data
        if not isinstance(node_id, str):
            return
        self.store.set_expanded(node_id, False)

    def schedule_lazy_fetch(self, node_id: str) -> None:
        if node_id in self._loading:
            return
        self._loading.add(node_id)
        self.set_timer(self._lazy_delay, lambda: self._finish_lazy_fetch(node_id))
        self.rebuild_tree()
        self.show_status("Loading...")

    def _finish_lazy_fetch(self, parent_id: str) -> None:
        self._loading.discard(parent_id)
        fetched = TreeNode.create(settings.get_lazy_name())
        if self.store.lazy_fetch_complete(parent_id, fetched):
            self.show_status(f"Loaded '{fetched.name}'.")
        else:
            self.show_status("Loaded node discarded; its parent is gone.")
        self.rebuild_tree()

    def action_add_child(self) -> None:
        parent = self._selected_model_node()
        if parent is None:
            self.bell()
            self.show_status("No node selected.")
            return

        def apply_name(name: str | None) -> None:
            if name is None:
                self.show_status("Add cancelled.")
                return
            created = self.store.add_child(parent.id, name)
            if created is None:
                self.bell()
                self.show_status("Name cannot be empty." if not name.strip() else "Parent no longer exists.")
                return
            self.store.set_expanded(parent.id, True)
            self.rebuild_tree(focus_id=created.id)
            self.show_status(f"Added '{created.name}' under '{parent.name}'.")

        self.push_screen(NamePromptScreen(f"New child of {parent.name}"), apply_name)

    def action_add_root(self) -> None:
        def apply_name(name: str | None) -> None:
            if name is None:
                self.show_status("Add cancelled.")
                return
            created = self.store.add_root(name)
            if created is None:
                self.bell()
                self.show_status("Name cannot be empty.")
                return
            self.rebuild_tree(focus_id=created.id)
            self.show_status(f"Added root '{created.name}'.")

        self.push_screen(NamePromptScreen("New root node"), apply_name)

    def action_rename_node(self) -> None:
        node = self._selected_model_node()
        if node is None:
            self.bell()
            self.show_status("No node selected.")
            return

        def apply_name(name: str | None) -> None:
            if name is None:
                self.show_status("Rename cancelled.")
                return
            if not name.strip():
                self.bell()
                self.show_status("Name cannot be empty.")
                return
            if self.store.rename(node.id, name):
                self.rebuild_tree(focus_id=node.id)
                self.show_status(f"Renamed to '{name.strip()}'.")
            else:
                self.show_status("Name unchanged.")

        self.push_screen(NamePromptScreen(f"Rename {node.name}", node.name), apply_name)

    def action_delete_node(self) -> None:
        node = self._selected_model_node()
        if node is None:
            self.bell()
            self.show_status("No node selected.")
            return

        def apply_confirmation(confirmed: bool | None) -> None:
            if not confirmed:
                self.show_status("Nothing deleted.")
                return
            removed = subtree_ids(node)
            if not self.store.delete(node.id):
                self.show_status("Node no longer exists.")
                return
            self._loading -= removed
            if self._move_source_id in removed:
                self._move_source_id = None
            self.rebuild_tree()
            self.show_status(f"Deleted '{node.name}' ({len(removed)} nodes).")

        self.push_screen(ConfirmDeleteScreen(node.name), apply_confirmation)

    def action_move_node(self) -> None:
        node_id = self.get_selected_node_id()
        if node_id is None:
            self.bell()
            self.show_status("No node selected.")
            return
        if self._move_source_id is None:
            self._move_source_id = node_id
            node = self.store.find(node_id)
            name = node.name if node else node_id
            self.show_status(f"Moving '{name}': pick a target and press m (Esc cancels).")
            return
        source_id, self._move_source_id = self._move_source_id, None
        self.apply_move(source_id, node_id)

    def action_cancel_move(self) -> None:
        if self._move_source_id is None:
            return
        self._move_source_id = None
        self.show_status("Move cancelled.")

    def on_forest_tree_node_dropped(self, message: ForestTree.NodeDropped) -> None:
        message.stop()
        self._move_source_id = None
        self.apply_move(message.source_id, message.target_id)

    def apply_move(self, source_id: str, target_id: str) -> bool:
        if source_id == target_id:
            self.show_status("Move cancelled.")
            return False
        source = self.store.find(source_id)
        target = self.store.find(target_id)
        if self.store.drag_end(source_id, target_id):
            self.store.set_expanded(target_id, True)
            self.rebuild_tree(focus_id=source_id)
            self.show_status(f"Moved '{source.name}' under '{target.name}'.")
            return True
        self.bell()
        if source is not None and target is not None and is_descendant(source, target_id):
            self.show_status("Cannot move a node into itself or its own descendant.")
        else:
            self.show_status("Node no longer exists.")
        return False

    def action_toggle_expand(self) -> None:
        node = self._selected_model_node()
        if node is None or not is_expandable(node):
            self.bell()
            self.show_status("Nothing to expand.")
            return
        expanded = self.store.toggle_expand(node.id)
        widget_node = self._widget_nodes.get(node.id)
        if widget_node is not None:
            if expanded:
                widget_node.expand()
            else:
                widget_node.collapse()
        if expanded and self.store.needs_fetch(node.id):
            self.schedule_lazy_fetch(node.id)

    def action_collapse_cursor(self) -> None:
        node = self.require_tree().cursor_node
        if node:
            node.collapse()

    def action_expand_cursor(self) -> None:
        node = self.require_tree().cursor_node
        if node:
            node.expand()

    def show_status(self, message: str | None = None) -> None:
        total = sum(1 for _ in iter_nodes(self.store.forest))
        counts = f"{total} nodes · {len(self.store.expanded)} expanded"
        self.sub_title = f"{counts} · {message}" if message else counts


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="tr33", description="Edit a tree of named nodes in the terminal.")
    parser.add_argument(
        "--outline",
        action="store_true",
        help="print the sample tree fully expanded and exit",
    )
    args = parser.parse_args(argv)
    if args.outline:
        forest = initial_forest()
        expanded = {node.id for node in iter_nodes(forest)}
        Console().print(render_outline(forest, expanded))
        return 0
    ForestApp().run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
