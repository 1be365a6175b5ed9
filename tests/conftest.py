"""Pytest bootstrap for local module imports and an isolated event log."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
PROJECT_ROOT_STR = str(PROJECT_ROOT)

if PROJECT_ROOT_STR not in sys.path:
    sys.path.insert(0, PROJECT_ROOT_STR)

import event_log  # noqa: E402
from node_models import TreeNode  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_event_log(tmp_path, monkeypatch):
    path = tmp_path / "tree_events.log"
    monkeypatch.setattr(event_log, "_EVENT_LOG_PATH", path)
    return path


def make_node(node_id: str, children: list[TreeNode] | None = None, *, lazy: bool = False) -> TreeNode:
    return TreeNode(node_id, node_id, children, lazy)


def names(forest) -> list:
    """Nested ``[name, [children...]]`` shape of a forest; leaves are bare names."""
    shape = []
    for node in forest:
        if node.children is None:
            shape.append(node.name)
        else:
            shape.append([node.name, names(node.children)])
    return shape
