"""
File-tree model: forest construction, tri-state selection and flattening.

A :class:`FileTree` owns the forest built from discovered paths. Every
mutation goes through it so directory selection caches are recomputed
before any reader (flattener, collector, renderer) sees the nodes again.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Optional


class NodeKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"


class SelectionState(enum.Enum):
    NONE = "none"
    PARTIAL = "partial"
    FULL = "full"


@dataclass(eq=False)
class TreeNode:
    """One file or directory in the forest."""

    name: str
    path: str
    kind: NodeKind
    children: Optional[List["TreeNode"]] = None
    selected: bool = False
    expanded: bool = False
    partial: bool = False
    parent: Optional["TreeNode"] = field(default=None, repr=False)

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    @property
    def state(self) -> SelectionState:
        if self.selected:
            return SelectionState.FULL
        if self.partial:
            return SelectionState.PARTIAL
        return SelectionState.NONE


@dataclass(frozen=True)
class VisibleRow:
    """A flattened node plus what a list renderer needs to draw it."""

    node: TreeNode
    depth: int
    is_last: bool


Listener = Callable[[str], None]


def _refresh_directory(node: TreeNode) -> None:
    """Recompute one directory's cached state from its direct children."""
    children = node.children or []
    states = {child.state for child in children}
    if not children or states == {SelectionState.NONE}:
        node.selected, node.partial = False, False
    elif states == {SelectionState.FULL}:
        node.selected, node.partial = True, False
    else:
        node.selected, node.partial = False, True


def _iter_subtree(node: TreeNode) -> Iterator[TreeNode]:
    yield node
    for child in node.children or []:
        yield from _iter_subtree(child)


class FileTree:
    """Forest of :class:`TreeNode` plus a path index and change listeners."""

    def __init__(self, roots: Optional[List[TreeNode]] = None) -> None:
        self.roots: List[TreeNode] = roots if roots is not None else []
        self._index: Dict[str, TreeNode] = {}
        self._listeners: List[Listener] = []
        for root in self.roots:
            for node in _iter_subtree(root):
                self._index[node.path] = node

    def __iter__(self) -> Iterator[TreeNode]:
        return iter_nodes(self.roots)

    def get(self, path: str) -> TreeNode:
        try:
            return self._index[path]
        except KeyError:
            raise KeyError(f"No node at path '{path}'") from None

    # Notification
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with the mutated path after every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, path: str) -> None:
        for listener in list(self._listeners):
            listener(path)

    # Selection
    def _refresh_ancestors(self, node: TreeNode) -> None:
        parent = node.parent
        while parent is not None:
            _refresh_directory(parent)
            parent = parent.parent

    def _refresh_subtree(self, node: TreeNode) -> None:
        for child in node.children or []:
            if child.is_dir:
                self._refresh_subtree(child)
        _refresh_directory(node)

    def toggle_file(self, path: str) -> None:
        node = self.get(path)
        if node.is_dir:
            raise ValueError(f"'{path}' is a directory")
        node.selected = not node.selected
        self._refresh_ancestors(node)
        self._notify(path)

    def toggle_directory(self, path: str) -> None:
        """Select every file below *path*, or clear them all when already full."""
        node = self.get(path)
        if not node.is_dir:
            raise ValueError(f"'{path}' is not a directory")
        self._set_files(node, node.state is not SelectionState.FULL)
        self._refresh_ancestors(node)
        self._notify(path)

    def toggle(self, path: str) -> None:
        if self.get(path).is_dir:
            self.toggle_directory(path)
        else:
            self.toggle_file(path)

    def _set_files(self, node: TreeNode, value: bool) -> None:
        for descendant in _iter_subtree(node):
            if not descendant.is_dir:
                descendant.selected = value
        if node.is_dir:
            self._refresh_subtree(node)

    def select_all(self) -> None:
        for root in self.roots:
            self._set_files(root, True)
        self._notify("")

    def clear_selection(self) -> None:
        for root in self.roots:
            self._set_files(root, False)
        self._notify("")

    @property
    def file_count(self) -> int:
        return sum(1 for node in self._index.values() if not node.is_dir)

    @property
    def selected_count(self) -> int:
        return len(get_selected_files(self.roots))

    # Expansion
    def set_expanded(self, path: str, expanded: bool) -> None:
        node = self.get(path)
        if not node.is_dir:
            raise ValueError(f"'{path}' is not a directory")
        node.expanded = expanded
        self._notify(path)

    def toggle_expanded(self, path: str) -> None:
        self.set_expanded(path, not self.get(path).expanded)

    def expand_all(self) -> None:
        for node in self._index.values():
            if node.is_dir:
                node.expanded = True
        self._notify("")

    # Views
    def flatten(self) -> List[TreeNode]:
        return flatten_tree(self.roots)

    def visible_rows(self) -> List[VisibleRow]:
        return visible_rows(self.roots)

    def selected_files(self) -> List[str]:
        return get_selected_files(self.roots)


def build_file_tree(paths: Iterable[str]) -> FileTree:
    """
    Build a forest from ``/``-separated relative paths.

    Every proper prefix of a path becomes a directory node, the full path a
    file node. Nodes keep the order in which their first path was seen.
    """
    roots: List[TreeNode] = []
    node_map: Dict[str, TreeNode] = {}

    for file_path in paths:
        parts = file_path.split("/")
        if any(not part for part in parts):
            raise ValueError(f"Malformed path '{file_path}'")

        parent: Optional[TreeNode] = None
        for i, part in enumerate(parts):
            current_path = "/".join(parts[: i + 1])
            is_file = i == len(parts) - 1
            node = node_map.get(current_path)
            if node is None:
                node = TreeNode(
                    name=part,
                    path=current_path,
                    kind=NodeKind.FILE if is_file else NodeKind.DIRECTORY,
                    children=None if is_file else [],
                    parent=parent,
                )
                node_map[current_path] = node
                if parent is None:
                    roots.append(node)
                else:
                    parent.children.append(node)  # type: ignore[union-attr]
            elif node.is_dir == is_file:
                raise ValueError(f"'{current_path}' is both a file and a directory")
            parent = node

    return FileTree(roots)


def iter_nodes(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Pre-order walk over every node, ignoring expansion."""
    for node in nodes:
        yield from _iter_subtree(node)


def flatten_tree(nodes: Iterable[TreeNode]) -> List[TreeNode]:
    """Pre-order list of visible nodes; collapsed directories hide their subtree."""
    return [row.node for row in visible_rows(nodes)]


def visible_rows(nodes: Iterable[TreeNode], depth: int = 0) -> List[VisibleRow]:
    rows: List[VisibleRow] = []
    siblings = list(nodes)
    for idx, node in enumerate(siblings):
        rows.append(VisibleRow(node, depth, idx == len(siblings) - 1))
        if node.is_dir and node.expanded and node.children:
            rows.extend(visible_rows(node.children, depth + 1))
    return rows


def get_selected_files(nodes: Iterable[TreeNode]) -> List[str]:
    """Paths of selected files in forest order, regardless of expansion."""
    return [
        node.path
        for node in iter_nodes(nodes)
        if not node.is_dir and node.selected
    ]
