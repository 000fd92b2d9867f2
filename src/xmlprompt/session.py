"""
Front-end independent state for one interactive selection session.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

from .core import EmptySelectionError
from .document import Document, generate_document
from .tree import FileTree, TreeNode, VisibleRow

HELP = "↑/↓ navigate • Space select • / expand • a all • Enter generate • Esc quit"


class Session:
    """Cursor, status line and the generate step over a :class:`FileTree`.

    The tree notifies the session after every mutation; the session then
    rebuilds its visible rows and marks itself ``dirty`` so the renderer
    knows to redraw.
    """

    def __init__(
        self,
        tree: FileTree,
        root: Union[str, Path] = ".",
        *,
        escape: bool = False,
        max_workers: Optional[int] = None,
    ) -> None:
        self.tree = tree
        self.root = root
        self.escape = escape
        self.max_workers = max_workers
        self.cursor = 0
        self.rows: List[VisibleRow] = []
        self.status = ""
        self.dirty = True
        self.document: Optional[Document] = None
        self._unsubscribe = tree.subscribe(self._on_change)
        self._on_change("")

    def _on_change(self, _path: str) -> None:
        self.rows = self.tree.visible_rows()
        self.cursor = max(0, min(self.cursor, len(self.rows) - 1))
        self.status = self.selection_summary()
        self.dirty = True

    def close(self) -> None:
        self._unsubscribe()

    def selection_summary(self) -> str:
        return f"{self.tree.selected_count}/{self.tree.file_count} files selected • {HELP}"

    @property
    def current(self) -> Optional[TreeNode]:
        if not self.rows:
            return None
        return self.rows[self.cursor].node

    def move_to(self, index: int) -> None:
        index = max(0, min(index, len(self.rows) - 1))
        if index != self.cursor:
            self.cursor = index
            self.dirty = True

    def move(self, delta: int) -> None:
        self.move_to(self.cursor + delta)

    def toggle_selected(self) -> None:
        node = self.current
        if node is not None:
            self.tree.toggle(node.path)

    def toggle_expanded(self) -> None:
        node = self.current
        if node is not None and node.is_dir:
            self.tree.toggle_expanded(node.path)

    def toggle_all(self) -> None:
        if self.tree.file_count and self.tree.selected_count == self.tree.file_count:
            self.tree.clear_selection()
        else:
            self.tree.select_all()

    def generate(self) -> Optional[Document]:
        """Build the document, or report an empty selection and return ``None``."""
        selected = self.tree.selected_files()
        try:
            document = generate_document(
                selected,
                self.root,
                escape=self.escape,
                max_workers=self.max_workers,
            )
        except EmptySelectionError:
            self.status = "No files selected!"
            self.dirty = True
            return None
        self.document = document
        self.status = f"✓ Generated XML for {len(document.included)} files"
        if document.skipped:
            self.status += f" ({len(document.skipped)} skipped)"
        self.dirty = True
        return document
