"""Raw-mode terminal front-end for a selection :class:`Session`.

Owns the tty lifecycle (raw mode, alternate screen, hidden cursor), key
decoding and drawing of the visible rows. All selection logic lives in the
session and tree.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty
from typing import List, Optional

from colorama import Back, Fore, Style

from .document import Document
from .session import Session
from .tree import SelectionState, VisibleRow

MARKERS = {
    SelectionState.FULL: Fore.GREEN + "●" + Style.RESET_ALL,
    SelectionState.PARTIAL: Fore.CYAN + "◐" + Style.RESET_ALL,
    SelectionState.NONE: Fore.LIGHTBLACK_EX + "○" + Style.RESET_ALL,
}

KEYS = {
    b"\x1b[A": "up",
    b"\x1bOA": "up",
    b"k": "up",
    b"\x1b[B": "down",
    b"\x1bOB": "down",
    b"j": "down",
    b"\x1b[C": "expand",
    b"\x1b[D": "expand",
    b"/": "expand",
    b" ": "select",
    b"a": "all",
    b"\r": "generate",
    b"\n": "generate",
    b"\x1b": "quit",
    b"q": "quit",
    b"\x03": "quit",
}


def decode_key(data: bytes) -> Optional[str]:
    """Map one raw read from the terminal to an action name."""
    return KEYS.get(data)


class TerminalController:
    """Enter/leave raw alternate-screen mode around a session."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        # Alternate screen, hidden cursor.
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l")

    def disable_tui_mode(self) -> None:
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    @contextlib.contextmanager
    def raw_mode(self):
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()

    def read_key(self) -> bytes:
        return os.read(self.stdin_fd, 32)

    def write(self, text: str) -> None:
        os.write(self.stdout_fd, text.encode("utf-8"))


def format_row(row: VisibleRow, is_cursor: bool) -> str:
    node = row.node
    connector = ""
    if row.depth:
        connector = "  " * (row.depth - 1) + ("└─ " if row.is_last else "├─ ")
    if node.is_dir:
        icon = "📂" if node.expanded else "📁"
        label = f"{MARKERS[node.state]} {icon} {node.name}/"
    else:
        label = f"{MARKERS[node.state]} {node.name}"
    if is_cursor:
        return f"{Back.WHITE}{Fore.BLACK}❯ {Style.RESET_ALL}{connector}{label}"
    return f"  {connector}{label}"


def render_screen(session: Session, height: int) -> List[str]:
    """Lines for one frame: title, a window of rows around the cursor, status."""
    body_height = max(1, height - 3)
    top = 0
    if session.cursor >= body_height:
        top = session.cursor - body_height + 1
    lines = [Style.BRIGHT + Fore.CYAN + "★ xmlprompt" + Style.RESET_ALL, ""]
    for index in range(top, min(len(session.rows), top + body_height)):
        lines.append(format_row(session.rows[index], index == session.cursor))
    if not session.rows:
        lines.append("  (no files found)")
    lines.append(Back.LIGHTBLACK_EX + Fore.WHITE + f" {session.status} " + Style.RESET_ALL)
    return lines


def draw(terminal: TerminalController, session: Session) -> None:
    height = shutil.get_terminal_size().lines
    frame = "\r\n".join(render_screen(session, height))
    terminal.write("\x1b[H\x1b[2J" + frame)
    session.dirty = False


def handle_key(session: Session, action: Optional[str]) -> bool:
    """Apply *action* to the session; return ``False`` once the loop should stop."""
    if action == "up":
        session.move(-1)
    elif action == "down":
        session.move(1)
    elif action == "select":
        session.toggle_selected()
    elif action == "expand":
        session.toggle_expanded()
    elif action == "all":
        session.toggle_all()
    elif action == "generate":
        return session.generate() is None
    elif action == "quit":
        return False
    return True


def run(session: Session, stdin_fd: int = 0, stdout_fd: int = 1) -> Optional[Document]:
    """Run the key loop; return the generated document or ``None`` on cancel."""
    terminal = TerminalController(stdin_fd, stdout_fd)
    with terminal.raw_mode():
        while True:
            if session.dirty:
                draw(terminal, session)
            if not handle_key(session, decode_key(terminal.read_key())):
                break
    return session.document
