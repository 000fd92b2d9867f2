"""
Serialize selected files into one nested tag document.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union
from xml.sax.saxutils import escape as xml_escape

from colorama import Fore

from .core import EmptySelectionError, echo, warn

FALLBACK_ROOT_NAME = "root"
INDENT = "  "


@dataclass(frozen=True)
class DocLeaf:
    text: str


@dataclass
class DocBranch:
    children: Dict[str, "DocNode"] = field(default_factory=dict)


DocNode = Union[DocLeaf, DocBranch]


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: str


@dataclass
class Document:
    """A rendered document plus what went into it."""

    text: str
    included: List[str] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)


def root_tag_name(root: Union[str, Path]) -> str:
    """Base name of *root*, or ``"root"`` for ``.`` and other nameless paths."""
    if str(root) in ("", "."):
        return FALLBACK_ROOT_NAME
    return Path(root).name or FALLBACK_ROOT_NAME


def _read_one(root: Path, rel: str) -> Tuple[str, Optional[str], Optional[str]]:
    try:
        raw = (root / rel).read_bytes()
    except OSError as e:
        return rel, None, e.strerror or str(e)
    return rel, raw.decode("utf-8", errors="replace"), None


def read_files(
    paths: Sequence[str],
    root: Path,
    max_workers: Optional[int] = None,
) -> List[Tuple[str, Optional[str], Optional[str]]]:
    """
    Read *paths* on a bounded thread pool.

    Each result is ``(path, content, error)`` with exactly one of content or
    error set. Results come back in the order of *paths*, whatever order the
    reads finish in.
    """
    if max_workers == 1 or len(paths) <= 1:
        return [_read_one(root, rel) for rel in paths]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda rel: _read_one(root, rel), paths))


def build_structure(contents: Sequence[Tuple[str, str]]) -> DocBranch:
    """Nest ``(path, content)`` pairs under their directory segments."""
    structure = DocBranch()
    for rel, content in contents:
        parts = [part for part in rel.split("/") if part]
        current = structure
        for part in parts[:-1]:
            child = current.children.get(part)
            if not isinstance(child, DocBranch):
                child = DocBranch()
                current.children[part] = child
            current = child
        current.children[parts[-1]] = DocLeaf(content)
    return structure


def render_node(node: DocNode, tag: str, indent: str = "", escape: bool = False) -> str:
    if isinstance(node, DocLeaf):
        text = xml_escape(node.text) if escape else node.text
        return f"{indent}<{tag}>\n{text}\n{indent}</{tag}>\n"
    out = [f"{indent}<{tag}>\n"]
    for name, child in node.children.items():
        out.append(render_node(child, name, indent + INDENT, escape))
    out.append(f"{indent}</{tag}>\n")
    return "".join(out)


def render_document(structure: DocBranch, root_name: str, escape: bool = False) -> str:
    return render_node(structure, root_name, escape=escape).strip()


def generate_document(
    selected: Sequence[str],
    root: Union[str, Path] = ".",
    *,
    root_name: Optional[str] = None,
    escape: bool = False,
    max_workers: Optional[int] = None,
    verbose: bool = False,
) -> Document:
    """
    Read every selected file under *root* and render the nested document.

    Raises :class:`EmptySelectionError` before touching the filesystem when
    nothing is selected. Files that cannot be read are skipped and listed in
    :attr:`Document.skipped`.
    """
    if not selected:
        raise EmptySelectionError("No files selected")

    if verbose:
        echo(f"Reading {len(selected)} files …")

    included: List[Tuple[str, str]] = []
    skipped: List[SkippedFile] = []
    for rel, content, error in read_files(selected, Path(root), max_workers):
        if content is None:
            skipped.append(SkippedFile(rel, error or "unreadable"))
            if verbose:
                warn(f"! Could not read {rel}: {error}")
            continue
        included.append((rel, content))

    text = render_document(
        build_structure(included),
        root_name or root_tag_name(root),
        escape=escape,
    )
    if verbose:
        echo(
            f"Document built: {len(included)} files, {len(skipped)} skipped, "
            f"{len(text)} characters.",
            Fore.GREEN,
        )
    return Document(text=text, included=[rel for rel, _ in included], skipped=skipped)
