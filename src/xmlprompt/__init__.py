"""
xmlprompt - pick files from a project tree and copy them as nested XML.

This package scans a directory (honouring .gitignore and built-in
exclusions), lets the user select files and folders with tri-state
propagation, and serializes the selection into one tagged document for
pasting into a large language model prompt.
"""

__version__ = "0.1.0"
__author__ = "xmlprompt Team"

from .core import (
    ConfigFileError,
    DiscoveryError,
    EmptySelectionError,
    OutputError,
    XmlPromptError,
    discover_files,
)
from .document import Document, generate_document
from .tree import (
    FileTree,
    NodeKind,
    SelectionState,
    TreeNode,
    build_file_tree,
    flatten_tree,
    get_selected_files,
)

__all__ = [
    "ConfigFileError",
    "DiscoveryError",
    "Document",
    "EmptySelectionError",
    "FileTree",
    "NodeKind",
    "OutputError",
    "SelectionState",
    "TreeNode",
    "XmlPromptError",
    "build_file_tree",
    "discover_files",
    "flatten_tree",
    "generate_document",
    "get_selected_files",
]
