"""
Core logic for xmlprompt: errors, console output and file discovery.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence

import pathspec
from colorama import Fore, Style, just_fix_windows_console

just_fix_windows_console()

# Exceptions
class XmlPromptError(Exception): ...
class DiscoveryError(XmlPromptError): ...
class ConfigFileError(XmlPromptError): ...
class EmptySelectionError(XmlPromptError): ...
class OutputError(XmlPromptError): ...

# Defaults & helpers
ALWAYS_EXCLUDED_DIRS = frozenset({".git", "node_modules"})
GITIGNORE_NAME = ".gitignore"


def echo(msg: str, color: Optional[str] = None, err: bool = False) -> None:
    """Print a ``[xmlprompt]`` status line, optionally colored."""
    stream = sys.stderr if err else sys.stdout
    line = f"[xmlprompt] {msg}"
    if color:
        line = color + line + Style.RESET_ALL
    print(line, file=stream)


def warn(msg: str) -> None:
    echo(msg, Fore.YELLOW, err=True)


def error(msg: str) -> None:
    echo(f"Error: {msg}", Fore.RED, err=True)


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


# Ignore-file utilities
def _spec_from_lines(lines: Iterable[str]) -> "pathspec.GitIgnoreSpec":
    return pathspec.GitIgnoreSpec.from_lines(lines)


def load_gitignore(root: Path) -> "pathspec.GitIgnoreSpec":
    """Return the root ``.gitignore`` as a spec; empty when there is none."""
    gitignore_path = root / GITIGNORE_NAME
    try:
        if not gitignore_path.is_file():
            return _spec_from_lines([])
        with gitignore_path.open("r", encoding="utf-8") as fh:
            return _spec_from_lines(fh.read().splitlines())
    except (OSError, UnicodeDecodeError):
        # An unusable ignore file degrades to the built-in exclusions.
        return _spec_from_lines([])


def load_extra_patterns(config_path: Path) -> "pathspec.GitIgnoreSpec":
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            lines = [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")
    return _spec_from_lines(lines)


# File-scanning helpers
def _raise_walk_error(err: OSError) -> None:
    raise DiscoveryError(f"Could not scan '{err.filename}': {err.strerror or err}")


def _dir_key(path: str) -> tuple:
    st = os.stat(path)
    return st.st_dev, st.st_ino


def scan_files(
    root: Path,
    prune_specs: Sequence["pathspec.GitIgnoreSpec"] = (),
) -> List[Path]:
    """
    Return every regular file under *root*, sorted by path components.

    Hidden entries, anything inside ``.git`` or ``node_modules`` and any
    directory matched by one of *prune_specs* are pruned while walking, so
    those directories are never descended into. Symlinked directories are
    followed unless they point back at one of their own ancestors.
    """
    try:
        root = root.resolve()
    except (OSError, RuntimeError) as e:
        raise DiscoveryError(f"Could not resolve root path '{root}': {e}")
    if not root.exists():
        raise DiscoveryError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise DiscoveryError(f"Root path '{root}' is not a directory")
    if not os.access(root, os.R_OK | os.X_OK):
        raise DiscoveryError(f"Root directory '{root}' is not readable")

    found: List[Path] = []
    ancestors: Dict[str, FrozenSet[tuple]] = {str(root): frozenset({_dir_key(str(root))})}
    walker = os.walk(root, onerror=_raise_walk_error, followlinks=True)
    for dirpath, dirnames, filenames in walker:
        base = Path(dirpath)
        seen = ancestors.pop(dirpath)
        kept_dirs = []
        for d in sorted(dirnames):
            if _is_hidden(d) or d in ALWAYS_EXCLUDED_DIRS:
                continue
            rel_dir = (base / d).relative_to(root).as_posix() + "/"
            if any(spec.match_file(rel_dir) for spec in prune_specs):
                continue
            child = os.path.join(dirpath, d)
            try:
                key = _dir_key(child)
            except OSError as e:
                _raise_walk_error(e)
            # symlink cycle
            if key in seen:
                continue
            ancestors[child] = seen | {key}
            kept_dirs.append(d)
        dirnames[:] = kept_dirs
        for name in filenames:
            if _is_hidden(name):
                continue
            p = base / name
            if p.is_file():
                found.append(p)
    return sorted(found)


def filter_files(
    paths: List[Path],
    root: Path,
    extra_spec: Optional["pathspec.GitIgnoreSpec"] = None,
    gitignore_spec: Optional["pathspec.GitIgnoreSpec"] = None,
) -> List[str]:
    """Drop ignored paths and return the survivors relative to *root*."""
    root = root.resolve()
    if gitignore_spec is None:
        gitignore_spec = load_gitignore(root)
    kept: List[str] = []
    for p in paths:
        rel = p.relative_to(root).as_posix()
        if gitignore_spec.match_file(rel):
            continue
        if extra_spec is not None and extra_spec.match_file(rel):
            continue
        kept.append(rel)
    return kept


def discover_files(
    root: Path = Path("."),
    extra_spec: Optional["pathspec.GitIgnoreSpec"] = None,
) -> List[str]:
    """Scan *root* and apply ignore rules; raises :class:`DiscoveryError`."""
    root = Path(root)
    gitignore_spec = load_gitignore(root)
    prune_specs = [gitignore_spec] if extra_spec is None else [gitignore_spec, extra_spec]
    paths = scan_files(root, prune_specs)
    return filter_files(paths, root, extra_spec, gitignore_spec)
