"""
CLI entrypoint for xmlprompt.
"""
import argparse
import sys
from pathlib import Path

import pyperclip
from colorama import Fore

from .core import (
    ConfigFileError,
    DiscoveryError,
    EmptySelectionError,
    OutputError,
    discover_files,
    echo,
    error,
    load_extra_patterns,
    warn,
)
from .document import Document, generate_document
from .session import Session
from .tree import build_file_tree


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="xmlprompt",
        description="Pick files from a project and copy them as one nested XML document.",
    )
    p.add_argument("--root", type=Path, default=Path("."), help="Project root dir")
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    p.add_argument(
        "--all",
        action="store_true",
        help="Skip the interactive picker and include every discovered file",
    )
    sink = p.add_mutually_exclusive_group()
    sink.add_argument("--out", type=Path, help="Write the document to a file instead of the clipboard")
    sink.add_argument("--stdout", action="store_true", help="Print the document instead of copying it")
    p.add_argument(
        "--escape",
        action="store_true",
        help="Escape &, < and > in file contents",
    )
    p.add_argument(
        "--workers",
        type=_positive_int,
        default=None,
        help="Maximum number of threads used to read files",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def write_output(document: Document, ns: argparse.Namespace) -> None:
    """Hand a finished document to the chosen sink."""
    if ns.stdout:
        print(document.text)
        return
    if ns.out:
        out_path = ns.out.resolve()
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            out_path.write_text(document.text, encoding="utf-8", newline="\n")
        except OSError as e:
            raise OutputError(f"Could not write '{out_path}': {e}")
        return
    try:
        pyperclip.copy(document.text)
    except pyperclip.PyperclipException as e:
        raise OutputError(f"Could not copy to clipboard: {e}")


def _pick_interactively(tree, ns: argparse.Namespace):
    from . import tui

    if not sys.stdin.isatty():
        raise OutputError("Interactive mode needs a terminal; use --all")
    session = Session(tree, ns.root, escape=ns.escape, max_workers=ns.workers)
    try:
        return tui.run(session, sys.stdin.fileno(), sys.stdout.fileno())
    finally:
        session.close()


def main(argv=None) -> None:
    try:
        ns = _parse_args(argv)
        root = ns.root.resolve()

        extra_spec = None
        if ns.config:
            try:
                extra_spec = load_extra_patterns(ns.config.resolve())
                if ns.verbose:
                    echo(f"Loaded extra patterns from {ns.config}")
            except ConfigFileError as e:
                error(str(e))
                sys.exit(1)

        if ns.verbose:
            echo(f"Scanning {root} …")

        try:
            files = discover_files(root, extra_spec)
        except DiscoveryError as e:
            error(str(e))
            sys.exit(1)

        if ns.verbose:
            echo(f"{len(files)} files kept after filtering.")

        tree = build_file_tree(files)
        try:
            if ns.all:
                tree.select_all()
                document = generate_document(
                    tree.selected_files(),
                    ns.root,
                    escape=ns.escape,
                    max_workers=ns.workers,
                    verbose=ns.verbose,
                )
            else:
                document = _pick_interactively(tree, ns)
        except EmptySelectionError:
            error("No files selected!")
            sys.exit(1)
        except OutputError as e:
            error(str(e))
            sys.exit(1)

        if document is None:
            if ns.verbose:
                echo("Cancelled, nothing copied.")
            return

        # generate_document already reported these in verbose --all runs
        if not (ns.all and ns.verbose):
            for skipped in document.skipped:
                warn(f"! Could not read {skipped.path}: {skipped.reason}")

        try:
            write_output(document, ns)
        except OutputError as e:
            error(str(e))
            sys.exit(1)

        if not ns.stdout:
            target = ns.out or "clipboard"
            echo(
                f"✓ Generated XML for {len(document.included)} files → {target}",
                Fore.GREEN,
            )

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
